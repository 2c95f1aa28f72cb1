"""
Invoice store contract, checked against every backend.
"""

import threading

import pytest

from src.core.config import Settings
from src.core.errors import InvoiceNotFoundError
from src.models.invoice import InvoiceStatus
from src.services.storage import InMemoryInvoiceStore, SQLiteInvoiceStore, create_invoice_store


def test_put_then_get_is_pending(store):
    store.put("inv-1", "0xabc")

    record = store.get_by_name("inv-1")
    assert record.tx_id == "0xabc"
    assert record.status == InvoiceStatus.PENDING
    assert record.invoice_id is None
    assert record.created_at is not None


def test_get_unknown_name_returns_none(store):
    assert store.get_by_name("nope") is None


def test_confirm_then_get_is_confirmed(store):
    store.put("inv-1", "0xabc")
    store.confirm("inv-1", "42")

    record = store.get_by_name("inv-1")
    assert record.status == InvoiceStatus.CONFIRMED
    assert record.invoice_id == "42"


def test_reconfirm_is_safe_and_keeps_first_id(store):
    store.put("inv-1", "0xabc")
    store.confirm("inv-1", "42")

    again = store.confirm("inv-1", "43")

    assert again.status == InvoiceStatus.CONFIRMED
    assert again.invoice_id == "42"
    assert store.get_by_name("inv-1").invoice_id == "42"


def test_confirm_unknown_name_raises(store):
    with pytest.raises(InvoiceNotFoundError):
        store.confirm("ghost", "1")
    assert store.get_by_name("ghost") is None


def test_get_by_transaction_id(store):
    for i in range(5):
        store.put(f"inv-{i}", f"0x{i:02x}")

    for i in range(5):
        record = store.get_by_transaction_id(f"0x{i:02x}")
        assert record.tx_id == f"0x{i:02x}"
        assert record.name == f"inv-{i}"

    assert store.get_by_transaction_id("0xffff") is None


def test_reissue_replaces_tx_and_clears_confirmation(store):
    store.put("inv-1", "0x01")
    store.confirm("inv-1", "7")

    store.put("inv-1", "0x02")

    record = store.get_by_name("inv-1")
    assert record.tx_id == "0x02"
    assert record.status == InvoiceStatus.PENDING
    assert record.invoice_id is None
    assert store.get_by_transaction_id("0x01") is None


def test_list_all_returns_every_invoice(store):
    store.put("a", "0x0a")
    store.put("b", "0x0b")
    store.put("c", "0x0c")

    assert sorted(r.name for r in store.list_all()) == ["a", "b", "c"]


def test_concurrent_confirms_on_same_name(store):
    store.put("inv-1", "0xabc")
    errors = []

    def confirm(invoice_id):
        try:
            store.confirm("inv-1", invoice_id)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=confirm, args=(str(i),)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    record = store.get_by_name("inv-1")
    assert errors == []
    assert record.status == InvoiceStatus.CONFIRMED
    assert record.invoice_id in {str(i) for i in range(8)}


def test_reads_while_writing_do_not_fail(memory_store):
    errors = []
    done = threading.Event()

    def writer():
        i = 0
        while not done.is_set():
            memory_store.put(f"inv-{i}", f"0x{i:04x}")
            i += 1

    def reader():
        try:
            for _ in range(200):
                assert memory_store.get_by_transaction_id("0xnope") is None
                memory_store.list_all()
        except Exception as e:
            errors.append(e)

    writer_thread = threading.Thread(target=writer)
    reader_thread = threading.Thread(target=reader)
    writer_thread.start()
    reader_thread.start()
    reader_thread.join()
    done.set()
    writer_thread.join()

    assert errors == []
    assert len(memory_store.list_all()) > 0


def test_context_manager_lifecycle(db_path):
    with SQLiteInvoiceStore(db_path) as store:
        store.put("inv-1", "0xabc")
        assert store.get_by_name("inv-1") is not None


def test_create_invoice_store_selects_backend(tmp_path):
    memory = create_invoice_store(Settings(STORE_BACKEND="memory"))
    sqlite = create_invoice_store(Settings(STORE_BACKEND="sqlite", DATABASE_PATH=str(tmp_path / "x.db")))

    assert isinstance(memory, InMemoryInvoiceStore)
    assert isinstance(sqlite, SQLiteInvoiceStore)

    with pytest.raises(ValueError):
        create_invoice_store(Settings(STORE_BACKEND="mongo"))
