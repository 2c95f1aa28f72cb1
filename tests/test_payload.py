"""
Tests for chainhook delivery normalization.
"""

from src.services.chainhook.payload import iter_transactions

from chainhook_payloads import chainhook_batch, contract_call, print_event


def test_v1_delivery():
    batch = chainhook_batch(
        contract_call("0x01", result="(ok (tuple (id u1)))", events=[print_event("x")]),
        contract_call("0x02", kind="TokenTransfer"),
        block_height=42,
    )

    txs = list(iter_transactions(batch))

    assert [t.tx_id for t in txs] == ["0x01", "0x02"]
    assert txs[0].is_data_bearing is True
    assert txs[0].result == "(ok (tuple (id u1)))"
    assert txs[0].events[0]["type"] == "SmartContractEvent"
    assert txs[0].block_height == 42
    assert txs[1].is_data_bearing is False


def test_v2_delivery():
    batch = {
        "event": {
            "apply": [{
                "block_identifier": {"index": 7, "hash": "0xb"},
                "transactions": [{
                    "transaction_identifier": {"hash": "0xv2"},
                    "metadata": {"type": "contract_call", "result": {"repr": "(ok (tuple (id u3)))"}},
                    "operations": [
                        {"type": "contract_log", "metadata": {"topic": "print", "value": {"repr": "x"}}},
                    ],
                }],
            }],
            "rollback": [],
        },
        "chainhook": {"uuid": "abc"},
    }

    (tx,) = list(iter_transactions(batch))

    assert tx.tx_id == "0xv2"
    assert tx.kind == "contract_call"
    assert tx.is_data_bearing
    assert tx.result == {"repr": "(ok (tuple (id u3)))"}
    assert tx.events[0]["type"] == "contract_log"


def test_flat_delivery_and_bare_list():
    flat = {"transactions": [{"transactionId": "0xabc", "kind": "ContractCall", "result": "(ok u1)"}]}
    (tx,) = list(iter_transactions(flat))
    assert tx.tx_id == "0xabc"
    assert tx.is_data_bearing

    (tx,) = list(iter_transactions([{"txId": "0xdef", "type": "contract_call"}]))
    assert tx.tx_id == "0xdef"


def test_rollback_blocks_are_ignored():
    batch = chainhook_batch()
    batch["rollback"] = [{"transactions": [contract_call("0xrolled")]}]

    assert list(iter_transactions(batch)) == []


def test_malformed_entries_are_skipped():
    batch = {"apply": [{"transactions": ["not-a-dict", None, contract_call("0x01")]}, "junk"]}

    txs = list(iter_transactions(batch))

    assert [t.tx_id for t in txs] == ["0x01"]


def test_non_object_bodies_yield_nothing():
    assert list(iter_transactions(None)) == []
    assert list(iter_transactions("hello")) == []
    assert list(iter_transactions({"unexpected": True})) == []


def test_missing_kind_is_not_data_bearing():
    (tx,) = list(iter_transactions({"transactions": [{"transactionId": "0x1", "result": "(ok (tuple (id u1)))"}]}))
    assert tx.kind is None
    assert tx.is_data_bearing is False


def test_transaction_success_flag():
    ok = contract_call("0x01")
    failed = contract_call("0x02")
    failed["metadata"]["success"] = False
    v2_aborted = {
        "transaction_identifier": {"hash": "0x03"},
        "metadata": {"type": "contract_call", "status": "abort_by_response"},
    }
    v2_ok = {
        "transaction_identifier": {"hash": "0x04"},
        "metadata": {"type": "contract_call", "status": "success"},
    }
    unreported = {"txId": "0x05", "type": "contract_call"}

    txs = list(iter_transactions([ok, failed, v2_aborted, v2_ok, unreported]))

    assert [t.success for t in txs] == [True, False, False, True, None]
