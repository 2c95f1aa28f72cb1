"""Builders for chainhook delivery payloads used across tests."""


def contract_call(tx_id, result=None, events=None, kind="ContractCall"):
    """A v1 chainhook transaction entry"""
    metadata = {"kind": {"type": kind, "data": {"method": "create-invoice"}}, "success": True}
    if result is not None:
        metadata["result"] = result
    metadata["receipt"] = {"events": events or []}
    return {"transaction_identifier": {"hash": tx_id}, "operations": [], "metadata": metadata}


def chainhook_batch(*transactions, block_height=150000):
    """A v1 chainhook delivery with a single applied block"""
    return {
        "apply": [{
            "block_identifier": {"index": block_height, "hash": "0xblock"},
            "transactions": list(transactions),
        }],
        "rollback": [],
        "chainhook": {"uuid": "test-hook", "predicate": {"scope": "contract_call"}},
    }


def print_event(value, topic="print"):
    return {
        "type": "SmartContractEvent",
        "data": {
            "contract_identifier": "SP2A8V93XXB43Q8JXQNCS9EBFHZJ6A2HVXHC4F4ZB.chainhook-contract",
            "topic": topic,
            "value": value,
        },
    }
