import threading

import pytest

from rpc_tester.errors import TransportError

BLOCK_NUMBER = 100
SENDER = "0x" + "aa" * 20
LOG_ADDRESS = "0x" + "cc" * 20
TOPIC = "0x" + "dd" * 32


def block_hash(number: int) -> str:
    return "0x" + f"{number:064x}"


def tx_hash(number: int, index: int) -> str:
    return "0x" + f"{number:032x}{index:032x}"


def make_chain(numbers, txs_per_block=0, with_logs=False):
    """Build blocks and receipts keyed the way FakeNode serves them."""
    blocks = {}
    receipts = {}
    for number in numbers:
        transactions = []
        for index in range(txs_per_block):
            h = tx_hash(number, index)
            transactions.append({
                "hash": h,
                "from": SENDER,
                "transactionIndex": hex(index),
                "blockNumber": hex(number),
            })
            logs = []
            if with_logs:
                logs = [
                    {"address": LOG_ADDRESS, "topics": []},
                    {"address": SENDER, "topics": [TOPIC]},
                ]
            receipts[h] = {"transactionHash": h, "status": "0x1", "logs": logs}
        blocks[number] = {
            "number": hex(number),
            "hash": block_hash(number),
            "transactions": transactions,
        }
    return blocks, receipts


class FakeNode:
    """In-memory JSON-RPC endpoint.

    Known lookups are served from ``blocks``/``receipts``; any other method
    echoes its params, so two nodes built from the same chain agree.
    ``overrides`` maps a method to a value, a callable taking params, or an
    exception message to raise as a TransportError.
    """

    def __init__(self, name, blocks=None, receipts=None, overrides=None, unreachable=False):
        self.name = name
        self.blocks = blocks or {}
        self.receipts = receipts or {}
        self.overrides = overrides or {}
        self.unreachable = unreachable
        self.calls = []
        self._lock = threading.Lock()

    def call(self, method, params=None):
        params = params or []
        with self._lock:
            self.calls.append((method, params))
        if self.unreachable:
            raise TransportError(self.name, method, "Connection refused")
        if method in self.overrides:
            value = self.overrides[method]
            if isinstance(value, Exception):
                raise TransportError(self.name, method, str(value))
            return value(params) if callable(value) else value
        if method == "eth_getBlockByNumber":
            return self.blocks.get(int(params[0], 16))
        if method == "eth_getTransactionReceipt":
            return self.receipts.get(params[0])
        return {"method": method, "params": params}

    def calls_to(self, method):
        return [params for m, params in self.calls if m == method]


@pytest.fixture
def chain():
    return make_chain([BLOCK_NUMBER])


@pytest.fixture
def chain_with_tx():
    return make_chain([BLOCK_NUMBER], txs_per_block=1)
