"""Declarative catalog of the RPC methods compared across endpoints.

Each probe names a JSON-RPC method, its category and how to build its
params from a block, transaction or range context. Nothing here does I/O.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, NamedTuple

from .config import BlockRange, Category, RunConfig

CALL_TRACER = {"tracer": "callTracer"}


class Scope(Enum):
    BLOCK = "block"
    TRANSACTION = "transaction"
    RANGE = "range"


@dataclass(frozen=True)
class TxContext:
    hash: str
    index: int
    sender: str
    first_log_address: str | None = None
    last_log_topic: str | None = None

    @property
    def index_hex(self) -> str:
        return hex(self.index)


@dataclass(frozen=True)
class BlockContext:
    """Canonical data of one block, fetched once from the truth endpoint."""

    number: int
    hash: str
    transactions: tuple[TxContext, ...] = field(default_factory=tuple)

    @property
    def tag(self) -> str:
        """Block number form accepted by ``*ByNumber`` methods."""
        return hex(self.number)

    @property
    def id(self) -> str:
        """Block id form accepted by methods taking a block id."""
        return hex(self.number)


@dataclass(frozen=True)
class Probe:
    name: str
    method: str
    scope: Scope
    build_args: Callable[..., list | None]
    category: Category = Category.CORE


class ProbeCall(NamedTuple):
    probe: Probe
    params: list


def _block_filter(block: BlockContext, **extra: Any) -> dict:
    return {"fromBlock": block.tag, "toBlock": block.tag, **extra}


def _logs_by_address(block: BlockContext, tx: TxContext) -> list | None:
    if tx.first_log_address is None:
        return None
    return [_block_filter(block, address=tx.first_log_address)]


def _logs_by_topic(block: BlockContext, tx: TxContext) -> list | None:
    if tx.last_log_topic is None:
        return None
    return [_block_filter(block, topics=[tx.last_log_topic])]


BLOCK_PROBES = (
    Probe("block_by_hash", "eth_getBlockByHash", Scope.BLOCK, lambda b: [b.hash, True]),
    Probe("block_by_number", "eth_getBlockByNumber", Scope.BLOCK, lambda b: [b.tag, True]),
    Probe("block_transaction_count_by_hash", "eth_getBlockTransactionCountByHash", Scope.BLOCK,
          lambda b: [b.hash]),
    Probe("block_transaction_count_by_number", "eth_getBlockTransactionCountByNumber", Scope.BLOCK,
          lambda b: [b.tag]),
    Probe("block_uncles_count_by_hash", "eth_getUncleCountByBlockHash", Scope.BLOCK,
          lambda b: [b.hash]),
    Probe("block_uncles_count_by_number", "eth_getUncleCountByBlockNumber", Scope.BLOCK,
          lambda b: [b.tag]),
    Probe("block_receipts", "eth_getBlockReceipts", Scope.BLOCK, lambda b: [b.id]),
    Probe("header_by_number", "eth_getHeaderByNumber", Scope.BLOCK, lambda b: [b.tag]),
    Probe("header_by_hash", "eth_getHeaderByHash", Scope.BLOCK, lambda b: [b.hash]),
    Probe("reth_get_balance_changes_in_block", "reth_getBalanceChangesInBlock", Scope.BLOCK,
          lambda b: [b.id], Category.EXTENDED),
    # debug_traceBlockByNumber is left out, responses are routinely too large.
    Probe("trace_block", "trace_block", Scope.BLOCK, lambda b: [b.id], Category.TRACE),
    Probe("logs", "eth_getLogs", Scope.BLOCK, lambda b: [_block_filter(b)]),
)

TRANSACTION_PROBES = (
    Probe("logs_by_address", "eth_getLogs", Scope.TRANSACTION, _logs_by_address),
    Probe("logs_by_topic", "eth_getLogs", Scope.TRANSACTION, _logs_by_topic),
    Probe("raw_transaction_by_hash", "eth_getRawTransactionByHash", Scope.TRANSACTION,
          lambda b, tx: [tx.hash]),
    Probe("transaction_by_hash", "eth_getTransactionByHash", Scope.TRANSACTION,
          lambda b, tx: [tx.hash]),
    Probe("raw_transaction_by_block_hash_and_index", "eth_getRawTransactionByBlockHashAndIndex",
          Scope.TRANSACTION, lambda b, tx: [b.hash, tx.index_hex]),
    Probe("transaction_by_block_hash_and_index", "eth_getTransactionByBlockHashAndIndex",
          Scope.TRANSACTION, lambda b, tx: [b.hash, tx.index_hex]),
    Probe("raw_transaction_by_block_number_and_index", "eth_getRawTransactionByBlockNumberAndIndex",
          Scope.TRANSACTION, lambda b, tx: [b.tag, tx.index_hex]),
    Probe("transaction_by_block_number_and_index", "eth_getTransactionByBlockNumberAndIndex",
          Scope.TRANSACTION, lambda b, tx: [b.tag, tx.index_hex]),
    Probe("transaction_receipt", "eth_getTransactionReceipt", Scope.TRANSACTION,
          lambda b, tx: [tx.hash]),
    Probe("transaction_count", "eth_getTransactionCount", Scope.TRANSACTION,
          lambda b, tx: [tx.sender, b.id]),
    Probe("balance", "eth_getBalance", Scope.TRANSACTION, lambda b, tx: [tx.sender, b.id]),
    Probe("debug_trace_transaction", "debug_traceTransaction", Scope.TRANSACTION,
          lambda b, tx: [tx.hash, CALL_TRACER], Category.TRACE),
)

RANGE_PROBES = (
    Probe("logs", "eth_getLogs", Scope.RANGE,
          lambda r: [{"fromBlock": hex(r.start), "toBlock": hex(r.end)}]),
)


def list_probes(context: BlockContext | BlockRange, config: RunConfig) -> list[ProbeCall]:
    """Bind every applicable probe of the catalog to its params.

    Probes of disabled categories are still listed so they show up in the
    report; gating happens when they are executed.
    """
    if isinstance(context, BlockRange):
        return _bind(RANGE_PROBES, context)

    calls = _bind(BLOCK_PROBES, context)
    transactions = context.transactions
    if not config.use_all_transactions:
        transactions = transactions[:1]
    for tx in transactions:
        calls.extend(_bind(TRANSACTION_PROBES, context, tx))
    return calls


def _bind(probes, *context) -> list[ProbeCall]:
    calls = []
    for probe in probes:
        params = probe.build_args(*context)
        if params is not None:
            calls.append(ProbeCall(probe, params))
    return calls
