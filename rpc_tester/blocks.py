"""Builds the canonical per-block context from the truth endpoint."""

from .catalog import BlockContext, ProbeCall, TxContext, list_probes
from .config import RunConfig
from .errors import FetchError, TransportError


def get_block_with_transactions(truth, block_number: int) -> dict:
    """Get a block with full transaction objects."""
    try:
        block = truth.call("eth_getBlockByNumber", [hex(block_number), True])
    except TransportError as e:
        raise FetchError(block_number, e.message) from e
    if block is None:
        raise FetchError(block_number, "block not found")
    if not isinstance(block, dict):
        raise FetchError(block_number, f"malformed block: {block!r}")
    return block


def get_transaction_receipt(truth, block_number: int, tx_hash: str) -> dict:
    try:
        receipt = truth.call("eth_getTransactionReceipt", [tx_hash])
    except TransportError as e:
        raise FetchError(block_number, e.message) from e
    if not isinstance(receipt, dict):
        raise FetchError(block_number, f"no receipt for transaction {tx_hash}")
    return receipt


def _parse_quantity(value, block_number: int, name: str) -> int:
    if isinstance(value, int):
        return value
    try:
        return int(value, 16)
    except (TypeError, ValueError):
        raise FetchError(block_number, f"malformed {name}: {value!r}") from None


def tx_context(block_number: int, position: int, tx: dict, receipt: dict) -> TxContext:
    """Derive the probe arguments of one transaction from its receipt."""
    if not isinstance(tx, dict) or "hash" not in tx or "from" not in tx:
        raise FetchError(block_number, f"malformed transaction: {tx!r}")

    logs = receipt.get("logs") or []
    first_log_address = logs[0].get("address") if logs else None
    topics = (logs[-1].get("topics") or []) if logs else []
    last_log_topic = topics[0] if topics else None

    return TxContext(
        hash=tx["hash"],
        index=_parse_quantity(tx.get("transactionIndex", position), block_number, "transactionIndex"),
        sender=tx["from"],
        first_log_address=first_log_address,
        last_log_topic=last_log_topic,
    )


def build_block_context(block_number: int, truth, use_all_transactions: bool = False) -> BlockContext:
    """Fetch a block and its receipts once and derive its BlockContext.

    Only the first transaction is fetched unless ``use_all_transactions`` is
    set, which keeps the call volume down on rate-limited endpoints.
    """
    block = get_block_with_transactions(truth, block_number)

    number = _parse_quantity(block.get("number"), block_number, "block number")
    if number != block_number:
        raise FetchError(block_number, f"truth returned block {number}")
    block_hash = block.get("hash")
    if not block_hash:
        raise FetchError(block_number, "block has no hash")

    transactions = block.get("transactions") or []
    if not use_all_transactions:
        transactions = transactions[:1]

    txs = []
    for position, tx in enumerate(transactions):
        if not isinstance(tx, dict):
            raise FetchError(block_number, "block transactions are not full objects")
        receipt = get_transaction_receipt(truth, block_number, tx.get("hash"))
        txs.append(tx_context(block_number, position, tx, receipt))

    return BlockContext(number=number, hash=block_hash, transactions=tuple(txs))


def build(block_number: int, truth, config: RunConfig) -> tuple[BlockContext, list[ProbeCall]]:
    """Return the block's context and every probe call to run for it."""
    context = build_block_context(block_number, truth, config.use_all_transactions)
    return context, list_probes(context, config)
