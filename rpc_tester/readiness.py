"""Waits for the endpoints to be in sync before choosing a block range."""

import sys
import time

from .config import BlockRange
from .errors import ReadinessError, TransportError

# How far A may lag behind B and still be considered caught up.
MAX_LAG = 5


def get_block_number(endpoint) -> int:
    """Get the current block number from a node."""
    result = endpoint.call("eth_blockNumber")
    try:
        return int(result, 16) if isinstance(result, str) else int(result)
    except (TypeError, ValueError) as e:
        raise ReadinessError(f"{endpoint.name} returned an invalid block number: {result!r}") from e


def wait_for_readiness(a, b, num_blocks: int, poll_interval: float = 5.0,
                       max_polls: int | None = None, sleep=time.sleep,
                       should_stop=None) -> BlockRange | None:
    """Wait until A is done syncing and caught up with B, then pick a range.

    Returns the last ``num_blocks`` blocks up to B's tip, or None if
    ``should_stop`` fires while waiting. Raises ``ReadinessError`` if
    ``max_polls`` is exhausted or a node is unreachable.
    """
    if num_blocks < 0:
        raise ValueError(f"num_blocks must not be negative, got {num_blocks}")
    should_stop = should_stop or (lambda: False)
    polls = 0

    def poll_or_give_up(reason: str) -> bool:
        nonlocal polls
        polls += 1
        if max_polls is not None and polls >= max_polls:
            raise ReadinessError(f"Gave up after {polls} polls: {reason}")
        sleep(poll_interval)
        return not should_stop()

    try:
        while True:
            if should_stop():
                return None
            syncing = a.call("eth_syncing")
            if syncing in (False, None):
                break
            print(f"{a.name} still syncing: {syncing}", file=sys.stderr)
            if not poll_or_give_up(f"{a.name} still syncing"):
                return None

        while True:
            tip_a = get_block_number(a)
            tip_b = get_block_number(b)
            if tip_a >= tip_b or tip_b - tip_a <= MAX_LAG:
                block_range = BlockRange(max(tip_b - num_blocks, 0), tip_b)
                print(f"Testing block range: {block_range}", file=sys.stderr)
                return block_range
            print(f"{a.name} at {tip_a}, {b.name} at {tip_b}, waiting...", file=sys.stderr)
            if not poll_or_give_up(f"{a.name} is {tip_b - tip_a} blocks behind {b.name}"):
                return None
    except TransportError as e:
        raise ReadinessError(str(e)) from e
