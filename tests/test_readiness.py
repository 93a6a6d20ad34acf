import pytest

from conftest import FakeNode
from rpc_tester.config import BlockRange
from rpc_tester.errors import ReadinessError
from rpc_tester.readiness import wait_for_readiness


def sequence(*values):
    """Override returning successive values, repeating the last one."""
    remaining = list(values)

    def next_value(params):
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    return next_value


def node(name, tips, syncing=(False,)):
    return FakeNode(name, overrides={
        "eth_syncing": sequence(*syncing),
        "eth_blockNumber": sequence(*[hex(tip) for tip in tips]),
    })


class TestWaitForReadiness:
    def test_ready_immediately(self):
        sleeps = []
        block_range = wait_for_readiness(node("A", [1000]), node("B", [1000]), 32, sleep=sleeps.append)
        assert block_range == BlockRange(968, 1000)
        assert sleeps == []

    def test_waits_while_syncing(self):
        sleeps = []
        a = node("A", [1000], syncing=({"currentBlock": "0x1"}, {"currentBlock": "0x2"}, False))
        block_range = wait_for_readiness(a, node("B", [1000]), 10, poll_interval=2, sleep=sleeps.append)
        assert block_range == BlockRange(990, 1000)
        assert sleeps == [2, 2]

    def test_waits_until_a_catches_up(self):
        sleeps = []
        a = node("A", [900, 990, 996])
        b = node("B", [1000, 1000, 1001])
        block_range = wait_for_readiness(a, b, 10, sleep=sleeps.append)
        assert block_range == BlockRange(991, 1001)
        assert len(sleeps) == 2

    def test_a_ahead_of_b(self):
        block_range = wait_for_readiness(node("A", [2000]), node("B", [1000]), 5, sleep=lambda _: None)
        assert block_range == BlockRange(995, 1000)

    def test_clamped_at_genesis(self):
        block_range = wait_for_readiness(node("A", [3]), node("B", [3]), 32, sleep=lambda _: None)
        assert block_range == BlockRange(0, 3)

    def test_gives_up(self):
        a = node("A", [0])
        b = node("B", [1000])
        with pytest.raises(ReadinessError, match="behind"):
            wait_for_readiness(a, b, 10, max_polls=3, sleep=lambda _: None)

    def test_unreachable(self):
        with pytest.raises(ReadinessError, match="Connection refused"):
            wait_for_readiness(FakeNode("A", unreachable=True), node("B", [1]), 10, sleep=lambda _: None)

    def test_invalid_block_number(self):
        a = FakeNode("A", overrides={"eth_syncing": False, "eth_blockNumber": None})
        with pytest.raises(ReadinessError, match="invalid block number"):
            wait_for_readiness(a, node("B", [1]), 10, sleep=lambda _: None)

    def test_negative_num_blocks(self):
        with pytest.raises(ValueError):
            wait_for_readiness(node("A", [10]), node("B", [10]), -3, sleep=lambda _: None)

    def test_stops_before_polling(self):
        a = node("A", [1000])
        assert wait_for_readiness(a, node("B", [1000]), 10, should_stop=lambda: True) is None
        assert a.calls == []

    def test_stops_while_waiting(self):
        stops = iter([False, True])
        a = node("A", [0])
        b = node("B", [1000])
        block_range = wait_for_readiness(a, b, 10, sleep=lambda _: None,
                                         should_stop=lambda: next(stops, True))
        assert block_range is None
        assert len(a.calls_to("eth_blockNumber")) == 1
