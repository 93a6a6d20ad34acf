import pytest

from rpc_tester.catalog import (
    BLOCK_PROBES, RANGE_PROBES, TRANSACTION_PROBES, BlockContext, Scope, TxContext, list_probes,
)
from rpc_tester.config import BlockRange, Category, RunConfig

HASH = "0x" + "11" * 32
SENDER = "0x" + "aa" * 20


def make_context(*txs):
    return BlockContext(number=100, hash=HASH, transactions=tuple(txs))


def make_tx(index=0, address=None, topic=None):
    return TxContext(hash=f"0x{index:064x}", index=index, sender=SENDER,
                     first_log_address=address, last_log_topic=topic)


class TestCatalog:
    def test_probe_names_are_unique_per_scope(self):
        for probes in (BLOCK_PROBES, TRANSACTION_PROBES, RANGE_PROBES):
            names = [p.name for p in probes]
            assert len(names) == len(set(names))

    def test_scopes_match_tables(self):
        assert all(p.scope is Scope.BLOCK for p in BLOCK_PROBES)
        assert all(p.scope is Scope.TRANSACTION for p in TRANSACTION_PROBES)
        assert all(p.scope is Scope.RANGE for p in RANGE_PROBES)

    def test_categories_are_explicit_tags(self):
        categories = {p.name: p.category for p in BLOCK_PROBES + TRANSACTION_PROBES}
        assert categories["reth_get_balance_changes_in_block"] is Category.EXTENDED
        assert categories["trace_block"] is Category.TRACE
        assert categories["debug_trace_transaction"] is Category.TRACE
        assert categories["balance"] is Category.CORE
        assert categories["logs"] is Category.CORE


class TestListProbes:
    def test_block_without_transactions(self):
        calls = list_probes(make_context(), RunConfig())
        assert [c.probe.name for c in calls] == [p.name for p in BLOCK_PROBES]

    def test_disabled_categories_are_still_listed(self):
        names = [c.probe.name for c in list_probes(make_context(), RunConfig())]
        assert "trace_block" in names
        assert "reth_get_balance_changes_in_block" in names

    def test_block_params(self):
        params = {c.probe.name: c.params for c in list_probes(make_context(), RunConfig())}
        assert params["block_by_hash"] == [HASH, True]
        assert params["block_by_number"] == ["0x64", True]
        assert params["block_receipts"] == ["0x64"]
        assert params["logs"] == [{"fromBlock": "0x64", "toBlock": "0x64"}]

    def test_transaction_params(self):
        calls = list_probes(make_context(make_tx(index=3)), RunConfig())
        params = {c.probe.name: c.params for c in calls}
        assert params["transaction_by_block_hash_and_index"] == [HASH, "0x3"]
        assert params["raw_transaction_by_block_number_and_index"] == ["0x64", "0x3"]
        assert params["balance"] == [SENDER, "0x64"]
        assert params["transaction_count"] == [SENDER, "0x64"]
        assert params["debug_trace_transaction"][1] == {"tracer": "callTracer"}

    def test_log_filters_only_when_receipt_has_logs(self):
        names = [c.probe.name for c in list_probes(make_context(make_tx()), RunConfig())]
        assert "logs_by_address" not in names
        assert "logs_by_topic" not in names

        calls = list_probes(make_context(make_tx(address="0xabc", topic="0xdef")), RunConfig())
        params = {c.probe.name: c.params for c in calls}
        assert params["logs_by_address"] == [{"fromBlock": "0x64", "toBlock": "0x64", "address": "0xabc"}]
        assert params["logs_by_topic"] == [{"fromBlock": "0x64", "toBlock": "0x64", "topics": ["0xdef"]}]

    def test_only_first_transaction_by_default(self):
        context = make_context(make_tx(0), make_tx(1), make_tx(2))
        balance_calls = [c for c in list_probes(context, RunConfig()) if c.probe.name == "balance"]
        assert len(balance_calls) == 1

        config = RunConfig(use_all_transactions=True)
        balance_calls = [c for c in list_probes(context, config) if c.probe.name == "balance"]
        assert len(balance_calls) == 3

    def test_block_probes_come_before_transaction_probes(self):
        calls = list_probes(make_context(make_tx()), RunConfig())
        scopes = [c.probe.scope for c in calls]
        assert scopes == sorted(scopes, key=lambda s: s is Scope.TRANSACTION)

    def test_range_probes(self):
        calls = list_probes(BlockRange(10, 20), RunConfig())
        assert len(calls) == 1
        assert calls[0].probe.name == "logs"
        assert calls[0].params == [{"fromBlock": "0xa", "toBlock": "0x14"}]


class TestRunConfig:
    def test_core_only_by_default(self):
        assert RunConfig().enabled_categories == frozenset({Category.CORE})

    def test_enabled_categories(self):
        config = RunConfig(enable_trace=True, enable_extended_namespace=True)
        assert config.enabled_categories == frozenset(Category)

    def test_enabled_categories_computed_once(self):
        config = RunConfig(enable_trace=True)
        assert config.enabled_categories is config.enabled_categories

    def test_block_range(self):
        block_range = BlockRange(5, 7)
        assert list(block_range) == [5, 6, 7]
        assert len(block_range) == 3
        assert str(block_range) == "5..=7"

    def test_inverted_block_range_rejected(self):
        with pytest.raises(ValueError):
            BlockRange(7, 5)
