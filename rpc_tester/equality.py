"""Runs the probe catalog over a block range and collects a report."""

import sys
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable

from .blocks import build
from .catalog import list_probes
from .config import BlockRange, RunConfig
from .differential import DifferentialExecutor, Match, ProbeOutcome
from .endpoints import EndpointSet


@dataclass
class TestUnit:
    title: str
    outcomes: list[tuple[str, ProbeOutcome]] = field(default_factory=list)

    __test__ = False  # not a pytest class

    @property
    def failures(self) -> list[tuple[str, ProbeOutcome]]:
        return [(name, outcome) for name, outcome in self.outcomes if not isinstance(outcome, Match)]

    @property
    def passed(self) -> bool:
        return not self.failures


@dataclass
class Report:
    units: list[TestUnit] = field(default_factory=list)
    interrupted: bool = False

    @property
    def passed(self) -> bool:
        return not self.interrupted and all(unit.passed for unit in self.units)


class State(Enum):
    INIT = "init"
    PER_BLOCK = "per_block"
    RANGE_PROBES = "range_probes"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class StatusSnapshot:
    """Progress of a run as seen by operators.

    ``ready`` is set once a block range is chosen and testing has started.
    ``initial_height`` and ``in_memory_first`` are the first block of the
    range, ``tip`` is the block most recently handed to the executor.
    """

    ready: bool = False
    initial_height: int = 0
    tip: int = 0
    in_memory_first: int = 0
    state: State = State.INIT


class RunStatus:
    """Lock-guarded progress cell.

    Only the tester writes to it; everyone else reads snapshots.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot = StatusSnapshot()

    def update(self, **changes) -> None:
        with self._lock:
            self._snapshot = replace(self._snapshot, **changes)

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return self._snapshot


def block_title(block_number: int) -> str:
    return f"Block {block_number}"


class RpcTester:
    """Compares endpoints A and B over a block range.

    Blocks are tested one after the other in ascending order; all probes of a
    block run as one concurrent fan-out. A ``FetchError`` or
    ``CanonicalizationError`` aborts the run.
    """

    def __init__(self, endpoints: EndpointSet, config: RunConfig, workers: int | None = None,
                 should_stop: Callable[[], bool] | None = None, status: RunStatus | None = None):
        self.endpoints = endpoints
        self.config = config
        self.workers = workers
        self.should_stop = should_stop or (lambda: False)
        self.status = status or RunStatus()
        # Gate is decided once for the whole run.
        self.enabled_categories = config.enabled_categories

    @property
    def state(self) -> State:
        return self.status.snapshot().state

    def test_equality(self, block_range: BlockRange | None = None) -> Report:
        block_range = block_range or self.config.block_range
        if block_range is None:
            raise ValueError("No block range to test")

        report = Report()
        self.status.update(state=State.INIT, ready=False, initial_height=block_range.start,
                           in_memory_first=block_range.start, tip=block_range.start)

        with DifferentialExecutor(self.endpoints, self.enabled_categories, self.workers) as executor:
            try:
                self._test_per_block(executor, block_range, report)
                if report.interrupted:
                    self.status.update(state=State.DONE)
                    return report
                self._test_block_range(executor, block_range, report)
            except Exception:
                self.status.update(state=State.FAILED)
                raise

        self.status.update(state=State.DONE)
        return report

    def _test_per_block(self, executor: DifferentialExecutor, block_range: BlockRange,
                        report: Report) -> None:
        total = len(block_range)
        for i, block_number in enumerate(block_range, 1):
            if self.should_stop():
                print(f"\nStopping early due to shutdown request ({i - 1}/{total} blocks tested)",
                      file=sys.stderr)
                report.interrupted = True
                return

            self.status.update(state=State.PER_BLOCK, ready=True, tip=block_number)
            context, calls = build(block_number, self.endpoints.truth, self.config)
            print(f"[{i}/{total}] Block {block_number}: {len(context.transactions)} txs, "
                  f"{len(calls)} probes", file=sys.stderr)

            report.units.append(TestUnit(block_title(block_number), executor.run_all(calls)))

    def _test_block_range(self, executor: DifferentialExecutor, block_range: BlockRange,
                          report: Report) -> None:
        self.status.update(state=State.RANGE_PROBES)
        print(f"Range {block_range}: testing range probes", file=sys.stderr)
        calls = list_probes(block_range, self.config)
        report.units.append(TestUnit(str(block_range), executor.run_all(calls)))
