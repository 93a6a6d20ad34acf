"""Runs probes against both endpoints and compares the results."""

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Union

from .catalog import BLOCK_PROBES, TRANSACTION_PROBES, Probe, ProbeCall
from .config import Category
from .endpoints import EndpointSet
from .errors import CanonicalizationError, TransportError


@dataclass(frozen=True)
class Match:
    kind = "match"


@dataclass(frozen=True)
class Mismatch:
    value_a: Any
    value_b: Any
    canonical_a: str
    canonical_b: str
    kind = "mismatch"


@dataclass(frozen=True)
class ErrorA:
    message: str
    kind = "error_a"


@dataclass(frozen=True)
class ErrorB:
    message: str
    kind = "error_b"


# One call per compared endpoint for every probe of a block with one tested transaction.
DEFAULT_WORKERS = 2 * (len(BLOCK_PROBES) + len(TRANSACTION_PROBES))

ProbeOutcome = Union[Match, Mismatch, ErrorA, ErrorB]

MATCH = Match()


def canonicalize(value: Any) -> str:
    """Serialize a decoded response to its canonical text form.

    Object keys are sorted, so responses that only differ in field order
    produce identical text. Raises TypeError/ValueError on values that are
    not plain JSON (e.g. NaN, sets, arbitrary objects).
    """
    return json.dumps(value, sort_keys=True, indent=2, allow_nan=False)


def compare_results(name: str, result_a: Any, result_b: Any) -> ProbeOutcome:
    """Compare two successful results of the same probe."""
    canonical = {}
    for side, value in (("A", result_a), ("B", result_b)):
        try:
            canonical[side] = canonicalize(value)
        except (TypeError, ValueError) as e:
            raise CanonicalizationError(name, side, e) from e

    if canonical["A"] == canonical["B"]:
        return MATCH
    return Mismatch(result_a, result_b, canonical["A"], canonical["B"])


def _call(endpoint, method: str, params: list) -> tuple[Any, str | None]:
    try:
        return endpoint.call(method, params), None
    except TransportError as e:
        return None, e.message


class DifferentialExecutor:
    """Sends each probe to endpoints A and B concurrently.

    Probes whose category is not in ``enabled_categories`` are reported as
    ``Match`` without issuing any call. The pool needs at least two workers so
    that both calls of a probe are in flight together.
    """

    def __init__(self, endpoints: EndpointSet, enabled_categories: frozenset[Category],
                 workers: int | None = None):
        if workers is None:
            workers = DEFAULT_WORKERS
        if workers < 2:
            raise ValueError(f"At least 2 workers are required, got {workers}")
        self.endpoints = endpoints
        self.enabled_categories = enabled_categories
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe")

    def close(self, cancel: bool = False) -> None:
        """Shut the pool down.

        With ``cancel`` set, queued calls are dropped and calls already in
        flight are not waited for.
        """
        if cancel:
            self._pool.shutdown(wait=False, cancel_futures=True)
        else:
            self._pool.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close(cancel=exc_type is not None)

    def is_enabled(self, probe: Probe) -> bool:
        return probe.category in self.enabled_categories

    def run(self, probe: Probe, params: list) -> tuple[str, ProbeOutcome]:
        return self.run_all([ProbeCall(probe, params)])[0]

    def run_all(self, calls: list[ProbeCall]) -> list[tuple[str, ProbeOutcome]]:
        """Run every call in a single fan-out and return outcomes in call order."""
        pending = []
        for probe, params in calls:
            if not self.is_enabled(probe):
                pending.append((probe, None))
                continue
            futures = [
                self._pool.submit(_call, endpoint, probe.method, params)
                for _, endpoint in self.endpoints.compared
            ]
            pending.append((probe, futures))

        results = []
        for probe, futures in pending:
            if futures is None:
                results.append((probe.name, MATCH))
                continue
            (result_a, error_a), (result_b, error_b) = (f.result() for f in futures)
            results.append((probe.name, self._outcome(probe, result_a, error_a, result_b, error_b)))
        return results

    @staticmethod
    def _outcome(probe: Probe, result_a, error_a, result_b, error_b) -> ProbeOutcome:
        # When both sides fail, A's error is the one reported.
        if error_a is not None:
            return ErrorA(error_a)
        if error_b is not None:
            return ErrorB(error_b)
        return compare_results(probe.name, result_a, result_b)
