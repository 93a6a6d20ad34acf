"""Run configuration."""

from dataclasses import dataclass
from enum import Enum
from functools import cached_property


class Category(Enum):
    """Probe category, used to gate which probes actually issue calls."""

    CORE = "core"
    EXTENDED = "extended"  # reth_ namespace
    TRACE = "trace"  # trace_ and debug_ tracers


@dataclass(frozen=True)
class BlockRange:
    """Inclusive range of block numbers."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid block range {self.start}..={self.end}")

    def __iter__(self):
        return iter(range(self.start, self.end + 1))

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"{self.start}..={self.end}"


@dataclass(frozen=True)
class RunConfig:
    enable_trace: bool = False
    enable_extended_namespace: bool = False
    use_all_transactions: bool = False
    block_range: BlockRange | None = None
    truth: str = "a"

    @cached_property
    def enabled_categories(self) -> frozenset[Category]:
        """Categories whose probes issue calls for this run."""
        enabled = {Category.CORE}
        if self.enable_trace:
            enabled.add(Category.TRACE)
        if self.enable_extended_namespace:
            enabled.add(Category.EXTENDED)
        return frozenset(enabled)
