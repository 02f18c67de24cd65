"""Exact, sort-based percentile computation."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from loglat.core.aggregate import Aggregate, to_float32


@dataclass(frozen=True)
class PercentileResult:
    """Summary statistics of one run.

    An empty result (``count == 0``) carries ``None`` for min, max and
    average and no percentile values, so it can't be mistaken for real
    readings.
    """

    count: int
    min: Optional[float]
    max: Optional[float]
    average: Optional[float]
    percentiles: Mapping[int, float] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    @classmethod
    def empty(cls) -> "PercentileResult":
        return cls(count=0, min=None, max=None, average=None)


def parse_ranks(raw: str) -> Tuple[int, ...]:
    """Parse ``"10,50,99"`` into validated percentile ranks."""

    pieces = [piece.strip() for piece in raw.split(",") if piece.strip()]
    return validate_ranks(int(piece) for piece in pieces)


def validate_ranks(ranks: Iterable[int]) -> Tuple[int, ...]:
    checked: List[int] = []
    for rank in ranks:
        if isinstance(rank, bool) or not isinstance(rank, int):
            raise ValueError(f"percentile rank must be an integer, got {rank!r}")
        if not 0 <= rank <= 100:
            raise ValueError(f"percentile rank out of range 0-100: {rank}")
        if rank in checked:
            raise ValueError(f"duplicate percentile rank: {rank}")
        checked.append(rank)
    return tuple(checked)


def percentile_at(sorted_values: Sequence[float], rank: int) -> float:
    """Nearest-rank percentile with truncation, no interpolation.

    ``sorted_values`` must be non-empty and ascending.
    """
    count = len(sorted_values)
    if count == 1:
        return sorted_values[0]
    if rank >= 100:
        return sorted_values[count - 1]
    return sorted_values[(rank * count) // 100]


def compute_percentiles(aggregate: Aggregate, ranks: Iterable[int]) -> PercentileResult:
    """Freeze ``aggregate`` and compute count, min, max, average and ranks."""

    checked = validate_ranks(ranks)
    aggregate.freeze()
    count = len(aggregate.values)
    if count == 0:
        return PercentileResult.empty()

    sorted_values = sorted(aggregate.values)
    values = {rank: percentile_at(sorted_values, rank) for rank in sorted(checked)}
    return PercentileResult(
        count=count,
        min=sorted_values[0],
        max=sorted_values[-1],
        average=to_float32(aggregate.total / count),
        percentiles=MappingProxyType(values),
    )


__all__ = [
    "PercentileResult",
    "compute_percentiles",
    "parse_ranks",
    "percentile_at",
    "validate_ranks",
]
