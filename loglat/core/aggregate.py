"""Running accumulation of latency readings for one scan."""
import struct
from array import array
from dataclasses import dataclass, field
from typing import Dict


def to_float32(value: float) -> float:
    """Round ``value`` to the nearest single-precision float.

    Raises ``OverflowError`` when the value is outside the float32 range.
    """
    return struct.unpack("f", struct.pack("f", value))[0]


@dataclass
class Aggregate:
    """Values, their running sum and per-verb counts.

    Every successful ``add`` appends one value and bumps one verb count, so
    ``len(values) == sum(counts.values())`` holds throughout. The sum is kept
    at single precision, matching the stored values.
    """

    values: array = field(default_factory=lambda: array("f"))
    total: float = 0.0
    counts: Dict[str, int] = field(default_factory=dict)
    _frozen: bool = field(default=False, repr=False)

    def add(self, verb: str, value: float) -> None:
        if self._frozen:
            raise RuntimeError("Aggregate is frozen")
        self.values.append(value)
        self.total = to_float32(self.total + value)
        self.counts[verb] = self.counts.get(verb, 0) + 1

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self.values)


__all__ = ["Aggregate", "to_float32"]
