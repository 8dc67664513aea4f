from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class RiskBands:
    """Ordered half-open score intervals ``[lo, hi)`` and their labels.

    Bands are listed in ascending order, must be contiguous, and the last one
    must be unbounded above.
    """

    bands: Tuple[Tuple[float, float, str], ...]

    def __post_init__(self) -> None:
        if not self.bands:
            raise ValueError("at least one risk band is required")
        prev_hi = None
        for lo, hi, name in self.bands:
            if not lo < hi:
                raise ValueError(f"band '{name}' is empty: [{lo}, {hi})")
            if prev_hi is not None and lo != prev_hi:
                raise ValueError(f"band '{name}' does not start where the previous one ends ({prev_hi})")
            prev_hi = hi
        if prev_hi != float("inf"):
            raise ValueError("last risk band must be unbounded above")

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(name for _, _, name in self.bands)

    @property
    def cut_points(self) -> Tuple[float, ...]:
        return tuple(hi for _, hi, _ in self.bands[:-1])

    def severity(self, label: str) -> int:
        """Rank of a label, 0 being the mildest."""
        return self.labels.index(label)


def classify(score: float, bands: RiskBands) -> str:
    # first matching band wins; order matters at the boundaries
    for lo, hi, name in bands.bands:
        if score < hi:
            return name
    return bands.bands[-1][2]
