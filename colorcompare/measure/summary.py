# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Derived views over comparison points.

Small read-only reductions used by presentation collaborators (heatmap
coloring, error distribution histogram, channel linearity scatter).
They never modify the points they are given.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from colorcompare.schema import ComparisonPoint, Severity

# Default ΔE2000 histogram edges; the last bin is open-ended
DEFAULT_HISTOGRAM_EDGES = (0.0, 0.5, 1.0, 2.0, 5.0, 10.0)


@dataclass(frozen=True, slots=True)
class HistogramBin:
    """
    One bin of the ΔE2000 distribution.

    Attributes:
        lower: Inclusive lower edge
        upper: Exclusive upper edge (None for the open last bin)
        count: Points falling in [lower, upper)
    """
    lower: float
    upper: float | None
    count: int

    @property
    def label(self) -> str:
        """Display label like ``"0.5-1"`` or ``"10->"``."""
        if self.upper is None:
            return f"{self.lower:g}->"
        return f"{self.lower:g}-{self.upper:g}"

    def to_dict(self) -> dict:
        return {"label": self.label, "lower": self.lower, "upper": self.upper, "count": self.count}


def error_histogram(
    points: Sequence[ComparisonPoint],
    edges: Sequence[float] = DEFAULT_HISTOGRAM_EDGES,
) -> tuple[HistogramBin, ...]:
    """
    Count points per ΔE2000 bin.

    Bins are half-open [edges[i], edges[i+1]); the final bin collects
    everything at or above the last edge. Values below the first edge
    are not counted.
    """
    if list(edges) != sorted(edges):
        raise ValueError("Histogram edges must be ascending")

    values = np.array([p.delta_e_2000 for p in points], dtype=np.float64)
    bins: list[HistogramBin] = []
    for i, lower in enumerate(edges):
        upper = float(edges[i + 1]) if i + 1 < len(edges) else None
        if upper is None:
            mask = values >= lower
        else:
            mask = (values >= lower) & (values < upper)
        bins.append(HistogramBin(lower=float(lower), upper=upper, count=int(np.count_nonzero(mask))))
    return tuple(bins)


def classify_severity(delta_e: float, threshold: float) -> Severity:
    """Band a ΔE value relative to the pass threshold."""
    if threshold <= 0.0:
        return Severity.EXCELLENT if delta_e <= 0.0 else Severity.CRITICAL
    if delta_e < threshold * 0.5:
        return Severity.EXCELLENT
    if delta_e < threshold:
        return Severity.PASS
    if delta_e < threshold * 1.5:
        return Severity.MARGINAL
    if delta_e < threshold * 3.0:
        return Severity.FAIL
    return Severity.CRITICAL


def severity_counts(
    points: Sequence[ComparisonPoint],
    threshold: float,
) -> dict[Severity, int]:
    """Number of points per severity band (ΔE2000), every band present."""
    counts = {s: 0 for s in Severity}
    for p in points:
        counts[classify_severity(p.delta_e_2000, threshold)] += 1
    return counts


def channel_linearity(
    points: Sequence[ComparisonPoint],
    channel: str = "g",
) -> tuple[tuple[float, float], ...]:
    """
    (reference, test) value pairs of one channel, in point order.

    Plotted against the identity line this shows gamma or transfer-curve
    mismatches between the two engines.
    """
    if channel not in ("r", "g", "b", "a"):
        raise ValueError(f"Channel must be one of r, g, b, a, got {channel!r}")
    return tuple(
        (getattr(p.reference_color, channel), getattr(p.test_color, channel))
        for p in points
    )
