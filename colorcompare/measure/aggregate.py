# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Comparison aggregation.

Turns aligned pixel pairs into ComparisonPoints and AnalysisStats.
ΔE values are computed in one vectorized pass over all pairs; the
per-point records are then built in reference order.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from colorcompare.schema import (
    AnalysisStats,
    ComparisonPoint,
    PassCriterion,
    Rgba,
)
from colorcompare.measure.colorspace import srgb_to_lab
from colorcompare.measure.difference import (
    channel_delta,
    delta_e_2000_lab,
    delta_e_76_lab,
    delta_e_94_lab,
    max_channel,
)
from colorcompare.measure.matching import AlignedPair


def normalize_axis(values: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Rescale values into [0, 1] over their own min/max.

    A zero span maps every value to 0.5 (centered, no division by zero).
    """
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return values
    lo, hi = values.min(), values.max()
    span = hi - lo
    if span == 0:
        return np.full_like(values, 0.5)
    return (values - lo) / span


def aggregate(
    pairs: Sequence[AlignedPair],
    threshold: float = 1.0,
    criterion: PassCriterion = PassCriterion.DE2000,
) -> tuple[tuple[ComparisonPoint, ...], AnalysisStats]:
    """
    Compute per-pair comparison points and summary statistics.

    A pair passes when its criterion ΔE (ΔE2000, or ΔE76 in legacy mode)
    is at or below ``threshold``.

    Args:
        pairs: Aligned pairs in reference order
        threshold: Pass/fail threshold in ΔE units
        criterion: Metric compared against the threshold

    Returns:
        (points, stats). Both empty/zero when ``pairs`` is empty.
    """
    if not pairs:
        return (), AnalysisStats()

    ref_rgb = np.array(
        [[p.reference.rgba.r, p.reference.rgba.g, p.reference.rgba.b] for p in pairs],
        dtype=np.float64,
    )
    test_rgb = np.array(
        [[p.test.rgba.r, p.test.rgba.g, p.test.rgba.b] for p in pairs],
        dtype=np.float64,
    )
    ref_lab = srgb_to_lab(ref_rgb)
    test_lab = srgb_to_lab(test_rgb)

    de76 = delta_e_76_lab(ref_lab, test_lab)
    de94 = delta_e_94_lab(ref_lab, test_lab)
    de00 = delta_e_2000_lab(ref_lab, test_lab)

    xs = np.array([p.reference.x for p in pairs], dtype=np.float64)
    ys = np.array([p.reference.y for p in pairs], dtype=np.float64)
    norm_x = normalize_axis(xs)
    norm_y = normalize_axis(ys)

    points: list[ComparisonPoint] = []
    max_ch = 0.0

    for i, pair in enumerate(pairs):
        ref: Rgba = pair.reference.rgba
        test: Rgba = pair.test.rgba
        mc = max_channel(ref, test)
        max_ch = max(max_ch, mc.value)

        points.append(ComparisonPoint(
            id=pair.reference.identifier or f"pt_{pair.index}",
            normalized_x=float(norm_x[i]),
            normalized_y=float(norm_y[i]),
            original_x=float(xs[i]),
            original_y=float(ys[i]),
            reference_color=ref,
            test_color=test,
            delta_e_76=float(de76[i]),
            delta_e_94=float(de94[i]),
            delta_e_2000=float(de00[i]),
            channel_delta=channel_delta(ref, test),
            max_channel=mc,
        ))

    metric = de76 if criterion == PassCriterion.DE76 else de00
    passed = int(np.count_nonzero(metric <= threshold))
    n = len(points)

    stats = AnalysisStats(
        avg_delta_e_76=float(np.mean(de76)),
        avg_delta_e_94=float(np.mean(de94)),
        avg_delta_e_2000=float(np.mean(de00)),
        max_delta_e_76=float(np.max(de76)),
        max_delta_e_2000=float(np.max(de00)),
        max_channel_delta=max_ch,
        pass_rate=passed / n * 100.0,
        sample_count=n,
    )
    return tuple(points), stats


def top_deviations(
    points: Sequence[ComparisonPoint],
    k: int = 5,
) -> tuple[ComparisonPoint, ...]:
    """
    The k worst points by ΔE2000.

    Stable descending sort, so equal ΔE2000 values keep reference order.
    This is the selection handed to the AI-report collaborator.
    """
    if k <= 0:
        return ()
    ordered = sorted(points, key=lambda p: p.delta_e_2000, reverse=True)
    return tuple(ordered[:k])
