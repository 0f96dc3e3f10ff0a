# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Main comparison API.

This is the recompute entry point: call it whenever the reference probe,
the test probe, or the threshold changes. It holds no state between
calls and always returns a complete, well-formed result.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Union

from colorcompare.schema import CanonicalProbe, ComparisonResult, PassCriterion
from colorcompare.measure.aggregate import aggregate
from colorcompare.measure.ingest import IngestConfig, load_probe
from colorcompare.measure.matching import MatchConfig, align_pixels

logger = logging.getLogger(__name__)

ProbeSource = Union[CanonicalProbe, Mapping, str, Path, bytes]


@dataclass(frozen=True)
class CompareConfig:
    """Configuration for a comparison."""

    # Pass/fail threshold in ΔE units (ΔE2000 ≤ 1.0 ≈ imperceptible)
    threshold: float = 1.0

    # Metric compared against the threshold; DE76 is the legacy mode
    criterion: PassCriterion = PassCriterion.DE2000

    # Number of worst points handed to the report collaborator
    top_k: int = 5

    match: MatchConfig = field(default_factory=MatchConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)

    def __post_init__(self) -> None:
        if not self.threshold >= 0.0:
            raise ValueError(f"Threshold must be >= 0, got {self.threshold}")
        if self.top_k < 0:
            raise ValueError(f"top_k must be >= 0, got {self.top_k}")


def compare(
    reference: ProbeSource,
    test: ProbeSource,
    *,
    threshold: Optional[float] = None,
    criterion: Optional[PassCriterion] = None,
    config: Optional[CompareConfig] = None,
) -> ComparisonResult:
    """
    Compare a test probe against a reference probe.

    Pipeline: ingest (if needed) → align → ΔE per pair → aggregate.

    Args:
        reference: Reference probe. One of:
            - CanonicalProbe (already ingested)
            - Raw probe record (mapping)
            - Path to a JSON file, or JSON text
        test: Test probe, same forms as ``reference``
        threshold: Pass/fail threshold in ΔE units (overrides config)
        criterion: Pass metric, DE2000 or legacy DE76 (overrides config)
        config: Comparison settings (uses CompareConfig() if None)

    Returns:
        ComparisonResult. When nothing can be aligned the result is empty
        (``is_empty``), its stats are all zero and ``reference_count`` /
        ``test_count`` describe the inputs.

    Raises:
        IngestionError: If a raw source is not parseable structured data
        ValueError: If the threshold is negative

    Example:
        >>> from colorcompare import compare
        >>> result = compare("reference.json", "test.json", threshold=1.0)
        >>> result.strategy
        <MatchStrategy.IDENTIFIER: 'identifier'>
        >>> result.stats.pass_rate
        98.76543209876543
    """
    cfg = config or CompareConfig()
    overrides = {}
    if threshold is not None:
        overrides["threshold"] = threshold
    if criterion is not None:
        overrides["criterion"] = criterion
    if overrides:
        cfg = replace(cfg, **overrides)

    ref_probe = _as_probe(reference, cfg.ingest)
    test_probe = _as_probe(test, cfg.ingest)

    alignment = align_pixels(ref_probe.pixels, test_probe.pixels, cfg.match)
    points, stats = aggregate(alignment.pairs, cfg.threshold, cfg.criterion)

    if not points:
        logger.warning(
            "No pixels aligned (strategy %s): reference has %d pixels, test has %d",
            alignment.strategy.value, ref_probe.sample_count, test_probe.sample_count,
        )
    else:
        logger.info(
            "Compared %d pixel pairs by %s: pass rate %.1f%%",
            stats.sample_count, alignment.strategy.value, stats.pass_rate,
        )

    return ComparisonResult(
        strategy=alignment.strategy,
        points=points,
        stats=stats,
        threshold=cfg.threshold,
        criterion=cfg.criterion,
        reference_count=ref_probe.sample_count,
        test_count=test_probe.sample_count,
    )


def _as_probe(source: ProbeSource, ingest: IngestConfig) -> CanonicalProbe:
    """Pass canonical probes through; load anything else."""
    if isinstance(source, CanonicalProbe):
        return source
    return load_probe(source, ingest)
