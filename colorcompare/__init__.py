# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
ColorCompare -- colorimetric comparison of pixel probes.

Compares the pixel samples two rendering engines produced for the same
image and reports per-pixel CIE ΔE deviations plus summary statistics.

Quick start::

    from colorcompare import compare

    result = compare("nuke_probe.json", "resolve_probe.json", threshold=1.0)
    result.stats.pass_rate   # Percentage of pairs within ΔE2000 1.0
    result.top_deviations()  # 5 worst points
    result.to_prompt()       # Text for the AI-report writer
    result.to_json()         # Full bundle
"""

from __future__ import annotations

__version__ = "1.0.0"

from colorcompare.errors import ColorCompareError, IngestionError
from colorcompare.measure import (
    CompareConfig,
    compare,
    generate_mock_probe,
    ingest_probe,
    load_probe,
)
from colorcompare.runtime import ComparisonSession
from colorcompare.schema import (
    AnalysisStats,
    CanonicalPixel,
    CanonicalProbe,
    ComparisonPoint,
    ComparisonResult,
    MatchStrategy,
    PassCriterion,
    Rgba,
)

__all__ = [
    # Core API
    "compare",
    "ingest_probe",
    "load_probe",
    "ComparisonResult",
    "ComparisonSession",
    "CompareConfig",
    # Types (commonly needed)
    "Rgba",
    "CanonicalPixel",
    "CanonicalProbe",
    "ComparisonPoint",
    "AnalysisStats",
    "MatchStrategy",
    "PassCriterion",
    # Errors
    "ColorCompareError",
    "IngestionError",
    # Demo data
    "generate_mock_probe",
    # Version
    "__version__",
]
