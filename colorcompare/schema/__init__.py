# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Schema definitions for probes and comparisons.

All types in this module are immutable (frozen dataclasses).
A comparison is never edited in place; a recompute replaces it.
"""

from colorcompare.schema.comparison import (
    SCHEMA_VERSION,
    AnalysisStats,
    CanonicalPixel,
    CanonicalProbe,
    Channel,
    ChannelDelta,
    ComparisonPoint,
    ComparisonResult,
    MatchStrategy,
    MaxChannel,
    PassCriterion,
    Rgba,
    Severity,
)

__all__ = [
    # Version
    "SCHEMA_VERSION",
    # Enumerations
    "MatchStrategy",
    "PassCriterion",
    "Channel",
    "Severity",
    # Probe side
    "Rgba",
    "CanonicalPixel",
    "CanonicalProbe",
    # Comparison side
    "ChannelDelta",
    "MaxChannel",
    "ComparisonPoint",
    "AnalysisStats",
    # Top-level container
    "ComparisonResult",
]
