# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Measurement core for ColorCompare.

Ingestion, alignment and colorimetric comparison of pixel probes.
All operations are deterministic and free of I/O except ``load_probe``.
"""

from colorcompare.measure.compare import CompareConfig, compare
from colorcompare.measure.ingest import IngestConfig, ingest_probe, load_probe
from colorcompare.measure.matching import DuplicatePolicy, MatchConfig, align_pixels
from colorcompare.measure.synthetic import generate_mock_probe

__all__ = [
    "compare",
    "CompareConfig",
    "ingest_probe",
    "load_probe",
    "IngestConfig",
    "align_pixels",
    "MatchConfig",
    "DuplicatePolicy",
    "generate_mock_probe",
]
