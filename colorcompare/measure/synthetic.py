# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Synthetic probe records.

Generates raw probe records in the same loose format plugins write, for
demos and tests. The output goes through ``ingest_probe`` like any file.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import numpy as np


def generate_mock_probe(
    source_label: str,
    variance: float = 0.0,
    *,
    grid_size: int = 9,
    seed: Optional[int] = None,
) -> dict:
    """
    Build a raw probe record sampling a red/green gradient.

    Pixel (i, j) of the ``grid_size`` × ``grid_size`` grid has color
    ``(i/n, j/n, 0.5, 1.0)`` plus uniform noise in ``±variance/2`` per
    color channel (clamped to [0, 1]), id ``pt_<i>_<j>`` and position at
    the cell center ``((i + 0.5)/n, (j + 0.5)/n)``.

    Args:
        source_label: Value for the record's ``software`` field
        variance: Width of the noise interval (0 = exact gradient)
        grid_size: Samples per side
        seed: Seed for the noise generator (None = nondeterministic)

    Returns:
        Raw probe record (dict)
    """
    if grid_size < 1:
        raise ValueError(f"grid_size must be >= 1, got {grid_size}")
    if variance < 0:
        raise ValueError(f"variance must be >= 0, got {variance}")

    rng = np.random.RandomState(seed)
    n = grid_size

    pixels = []
    for i in range(n):
        for j in range(n):
            base = np.array([i / n, j / n, 0.5])
            noise = (rng.random_sample(3) - 0.5) * variance
            r, g, b = np.clip(base + noise, 0.0, 1.0)
            pixels.append({
                "id": f"pt_{i}_{j}",
                "x": (i + 0.5) / n,
                "y": (j + 0.5) / n,
                "rgba": [float(r), float(g), float(b), 1.0],
            })

    return {
        "probe_name": "ColorProbe_Test_01",
        "software": source_label,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "frame": 1001,
        "bit_depth": "32f",
        "color_space": "Linear",
        "pixels": pixels,
    }
