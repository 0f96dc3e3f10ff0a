# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Color space conversions.

Conversion chain: sRGB → Linear RGB → CIE XYZ (D65) → CIE L*a*b*

Working space is fixed to sRGB primaries with a D65 white point. No other
color management is performed: inputs outside [0, 1] are carried through
the formulas as-is rather than clipped.

All conversions are pure NumPy and operate on arrays of shape (..., 3).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from colorcompare.schema import Rgba


# =============================================================================
# sRGB → Linear RGB
# =============================================================================


def srgb_to_linear(srgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert sRGB values [0,1] to linear RGB.

    sRGB uses a piecewise gamma curve:
    - For values <= 0.04045: value / 12.92
    - For values > 0.04045: ((value + 0.055) / 1.055) ^ 2.4
    """
    srgb = np.asarray(srgb, dtype=np.float64)
    # The power branch is evaluated everywhere; silence it where np.where discards it
    with np.errstate(invalid="ignore"):
        linear = np.where(
            srgb <= 0.04045,
            srgb / 12.92,
            np.power((srgb + 0.055) / 1.055, 2.4)
        )
    return linear


# =============================================================================
# Linear RGB → XYZ → Lab
# =============================================================================

# sRGB primaries to XYZ, D65
_RGB_TO_XYZ = np.array([
    [0.4124, 0.3576, 0.1805],
    [0.2126, 0.7152, 0.0722],
    [0.0193, 0.1192, 0.9505],
], dtype=np.float64)

# D65 reference white on the 0-100 scale
D65_WHITE = np.array([95.047, 100.0, 108.883], dtype=np.float64)

_EPSILON = 0.008856
_KAPPA_SLOPE = 7.787
_OFFSET = 16.0 / 116.0


def linear_rgb_to_xyz(rgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert linear RGB to CIE XYZ on the 0-100 scale.

    Args:
        rgb: Array of shape (..., 3) with linear RGB values

    Returns:
        Array of shape (..., 3) with XYZ values (Y = 100 for white)
    """
    rgb = np.asarray(rgb, dtype=np.float64) * 100.0
    return np.einsum('...j,ij->...i', rgb, _RGB_TO_XYZ)


def xyz_to_lab(xyz: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert CIE XYZ (0-100 scale) to CIE L*a*b* relative to D65.

    Args:
        xyz: Array of shape (..., 3) with XYZ values

    Returns:
        Array of shape (..., 3) with Lab values (L, a, b)
    """
    t = np.asarray(xyz, dtype=np.float64) / D65_WHITE

    f = np.where(t > _EPSILON, np.cbrt(t), _KAPPA_SLOPE * t + _OFFSET)

    fx = f[..., 0]
    fy = f[..., 1]
    fz = f[..., 2]

    L = 116.0 * fy - 16.0
    a = 500.0 * (fx - fy)
    b = 200.0 * (fy - fz)

    return np.stack([L, a, b], axis=-1)


# =============================================================================
# Convenience: sRGB → Lab (full chain)
# =============================================================================


def srgb_to_lab(srgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert sRGB [0,1] to CIE L*a*b*.

    Full chain: sRGB → Linear RGB → XYZ → Lab

    Args:
        srgb: Array of shape (..., 3) with sRGB values [0, 1]

    Returns:
        Array of shape (..., 3) with Lab values
        - L: Lightness [0, 100]
        - a: green (-) to red (+)
        - b: blue (-) to yellow (+)
    """
    linear = srgb_to_linear(srgb)
    xyz = linear_rgb_to_xyz(linear)
    return xyz_to_lab(xyz)


def rgba_to_lab(color: Rgba) -> NDArray[np.float64]:
    """Convert the color channels of an Rgba (alpha ignored) to Lab."""
    return srgb_to_lab(np.array([color.r, color.g, color.b], dtype=np.float64))
