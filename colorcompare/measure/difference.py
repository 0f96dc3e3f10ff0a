# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Perceptual color difference (ΔE) metrics.

Three standard formulas over CIE L*a*b*:
- ΔE76:   Euclidean distance
- ΔE94:   CIE94 with graphic-arts weights (kL = kC = kH = 1, K1 = 0.045, K2 = 0.015)
- ΔE2000: CIEDE2000 (Sharma, Wu & Dalal 2005)

Each formula has a vectorized Lab entry point (``*_lab``) taking arrays of
shape (..., 3) and an Rgba convenience wrapper returning a float.

Reference thresholds (ΔE2000):
- ΔE < 1.0: not perceptible by human eyes
- ΔE 1-2: perceptible through close observation
- ΔE 2-10: perceptible at a glance
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from colorcompare.schema import Channel, ChannelDelta, MaxChannel, Rgba
from colorcompare.measure.colorspace import rgba_to_lab


# 25^7, shared by the chroma weighting terms
_POW25_7 = 25.0 ** 7


def _split(lab: NDArray[np.float64]) -> tuple[NDArray, NDArray, NDArray]:
    lab = np.asarray(lab, dtype=np.float64)
    return lab[..., 0], lab[..., 1], lab[..., 2]


# =============================================================================
# ΔE76
# =============================================================================


def delta_e_76_lab(
    lab1: NDArray[np.float64],
    lab2: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    CIE76 color difference: Euclidean distance in Lab.

    Args:
        lab1: Array of shape (..., 3) with Lab values
        lab2: Array of shape (..., 3) with Lab values

    Returns:
        Array of shape (...) with ΔE76 values
    """
    delta = np.asarray(lab1, dtype=np.float64) - np.asarray(lab2, dtype=np.float64)
    return np.sqrt(np.sum(delta ** 2, axis=-1))


# =============================================================================
# ΔE94
# =============================================================================

_K1 = 0.045
_K2 = 0.015


def delta_e_94_lab(
    lab1: NDArray[np.float64],
    lab2: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    CIE94 color difference (graphic arts).

    The first color is the reference: its chroma sets the sC/sH weights,
    so the result is only symmetric up to that weighting.

    The hue term ΔH² = Δa² + Δb² − ΔC² is clamped at zero; floating-point
    cancellation can otherwise push it slightly negative.
    """
    L1, a1, b1 = _split(lab1)
    L2, a2, b2 = _split(lab2)

    dL = L1 - L2
    C1 = np.sqrt(a1 ** 2 + b1 ** 2)
    C2 = np.sqrt(a2 ** 2 + b2 ** 2)
    dC = C1 - C2
    da = a1 - a2
    db = b1 - b2
    dH = np.sqrt(np.maximum(da ** 2 + db ** 2 - dC ** 2, 0.0))

    sL = 1.0
    sC = 1.0 + _K1 * C1
    sH = 1.0 + _K2 * C1

    return np.sqrt((dL / sL) ** 2 + (dC / sC) ** 2 + (dH / sH) ** 2)


# =============================================================================
# ΔE2000
# =============================================================================


def _hue_degrees(b: NDArray[np.float64], a_prime: NDArray[np.float64]) -> NDArray[np.float64]:
    """Hue angle h' in degrees, [0, 360); defined as 0 when a' = b = 0."""
    h = np.degrees(np.arctan2(b, a_prime))
    h = np.where(h >= 0.0, h, h + 360.0)
    return np.where((a_prime == 0.0) & (b == 0.0), 0.0, h)


def delta_e_2000_lab(
    lab1: NDArray[np.float64],
    lab2: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    CIEDE2000 color difference (kL = kC = kH = 1).

    Branch rules follow Sharma et al.:
    - Δh' is the signed hue difference folded into [-180, 180], and 0 if
      either adjusted chroma is 0.
    - The mean hue h̄' is the plain sum of both hues if either adjusted
      chroma is 0; otherwise the half-sum, shifted by ±360 when the hues
      are more than 180° apart (+360 if the sum is below 360, −360 if not).

    Args:
        lab1: Array of shape (..., 3) with Lab values
        lab2: Array of shape (..., 3) with Lab values

    Returns:
        Array of shape (...) with ΔE2000 values
    """
    L1, a1, b1 = _split(lab1)
    L2, a2, b2 = _split(lab2)

    # Chroma-dependent a* rescaling
    C1 = np.sqrt(a1 ** 2 + b1 ** 2)
    C2 = np.sqrt(a2 ** 2 + b2 ** 2)
    C_bar7 = ((C1 + C2) / 2.0) ** 7
    G = 0.5 * (1.0 - np.sqrt(C_bar7 / (C_bar7 + _POW25_7)))

    a1p = (1.0 + G) * a1
    a2p = (1.0 + G) * a2
    C1p = np.sqrt(a1p ** 2 + b1 ** 2)
    C2p = np.sqrt(a2p ** 2 + b2 ** 2)
    h1p = _hue_degrees(b1, a1p)
    h2p = _hue_degrees(b2, a2p)

    achromatic = (C1p * C2p) == 0.0

    # Differences
    dLp = L2 - L1
    dCp = C2p - C1p

    diff = h2p - h1p
    dhp = np.where(
        achromatic,
        0.0,
        np.where(
            np.abs(diff) <= 180.0,
            diff,
            np.where(diff > 180.0, diff - 360.0, diff + 360.0),
        ),
    )
    dHp = 2.0 * np.sqrt(C1p * C2p) * np.sin(np.radians(dhp / 2.0))

    # Means
    L_bar = (L1 + L2) / 2.0
    C_bar_p = (C1p + C2p) / 2.0

    h_sum = h1p + h2p
    h_bar = np.where(
        achromatic,
        h_sum,
        np.where(
            np.abs(h1p - h2p) <= 180.0,
            h_sum / 2.0,
            np.where(h_sum < 360.0, (h_sum + 360.0) / 2.0, (h_sum - 360.0) / 2.0),
        ),
    )

    # Weighting functions
    T = (
        1.0
        - 0.17 * np.cos(np.radians(h_bar - 30.0))
        + 0.24 * np.cos(np.radians(2.0 * h_bar))
        + 0.32 * np.cos(np.radians(3.0 * h_bar + 6.0))
        - 0.20 * np.cos(np.radians(4.0 * h_bar - 63.0))
    )
    d_theta = 30.0 * np.exp(-(((h_bar - 275.0) / 25.0) ** 2))
    C_bar_p7 = C_bar_p ** 7
    R_C = 2.0 * np.sqrt(C_bar_p7 / (C_bar_p7 + _POW25_7))
    L_off2 = (L_bar - 50.0) ** 2
    S_L = 1.0 + (0.015 * L_off2) / np.sqrt(20.0 + L_off2)
    S_C = 1.0 + 0.045 * C_bar_p
    S_H = 1.0 + 0.015 * C_bar_p * T
    R_T = -np.sin(np.radians(2.0 * d_theta)) * R_C

    term_L = dLp / S_L
    term_C = dCp / S_C
    term_H = dHp / S_H

    total = term_L ** 2 + term_C ** 2 + term_H ** 2 + R_T * term_C * term_H
    return np.sqrt(np.maximum(total, 0.0))


# =============================================================================
# Rgba convenience wrappers
# =============================================================================


def delta_e_76(c1: Rgba, c2: Rgba) -> float:
    """ΔE76 between two normalized sRGB colors (alpha ignored)."""
    return float(delta_e_76_lab(rgba_to_lab(c1), rgba_to_lab(c2)))


def delta_e_94(c1: Rgba, c2: Rgba) -> float:
    """ΔE94 between two normalized sRGB colors; ``c1`` is the reference."""
    return float(delta_e_94_lab(rgba_to_lab(c1), rgba_to_lab(c2)))


def delta_e_2000(c1: Rgba, c2: Rgba) -> float:
    """ΔE2000 between two normalized sRGB colors (alpha ignored)."""
    return float(delta_e_2000_lab(rgba_to_lab(c1), rgba_to_lab(c2)))


# =============================================================================
# Raw channel deviation
# =============================================================================

# Priority order for ties
_CHANNEL_ORDER = (Channel.R, Channel.G, Channel.B, Channel.A)


def channel_delta(c1: Rgba, c2: Rgba) -> ChannelDelta:
    """Absolute R/G/B difference in raw (non-Lab) space."""
    return ChannelDelta(
        r=abs(c1.r - c2.r),
        g=abs(c1.g - c2.g),
        b=abs(c1.b - c2.b),
    )


def max_channel(c1: Rgba, c2: Rgba) -> MaxChannel:
    """
    Channel with the largest absolute difference over R, G, B, A.

    Ties go to the earlier channel (R > G > B > A). If every channel is
    identical the result is ``MaxChannel(0.0, Channel.NONE)``.
    """
    deltas = [abs(v1 - v2) for v1, v2 in zip(c1.as_tuple(), c2.as_tuple())]

    best_value = deltas[0]
    best = _CHANNEL_ORDER[0]
    for channel, value in zip(_CHANNEL_ORDER[1:], deltas[1:]):
        if value > best_value:
            best_value = value
            best = channel

    if best_value == 0.0:
        return MaxChannel(value=0.0, name=Channel.NONE)
    return MaxChannel(value=best_value, name=best)
