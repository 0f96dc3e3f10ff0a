# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Pixel alignment between a reference and a test probe.

Three tiers, chosen once per comparison:

1. Identifier  -- pixels share supplied ids
2. Coordinate  -- pixels share (x, y) quantized to 5 decimals
3. Sequential  -- pixels share storage index (equal lengths only)

If none applies the alignment is empty. Reference pixels without a
counterpart are dropped; that is not an error.

Duplicate keys within the test probe: the lookup containers keep the
LAST pixel written under a key by default. This mirrors the established
behavior of the tool and is kept for compatibility; ``FIRST_WINS`` is
available through MatchConfig.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Hashable, Iterator, Optional, Sequence, TypeVar

from colorcompare.schema import CanonicalPixel, MatchStrategy

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


class DuplicatePolicy(Enum):
    """What a lookup does when two test pixels share a key."""
    LAST_WINS = "last_wins"
    FIRST_WINS = "first_wins"


@dataclass(frozen=True)
class MatchConfig:
    """Configuration for pixel alignment."""

    # Decimal digits kept when quantizing coordinates
    coordinate_precision: int = 5

    duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS

    # Let ids/positions generated during ingestion take part in matching.
    # Off by default: two probes that both lack ids would otherwise
    # "match" on their positional labels.
    match_synthesized: bool = False


# =============================================================================
# Lookup containers
# =============================================================================


class PixelIndex(Generic[K]):
    """
    Key → pixel lookup with an explicit duplicate-key policy.

    Under ``LAST_WINS`` a later ``add`` with an existing key replaces the
    earlier pixel; under ``FIRST_WINS`` it is ignored.
    """

    def __init__(self, policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS) -> None:
        self.policy = policy
        self._items: dict[K, CanonicalPixel] = {}
        self.duplicates = 0

    def add(self, key: K, pixel: CanonicalPixel) -> None:
        if key in self._items:
            self.duplicates += 1
            if self.policy == DuplicatePolicy.FIRST_WINS:
                return
        self._items[key] = pixel

    def get(self, key: K) -> Optional[CanonicalPixel]:
        return self._items.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[K]:
        return iter(self._items)


class CoordinateIndex(PixelIndex[tuple[int, int]]):
    """
    Pixel lookup keyed by quantized (x, y).

    Coordinates are quantized to ``precision`` decimals. A query that
    misses its own cell also checks the 8 neighbouring cells and accepts
    the closest pixel lying within one quantum on both axes, so points
    that differ by less than 10^-precision always find each other even
    when they straddle a rounding boundary.
    """

    def __init__(
        self,
        precision: int = 5,
        policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
    ) -> None:
        super().__init__(policy)
        self.precision = precision
        self._scale = 10 ** precision
        self._tolerance = 10.0 ** -precision

    def key(self, x: float, y: float) -> tuple[int, int]:
        """Quantized cell of a coordinate (round half up)."""
        return (
            math.floor(x * self._scale + 0.5),
            math.floor(y * self._scale + 0.5),
        )

    def add_pixel(self, pixel: CanonicalPixel) -> None:
        self.add(self.key(pixel.x, pixel.y), pixel)

    def find(self, x: float, y: float) -> Optional[CanonicalPixel]:
        """Pixel at (x, y) within tolerance, or None."""
        kx, ky = self.key(x, y)
        exact = self.get((kx, ky))
        if exact is not None:
            return exact

        best: Optional[CanonicalPixel] = None
        best_dist = math.inf
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                candidate = self.get((kx + dx, ky + dy))
                if candidate is None:
                    continue
                ex, ey = abs(candidate.x - x), abs(candidate.y - y)
                if ex < self._tolerance and ey < self._tolerance:
                    dist = math.hypot(ex, ey)
                    if dist < best_dist:
                        best, best_dist = candidate, dist
        return best


# =============================================================================
# Strategy selection
# =============================================================================


def select_strategy(
    identifier_matches: int,
    coordinate_matches: int,
    reference_count: int,
    test_count: int,
) -> MatchStrategy:
    """
    Decide how to align two pixel sequences.

    - IDENTIFIER if any id matched and ids matched at least as often as
      coordinates
    - else COORDINATE if any coordinate matched
    - else SEQUENTIAL if both sequences have the same length
    - else NONE
    """
    if identifier_matches > 0 and identifier_matches >= coordinate_matches:
        return MatchStrategy.IDENTIFIER
    if coordinate_matches > 0:
        return MatchStrategy.COORDINATE
    if reference_count == test_count:
        return MatchStrategy.SEQUENTIAL
    return MatchStrategy.NONE


# =============================================================================
# Alignment
# =============================================================================


@dataclass(frozen=True)
class AlignedPair:
    """A reference pixel, its storage index, and its test counterpart."""
    index: int
    reference: CanonicalPixel
    test: CanonicalPixel


@dataclass(frozen=True)
class Alignment:
    """
    Result of aligning two probes.

    Attributes:
        strategy: Strategy that produced ``pairs``
        pairs: Aligned pairs in reference order
        identifier_matches: Reference pixels whose id exists in the test probe
        coordinate_matches: Reference pixels whose position exists in the test probe
    """
    strategy: MatchStrategy
    pairs: tuple[AlignedPair, ...]
    identifier_matches: int = 0
    coordinate_matches: int = 0


def _match_id(pixel: CanonicalPixel, cfg: MatchConfig) -> Optional[str]:
    if not pixel.identifier:
        return None
    if pixel.identifier_synthesized and not cfg.match_synthesized:
        return None
    return pixel.identifier


def _has_match_position(pixel: CanonicalPixel, cfg: MatchConfig) -> bool:
    return cfg.match_synthesized or not pixel.position_synthesized


def align_pixels(
    reference: Sequence[CanonicalPixel],
    test: Sequence[CanonicalPixel],
    config: Optional[MatchConfig] = None,
) -> Alignment:
    """
    Align reference pixels to test pixels.

    Args:
        reference: Reference pixels, in storage order
        test: Test pixels, in storage order
        config: Matching options (uses MatchConfig() if None)

    Returns:
        Alignment with the chosen strategy and the aligned pairs
    """
    cfg = config or MatchConfig()

    by_id: PixelIndex[str] = PixelIndex(cfg.duplicate_policy)
    by_coord = CoordinateIndex(cfg.coordinate_precision, cfg.duplicate_policy)

    for p in test:
        pid = _match_id(p, cfg)
        if pid is not None:
            by_id.add(pid, p)
        if _has_match_position(p, cfg):
            by_coord.add_pixel(p)

    if by_id.duplicates or by_coord.duplicates:
        logger.debug(
            "Test probe has %d duplicate id(s) and %d duplicate coordinate key(s); "
            "policy %s",
            by_id.duplicates, by_coord.duplicates, cfg.duplicate_policy.value,
        )

    id_matches = 0
    coord_matches = 0
    for p in reference:
        pid = _match_id(p, cfg)
        if pid is not None and pid in by_id:
            id_matches += 1
        if _has_match_position(p, cfg) and by_coord.find(p.x, p.y) is not None:
            coord_matches += 1

    strategy = select_strategy(id_matches, coord_matches, len(reference), len(test))
    logger.debug(
        "Alignment: %d id matches, %d coordinate matches, %d/%d pixels -> %s",
        id_matches, coord_matches, len(reference), len(test), strategy.value,
    )

    pairs: list[AlignedPair] = []
    for idx, ref in enumerate(reference):
        counterpart: Optional[CanonicalPixel] = None

        if strategy == MatchStrategy.IDENTIFIER:
            pid = _match_id(ref, cfg)
            if pid is not None:
                counterpart = by_id.get(pid)
        elif strategy == MatchStrategy.COORDINATE:
            if _has_match_position(ref, cfg):
                counterpart = by_coord.find(ref.x, ref.y)
        elif strategy == MatchStrategy.SEQUENTIAL:
            counterpart = test[idx]

        if counterpart is not None:
            pairs.append(AlignedPair(index=idx, reference=ref, test=counterpart))

    return Alignment(
        strategy=strategy,
        pairs=tuple(pairs),
        identifier_matches=id_matches,
        coordinate_matches=coord_matches,
    )
