# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Canonical schema for probe comparison.

Design principles:
- Immutable: All types are frozen dataclasses
- Deterministic: Same probes + threshold → same comparison
- Replaced, never mutated: a recompute produces a whole new result
- Serializable: JSON-ready for delivery to report collaborators

Two kinds of objects live here:

    Probes (input side)      CanonicalPixel, CanonicalProbe
    Comparison (output side) ComparisonPoint, AnalysisStats, ComparisonResult

All color channels on the input side are normalized to [0, 1]. ΔE values
on the output side are in CIE units (1.0 ≈ just noticeable difference).
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0"


# =============================================================================
# Enumerations
# =============================================================================


class MatchStrategy(Enum):
    """How reference pixels were paired with test pixels."""
    IDENTIFIER = "identifier"  # supplied pixel ids
    COORDINATE = "coordinate"  # quantized (x, y) positions
    SEQUENTIAL = "sequential"  # storage order, equal lengths only
    NONE = "none"              # no usable alignment


class PassCriterion(Enum):
    """Which ΔE metric decides pass/fail against the threshold."""
    DE2000 = "de2000"  # primary
    DE76 = "de76"      # legacy


class Channel(Enum):
    """Color channel designation for max-deviation reporting."""
    R = "R"
    G = "G"
    B = "B"
    A = "A"
    NONE = "None"  # all four channels identical


class Severity(Enum):
    """
    Deviation band relative to the pass threshold t.

    Bands are half-open: excellent < 0.5t ≤ pass < t ≤ marginal < 1.5t
    ≤ fail < 3t ≤ critical.
    """
    EXCELLENT = "excellent"
    PASS = "pass"
    MARGINAL = "marginal"
    FAIL = "fail"
    CRITICAL = "critical"


# =============================================================================
# Core Color Type
# =============================================================================


@dataclass(frozen=True, slots=True)
class Rgba:
    """
    A normalized RGBA color.

    Channels are plain floats. Range checks live on CanonicalPixel, which
    is where the [0, 1] invariant is owned.
    """
    r: float
    g: float
    b: float
    a: float = 1.0

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.r, self.g, self.b, self.a)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {"r": self.r, "g": self.g, "b": self.b, "a": self.a}

    @classmethod
    def from_dict(cls, data: dict) -> Rgba:
        """Deserialize from dictionary."""
        return cls(r=data["r"], g=data["g"], b=data["b"], a=data.get("a", 1.0))

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> Rgba:
        """Build from ``[r, g, b]`` or ``[r, g, b, a]``."""
        a = values[3] if len(values) > 3 else 1.0
        return cls(float(values[0]), float(values[1]), float(values[2]), float(a))


# =============================================================================
# Probe Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class CanonicalPixel:
    """
    One sampled pixel after ingestion.

    Attributes:
        identifier: Pixel id (supplied or synthesized), None if unknown
        x: Horizontal position (normalized image coordinates)
        y: Vertical position (normalized image coordinates)
        rgba: Color, every channel in [0, 1]
        identifier_synthesized: True if the id was generated during ingestion
        position_synthesized: True if x/y were generated during ingestion

    Synthesized ids and positions are stable labels for display, but by
    default they do not take part in identifier/coordinate matching.
    """
    identifier: Optional[str]
    x: float
    y: float
    rgba: Rgba
    identifier_synthesized: bool = False
    position_synthesized: bool = False

    def __post_init__(self) -> None:
        """Validate position and channel range."""
        for name, value in (("x", self.x), ("y", self.y)):
            if not math.isfinite(value):
                raise ValueError(f"Position {name} must be finite, got {value}")
        for name, value in zip("rgba", self.rgba.as_tuple()):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Channel {name} must be 0-1, got {value}")

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        d = {
            "id": self.identifier,
            "x": self.x,
            "y": self.y,
            "rgba": list(self.rgba.as_tuple()),
        }
        if self.identifier_synthesized:
            d["id_synthesized"] = True
        if self.position_synthesized:
            d["position_synthesized"] = True
        return d

    @classmethod
    def from_dict(cls, data: dict) -> CanonicalPixel:
        """Deserialize from dictionary."""
        return cls(
            identifier=data.get("id"),
            x=data["x"],
            y=data["y"],
            rgba=Rgba.from_sequence(data["rgba"]),
            identifier_synthesized=data.get("id_synthesized", False),
            position_synthesized=data.get("position_synthesized", False),
        )


@dataclass(frozen=True, slots=True)
class CanonicalProbe:
    """
    One ingested measurement file.

    Created once per load and replaced wholesale on re-ingestion.

    Attributes:
        name: Probe name ("Unknown Probe" if not supplied)
        source_label: Producing engine/host ("Unknown Host" if not supplied)
        timestamp: ISO-8601 timestamp string
        frame_index: Frame number the samples were taken from
        bit_depth: Bit-depth tag as supplied (e.g. "8u", "32f")
        color_space: Color-space tag as supplied (e.g. "sRGB", "Linear")
        pixels: Canonical pixels in storage order
        kernel: Resolved (width, height) sampling kernel, if any
    """
    name: str
    source_label: str
    timestamp: str
    frame_index: int
    bit_depth: str
    color_space: str
    pixels: tuple[CanonicalPixel, ...]
    kernel: Optional[tuple[int, int]] = None

    @property
    def sample_count(self) -> int:
        return len(self.pixels)

    @property
    def synthesized_coordinates(self) -> bool:
        """True if any pixel position was generated during ingestion."""
        return any(p.position_synthesized for p in self.pixels)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        d = {
            "probe_name": self.name,
            "software": self.source_label,
            "timestamp": self.timestamp,
            "frame": self.frame_index,
            "bit_depth": self.bit_depth,
            "color_space": self.color_space,
            "pixels": [p.to_dict() for p in self.pixels],
        }
        if self.kernel is not None:
            d["kernel_size"] = f"{self.kernel[0]}x{self.kernel[1]}"
        return d

    @classmethod
    def from_dict(cls, data: dict) -> CanonicalProbe:
        """Deserialize from a dictionary produced by ``to_dict``."""
        kernel = None
        if data.get("kernel_size"):
            w, h = data["kernel_size"].split("x")
            kernel = (int(w), int(h))
        return cls(
            name=data["probe_name"],
            source_label=data["software"],
            timestamp=data["timestamp"],
            frame_index=data["frame"],
            bit_depth=data["bit_depth"],
            color_space=data["color_space"],
            pixels=tuple(CanonicalPixel.from_dict(p) for p in data["pixels"]),
            kernel=kernel,
        )


# =============================================================================
# Comparison Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class ChannelDelta:
    """Absolute per-channel difference between reference and test (RGB)."""
    r: float
    g: float
    b: float

    def to_dict(self) -> dict:
        return {"r": self.r, "g": self.g, "b": self.b}

    @classmethod
    def from_dict(cls, data: dict) -> ChannelDelta:
        return cls(r=data["r"], g=data["g"], b=data["b"])


@dataclass(frozen=True, slots=True)
class MaxChannel:
    """
    The channel with the largest absolute deviation.

    Ties resolve R > G > B > A. If all four deltas are zero the channel
    is ``Channel.NONE`` and the value is 0.
    """
    value: float
    name: Channel

    def to_dict(self) -> dict:
        return {"value": self.value, "name": self.name.value}

    @classmethod
    def from_dict(cls, data: dict) -> MaxChannel:
        return cls(value=data["value"], name=Channel(data["name"]))


@dataclass(frozen=True, slots=True)
class ComparisonPoint:
    """
    Comparison of one aligned reference/test pixel pair.

    Attributes:
        id: Reference pixel id, or ``pt_<index>`` when it has none
        normalized_x: x rescaled into [0, 1] over the matched bounding box
        normalized_y: y rescaled into [0, 1] over the matched bounding box
        original_x: Reference pixel x as ingested
        original_y: Reference pixel y as ingested
        reference_color: Reference RGBA
        test_color: Test RGBA
        delta_e_76: CIE76 Euclidean Lab distance
        delta_e_94: CIE94 (graphic arts weights)
        delta_e_2000: CIEDE2000
        channel_delta: Absolute R/G/B deviation
        max_channel: Largest absolute deviation over R/G/B/A
    """
    id: str
    normalized_x: float
    normalized_y: float
    original_x: float
    original_y: float
    reference_color: Rgba
    test_color: Rgba
    delta_e_76: float
    delta_e_94: float
    delta_e_2000: float
    channel_delta: ChannelDelta
    max_channel: MaxChannel

    def delta_e(self, criterion: PassCriterion) -> float:
        """ΔE value used by a pass criterion."""
        if criterion == PassCriterion.DE76:
            return self.delta_e_76
        return self.delta_e_2000

    def passes(self, threshold: float, criterion: PassCriterion = PassCriterion.DE2000) -> bool:
        return self.delta_e(criterion) <= threshold

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "x": self.normalized_x,
            "y": self.normalized_y,
            "orig_x": self.original_x,
            "orig_y": self.original_y,
            "ref_rgba": self.reference_color.to_dict(),
            "test_rgba": self.test_color.to_dict(),
            "delta_e_76": self.delta_e_76,
            "delta_e_94": self.delta_e_94,
            "delta_e_2000": self.delta_e_2000,
            "channel_delta": self.channel_delta.to_dict(),
            "max_channel": self.max_channel.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> ComparisonPoint:
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            normalized_x=data["x"],
            normalized_y=data["y"],
            original_x=data["orig_x"],
            original_y=data["orig_y"],
            reference_color=Rgba.from_dict(data["ref_rgba"]),
            test_color=Rgba.from_dict(data["test_rgba"]),
            delta_e_76=data["delta_e_76"],
            delta_e_94=data["delta_e_94"],
            delta_e_2000=data["delta_e_2000"],
            channel_delta=ChannelDelta.from_dict(data["channel_delta"]),
            max_channel=MaxChannel.from_dict(data["max_channel"]),
        )


@dataclass(frozen=True, slots=True)
class AnalysisStats:
    """
    Summary statistics over a comparison.

    Derived purely from the ComparisonPoint sequence. All fields are zero
    when nothing was aligned.

    Attributes:
        avg_delta_e_76: Mean ΔE76
        avg_delta_e_94: Mean ΔE94
        avg_delta_e_2000: Mean ΔE2000
        max_delta_e_76: Maximum ΔE76
        max_delta_e_2000: Maximum ΔE2000
        max_channel_delta: Maximum single-channel deviation (R/G/B/A)
        pass_rate: Percentage (0-100) of pairs within the threshold
        sample_count: Number of aligned pairs
    """
    avg_delta_e_76: float = 0.0
    avg_delta_e_94: float = 0.0
    avg_delta_e_2000: float = 0.0
    max_delta_e_76: float = 0.0
    max_delta_e_2000: float = 0.0
    max_channel_delta: float = 0.0
    pass_rate: float = 0.0
    sample_count: int = 0

    def __post_init__(self) -> None:
        """Validate ranges."""
        if self.sample_count < 0:
            raise ValueError(f"Sample count must be >= 0, got {self.sample_count}")
        if not 0.0 <= self.pass_rate <= 100.0:
            raise ValueError(f"Pass rate must be 0-100, got {self.pass_rate}")

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "avg_delta_e_76": self.avg_delta_e_76,
            "avg_delta_e_94": self.avg_delta_e_94,
            "avg_delta_e_2000": self.avg_delta_e_2000,
            "max_delta_e_76": self.max_delta_e_76,
            "max_delta_e_2000": self.max_delta_e_2000,
            "max_channel_delta": self.max_channel_delta,
            "pass_rate": self.pass_rate,
            "sample_count": self.sample_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> AnalysisStats:
        """Deserialize from dictionary."""
        return cls(**{k: data[k] for k in cls.__dataclass_fields__ if k in data})


# =============================================================================
# Top-Level Result Container
# =============================================================================


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """
    Complete output of one recompute.

    This is the ``{strategy, comparison_points, stats}`` bundle handed to
    presentation and report collaborators. It also records the inputs that
    shaped it (threshold, criterion, per-probe sample counts) so an empty
    result can be diagnosed.

    Attributes:
        strategy: Alignment strategy that was selected
        points: Comparison points in reference order
        stats: Summary statistics over ``points``
        threshold: Pass/fail threshold in ΔE units
        criterion: Metric compared against the threshold
        reference_count: Number of reference pixels
        test_count: Number of test pixels
        version: Schema version
    """
    strategy: MatchStrategy
    points: tuple[ComparisonPoint, ...]
    stats: AnalysisStats
    threshold: float = 1.0
    criterion: PassCriterion = PassCriterion.DE2000
    reference_count: int = 0
    test_count: int = 0
    version: str = field(default=SCHEMA_VERSION)

    def __post_init__(self) -> None:
        """Validate result structure."""
        if not self.threshold >= 0.0:
            raise ValueError(f"Threshold must be >= 0, got {self.threshold}")
        if self.stats.sample_count != len(self.points):
            raise ValueError(
                f"Stats sample count {self.stats.sample_count} does not match "
                f"{len(self.points)} points"
            )

    @property
    def is_empty(self) -> bool:
        """True when no pixel pairs could be aligned."""
        return not self.points

    def top_deviations(self, k: int = 5) -> tuple[ComparisonPoint, ...]:
        """The k points with the largest ΔE2000 (stable order on ties)."""
        from colorcompare.measure.aggregate import top_deviations
        return top_deviations(self.points, k)

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON output."""
        return {
            "version": self.version,
            "strategy": self.strategy.value,
            "threshold": self.threshold,
            "criterion": self.criterion.value,
            "reference_count": self.reference_count,
            "test_count": self.test_count,
            "stats": self.stats.to_dict(),
            "comparison_points": [p.to_dict() for p in self.points],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def to_prompt(self, top_k: int = 5) -> str:
        """
        Render the report prompt for the AI-report collaborator.

        See ``colorcompare.runtime.serializers.report.to_report_prompt``.
        """
        # Import here to avoid circular imports
        from colorcompare.runtime.serializers.report import to_report_prompt
        return to_report_prompt(self, top_k=top_k)

    @classmethod
    def from_dict(cls, data: dict) -> ComparisonResult:
        """Deserialize from dictionary."""
        return cls(
            version=data.get("version", SCHEMA_VERSION),
            strategy=MatchStrategy(data["strategy"]),
            points=tuple(ComparisonPoint.from_dict(p) for p in data["comparison_points"]),
            stats=AnalysisStats.from_dict(data["stats"]),
            threshold=data.get("threshold", 1.0),
            criterion=PassCriterion(data.get("criterion", PassCriterion.DE2000.value)),
            reference_count=data.get("reference_count", 0),
            test_count=data.get("test_count", 0),
        )

    @classmethod
    def from_json(cls, json_str: str) -> ComparisonResult:
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))
