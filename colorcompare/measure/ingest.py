# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Probe ingestion.

Normalizes a loosely structured probe record (as written by whatever
plugin or host sampled the pixels) into a CanonicalProbe. The raw shape
never leaves this module.

Accepted record layout (every field optional except that ``pixels``, when
present, must be a list)::

    {
      "probe_name": "...",        # or "plugin", "name"
      "software": "...",          # or "host", "source"
      "timestamp": "ISO-8601",    # or "time" (Unix seconds)
      "frame": 1001,              # or "frame_index"
      "bit_depth": "8u",          # or "bitDepth"
      "color_space": "sRGB",      # or "colorSpace"
      "kernel_size": "3x3",       # or "kernel size", "kernelSize",
                                  #    or "kernel_width" + "kernel_height"
      "image_size": {"width": 1920, "height": 1080},  # or "imagesize", "imageSize"
      "position": {"x": 0.5, "y": 0.5},
      "pixels": [
        {"id": "p0", "x": 0.1, "y": 0.2, "rgba": [r, g, b, a]},
        {"r": 128, "g": 64, "b": 32},
        ...
      ]
    }

Unrecognized keys are ignored. Numbers may be given as numeric strings; a
channel or coordinate that is not a finite number is treated as absent
(with a warning), so the channel falls back to 0 and the pixel position is
synthesized from the kernel.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from colorcompare.errors import IngestionError
from colorcompare.schema import CanonicalPixel, CanonicalProbe, Rgba

logger = logging.getLogger(__name__)


# =============================================================================
# Field aliases
# =============================================================================

_NAME_KEYS = ("probe_name", "plugin", "name")
_SOURCE_KEYS = ("software", "host", "source")
_FRAME_KEYS = ("frame", "frame_index")
_BIT_DEPTH_KEYS = ("bit_depth", "bitDepth")
_COLOR_SPACE_KEYS = ("color_space", "colorSpace")
_KERNEL_KEYS = ("kernel size", "kernel_size", "kernelSize")
_IMAGE_SIZE_KEYS = ("imagesize", "imageSize", "image_size")
_PIXEL_ID_KEYS = ("id", "identifier")

# Bit-depth tags that mark 0-255 channel values
_EIGHT_BIT_TAGS = ("8u", "8i")


@dataclass(frozen=True)
class IngestConfig:
    """Defaults applied when a probe record omits a field."""

    probe_name: str = "Unknown Probe"
    source_label: str = "Unknown Host"
    bit_depth: str = "Unknown"
    color_space: str = "Unknown"

    # Image resolution used to turn kernel offsets into normalized steps
    image_width: int = 1920
    image_height: int = 1080

    # Normalized kernel center
    position_x: float = 0.5
    position_y: float = 0.5


def _first(raw: Mapping, keys: tuple[str, ...]) -> Any:
    """First present, non-empty value among alias keys."""
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number(value: Any, what: str) -> Optional[float]:
    """
    Coerce a raw channel/coordinate value to a finite float.

    Numeric strings are accepted. Returns None (treated as absent) for
    missing, non-numeric or non-finite values.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            logger.warning("Ignoring non-numeric %s: %r", what, value)
            return None
    elif not _is_number(value):
        logger.warning("Ignoring non-numeric %s: %r", what, value)
        return None
    value = float(value)
    if not math.isfinite(value):
        logger.warning("Ignoring non-finite %s: %r", what, value)
        return None
    return value


def _parse_size(value: Any) -> Optional[tuple[int, int]]:
    """Parse ``"WxH"`` or ``{"width": W, "height": H}``; None if unusable."""
    if isinstance(value, str) and "x" in value:
        parts = value.lower().split("x")
        try:
            w, h = int(parts[0].strip()), int(parts[1].strip())
        except (ValueError, IndexError):
            return None
        return (w, h) if w > 0 and h > 0 else None
    if isinstance(value, Mapping):
        w, h = value.get("width"), value.get("height")
        if _is_number(w) and _is_number(h) and w > 0 and h > 0:
            return int(w), int(h)
    return None


# =============================================================================
# Metadata
# =============================================================================


def _resolve_timestamp(raw: Mapping, now: Optional[datetime]) -> str:
    if raw.get("timestamp"):
        return str(raw["timestamp"])
    seconds = _number(raw.get("time"), "time")
    if seconds is not None:
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
        except (OverflowError, OSError, ValueError):
            logger.warning("Ignoring out-of-range time: %r", raw["time"])
    return (now or datetime.now(timezone.utc)).isoformat()


def _resolve_frame(raw: Mapping) -> int:
    value = _first(raw, _FRAME_KEYS)
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        pass
    number = _number(value, "frame")
    if number is None:
        logger.warning("Using frame 0 in place of %r", value)
        return 0
    return int(number)


# =============================================================================
# Kernel shape
# =============================================================================


def _kernel_hint(raw: Mapping) -> Optional[tuple[int, int]]:
    """Kernel size declared by the record, if any."""
    hint = _parse_size(_first(raw, _KERNEL_KEYS))
    if hint is not None:
        return hint
    w, h = raw.get("kernel_width"), raw.get("kernel_height")
    if _is_number(w) and _is_number(h) and w > 0 and h > 0:
        return int(w), int(h)
    return None


def infer_kernel(pixel_count: int) -> tuple[int, int]:
    """
    Guess a sampling kernel from the pixel count alone.

    A perfect square n = k² becomes a k×k kernel; anything else is treated
    as a single row of n pixels.
    """
    root = math.isqrt(pixel_count)
    if root * root == pixel_count:
        return root, root
    return pixel_count, 1


def _position(p: Mapping, idx: int) -> Optional[tuple[float, float]]:
    """Supplied (x, y) for one pixel record; None if either is unusable."""
    x = _number(p.get("x"), f"pixel {idx} x")
    y = _number(p.get("y"), f"pixel {idx} y")
    if x is None or y is None:
        return None
    return x, y


# =============================================================================
# Pixels
# =============================================================================


def _raw_channels(p: Mapping, idx: int) -> tuple[list[float], Optional[float]]:
    """Raw (r, g, b) and alpha (None if absent) for one pixel record."""
    rgba = p.get("rgba")
    if isinstance(rgba, (list, tuple)) and len(rgba) >= 3:
        values = list(rgba[:3])
        alpha = _number(rgba[3], f"pixel {idx} alpha") if len(rgba) > 3 else None
    else:
        values = [p.get(c) for c in ("r", "g", "b")]
        alpha = _number(p.get("a"), f"pixel {idx} a")

    rgb = []
    for name, value in zip("rgb", values):
        number = _number(value, f"pixel {idx} {name}")
        rgb.append(0.0 if number is None else number)
    return rgb, alpha


def _needs_rescale(bit_depth: str, raw_rgb: list[list[float]]) -> bool:
    """True if color channels are on the 0-255 scale."""
    tag = bit_depth.lower()
    if any(t in tag for t in _EIGHT_BIT_TAGS):
        return True
    return any(v > 1.0 for rgb in raw_rgb for v in rgb)


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


# =============================================================================
# Main entry points
# =============================================================================


def ingest_probe(
    raw: Mapping,
    config: Optional[IngestConfig] = None,
    *,
    now: Optional[datetime] = None,
) -> CanonicalProbe:
    """
    Normalize a raw probe record into a CanonicalProbe.

    Steps, in order:
    1. Resolve metadata through field aliases, falling back to defaults.
    2. Resolve the kernel shape: declared hint, else (if pixels lack
       coordinates) inferred from the pixel count.
    3. Synthesize coordinates for pixels missing x/y by laying the kernel
       out around ``position`` with one-pixel steps of the image size.
    4. Rescale 0-255 values to [0, 1] (8-bit tag, or any color > 1.0).
    5. Synthesize identifiers for pixels without one.

    The function is deterministic: the same record (and ``now``) always
    produces the same probe.

    Args:
        raw: Decoded probe record
        config: Defaults for absent fields (uses IngestConfig() if None)
        now: Timestamp used when the record carries none (default: current UTC)

    Returns:
        CanonicalProbe

    Raises:
        IngestionError: If the record or its pixels are not structured data
    """
    if not isinstance(raw, Mapping):
        raise IngestionError(
            f"Probe record must be a JSON object, got {type(raw).__name__}"
        )

    cfg = config or IngestConfig()

    raw_pixels = raw.get("pixels")
    if raw_pixels is None:
        raw_pixels = []
    if not isinstance(raw_pixels, (list, tuple)):
        raise IngestionError(
            f"'pixels' must be a list, got {type(raw_pixels).__name__}"
        )
    for idx, p in enumerate(raw_pixels):
        if not isinstance(p, Mapping):
            raise IngestionError(
                f"pixel {idx} must be an object, got {type(p).__name__}"
            )

    bit_depth = str(_first(raw, _BIT_DEPTH_KEYS) or cfg.bit_depth)

    # Kernel shape
    kernel = _kernel_hint(raw)
    positions = [_position(p, idx) for idx, p in enumerate(raw_pixels)]
    missing_coords = any(pos is None for pos in positions)
    if missing_coords and kernel is None:
        kernel = infer_kernel(len(raw_pixels))
        logger.debug(
            "Inferred %dx%d kernel from %d pixels", kernel[0], kernel[1], len(raw_pixels)
        )

    # Coordinate synthesis parameters
    image_size = _parse_size(_first(raw, _IMAGE_SIZE_KEYS))
    image_w, image_h = image_size or (cfg.image_width, cfg.image_height)
    position = raw.get("position")
    if not isinstance(position, Mapping):
        position = {}
    pos_x = _number(position.get("x"), "position.x")
    pos_y = _number(position.get("y"), "position.y")
    if pos_x is None:
        pos_x = cfg.position_x
    if pos_y is None:
        pos_y = cfg.position_y
    step_x = 1.0 / image_w
    step_y = 1.0 / image_h

    # Value scale
    channels = [_raw_channels(p, idx) for idx, p in enumerate(raw_pixels)]
    rescale = _needs_rescale(bit_depth, [rgb for rgb, _ in channels])
    if rescale:
        logger.debug("Rescaling 0-255 channel values (bit depth %r)", bit_depth)

    pixels: list[CanonicalPixel] = []
    clamped = 0

    for idx, (p, supplied, (rgb, alpha)) in enumerate(zip(raw_pixels, positions, channels)):
        if rescale:
            rgb = [v / 255.0 for v in rgb]
            if alpha is None:
                alpha = 255.0
        elif alpha is None:
            alpha = 1.0
        if alpha > 1.0:
            alpha /= 255.0

        values = rgb + [alpha]
        if any(not 0.0 <= v <= 1.0 for v in values):
            clamped += 1
            values = [_clamp(v) for v in values]

        # Coordinates
        row = col = None
        if supplied is not None:
            x, y = supplied
            synthesized_position = False
        else:
            # kernel is always resolved once any pixel lacks a position
            kernel_w, kernel_h = kernel
            row, col = divmod(idx, kernel_w)
            x = pos_x + (col - (kernel_w - 1) / 2.0) * step_x
            y = pos_y + (row - (kernel_h - 1) / 2.0) * step_y
            synthesized_position = True

        # Identifier
        identifier = _first(p, _PIXEL_ID_KEYS)
        if identifier is not None:
            identifier = str(identifier)
            synthesized_id = False
        elif row is not None:
            identifier = f"k{idx}_r{row}_c{col}"
            synthesized_id = True
        else:
            identifier = f"pt_{idx}"
            synthesized_id = True

        pixels.append(CanonicalPixel(
            identifier=identifier,
            x=x,
            y=y,
            rgba=Rgba(*values),
            identifier_synthesized=synthesized_id,
            position_synthesized=synthesized_position,
        ))

    if clamped:
        logger.debug("Clamped %d pixel(s) with channels outside [0, 1]", clamped)

    return CanonicalProbe(
        name=str(_first(raw, _NAME_KEYS) or cfg.probe_name),
        source_label=str(_first(raw, _SOURCE_KEYS) or cfg.source_label),
        timestamp=_resolve_timestamp(raw, now),
        frame_index=_resolve_frame(raw),
        bit_depth=bit_depth,
        color_space=str(_first(raw, _COLOR_SPACE_KEYS) or cfg.color_space),
        pixels=tuple(pixels),
        kernel=kernel,
    )


def load_probe(
    source: Union[str, Path, bytes, Mapping],
    config: Optional[IngestConfig] = None,
    *,
    now: Optional[datetime] = None,
) -> CanonicalProbe:
    """
    Load and ingest a probe from a file, JSON text, or decoded record.

    Args:
        source: One of:
            - Path to a JSON file (Path, or str that names an existing file)
            - JSON text (str or bytes)
            - An already decoded mapping
        config: Ingestion defaults
        now: Timestamp used when the record carries none

    Returns:
        CanonicalProbe

    Raises:
        IngestionError: If the input is not parseable structured data.
            The error carries the path as ``source`` when loading a file.
    """
    label: Optional[str] = None

    if isinstance(source, Mapping):
        raw = source
    else:
        text: Union[str, bytes]
        if isinstance(source, Path) or (
            isinstance(source, str) and not source.lstrip().startswith(("{", "["))
        ):
            label = str(source)
            try:
                text = Path(source).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise IngestionError(f"Cannot read probe file: {e}", source=label) from e
        elif isinstance(source, (str, bytes)):
            text = source
        else:
            raise IngestionError(
                f"Expected file path, JSON text or mapping, got {type(source).__name__}"
            )

        try:
            raw = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise IngestionError(f"Invalid JSON: {e}", source=label) from e

    try:
        return ingest_probe(raw, config, now=now)
    except IngestionError as e:
        if label and e.source is None:
            raise IngestionError(str(e), source=label) from e
        raise
