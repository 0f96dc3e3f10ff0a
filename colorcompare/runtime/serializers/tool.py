# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Tool output serializer for function-calling consumers.

Formats a ComparisonResult as a tool/function result. The output is
structured JSON that a model or a dashboard can parse directly.
"""

from __future__ import annotations

from colorcompare.runtime.serializers.base import SerializerFormat, dump_json
from colorcompare.measure.summary import error_histogram, severity_counts
from colorcompare.schema import ComparisonResult


def to_tool_output(
    result: ComparisonResult,
    *,
    format: SerializerFormat = SerializerFormat.JSON,
    include_points: bool = True,
    include_summary: bool = False,
    compact: bool = False,
    top_k: int = 5,
    comparison_id: str | None = None,
) -> str:
    """Serialize a ComparisonResult as tool output JSON.

    The result is returned as if it were the answer to a
    ``compare_color_probes`` tool call.

    Args:
        result: The ComparisonResult to serialize.
        format: Output format (JSON or JSON_PRETTY).
        include_points: Include every comparison point.
        include_summary: Include the ΔE2000 histogram and severity counts.
        compact: Minimal representation. Values rounded to 4 decimals,
            only the ``top_k`` worst points, no channel breakdown.
        top_k: Number of worst points listed under ``worst``.
        comparison_id: Optional identifier for multi-comparison contexts.

    Returns:
        JSON string suitable for tool output.

    Example (compact=True)::

        {
          "tool": "colorcompare_probe_comparison",
          "strategy": "identifier",
          "threshold": 1.0,
          "criterion": "de2000",
          "stats": {"avg_de2000": 0.1234, "max_de2000": 1.5, "pass_rate": 98.8, "n": 81},
          "worst": [{"id": "pt_4_4", "de2000": 1.5}]
        }
    """
    if compact:
        data = _build_compact_data(result, top_k=top_k, comparison_id=comparison_id)
    else:
        data = _build_tool_data(
            result,
            include_points=include_points,
            include_summary=include_summary,
            top_k=top_k,
            comparison_id=comparison_id,
        )
    return dump_json(data, format)


def _header(result: ComparisonResult, comparison_id: str | None) -> dict:
    data: dict = {"tool": "colorcompare_probe_comparison"}
    if comparison_id:
        data["comparison_id"] = comparison_id
    data["version"] = result.version
    data["strategy"] = result.strategy.value
    data["threshold"] = result.threshold
    data["criterion"] = result.criterion.value
    return data


def _build_compact_data(
    result: ComparisonResult,
    top_k: int,
    comparison_id: str | None,
) -> dict:
    """Minimal bundle: headline stats and the worst points only."""
    data = _header(result, comparison_id)
    data.pop("version")
    s = result.stats
    data["stats"] = {
        "avg_de2000": round(s.avg_delta_e_2000, 4),
        "max_de2000": round(s.max_delta_e_2000, 4),
        "pass_rate": round(s.pass_rate, 1),
        "n": s.sample_count,
    }
    data["worst"] = [
        {"id": p.id, "de2000": round(p.delta_e_2000, 4)}
        for p in result.top_deviations(top_k)
    ]
    return data


def _build_tool_data(
    result: ComparisonResult,
    include_points: bool,
    include_summary: bool,
    top_k: int,
    comparison_id: str | None,
) -> dict:
    """Build the full tool output structure."""
    data = _header(result, comparison_id)
    data["reference_count"] = result.reference_count
    data["test_count"] = result.test_count
    data["stats"] = result.stats.to_dict()
    data["worst"] = [p.id for p in result.top_deviations(top_k)]

    if include_summary:
        data["histogram"] = [b.to_dict() for b in error_histogram(result.points)]
        data["severity"] = {
            band.value: count
            for band, count in severity_counts(result.points, result.threshold).items()
        }

    if include_points:
        data["comparison_points"] = [p.to_dict() for p in result.points]

    return data
