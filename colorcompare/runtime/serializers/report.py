# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Report prompt serializer for the AI-report collaborator.

Formats the statistics and the worst deviations of a ComparisonResult as
the text handed to a language model that writes the diagnosis. Sending
the prompt is the collaborator's job, not ours.
"""

from __future__ import annotations

import json

from colorcompare.runtime.serializers.base import SerializerFormat
from colorcompare.schema import ComparisonResult, PassCriterion

_INSTRUCTIONS = (
    "As a color science expert, please analyze the following color comparison data.",
    "Your task is to:",
    "1. Evaluate the overall color matching quality (based on Delta E 2000).",
    "2. Analyze where and on which channel the maximum deviations occur.",
    "3. Speculate on possible causes for significant deviations (e.g., gamma "
    "correction issues, color space conversion errors, or compression artifacts).",
    "4. Provide brief technical recommendations.",
)


def to_report_prompt(
    result: ComparisonResult,
    *,
    format: SerializerFormat = SerializerFormat.NATURAL,
    top_k: int = 5,
    preamble: bool = True,
) -> str:
    """Serialize a ComparisonResult as an analysis prompt.

    Args:
        result: The ComparisonResult to describe.
        format: NATURAL (plain text) or JSON.
        top_k: Number of worst points (by ΔE2000) to list.
        preamble: Include the analysis instructions.

    Returns:
        Prompt text.

    Example (NATURAL, preamble=False)::

        Strategy: identifier (81 of 81 reference pixels compared)

        Statistics:
        - Average Delta E (2000): 0.4123
        - Max Delta E (2000): 1.2087
        ...
        - Pass Rate (Threshold 1.0 on DE2000): 97.5%

        Worst 5 Points of Deviation (based on DE2000):
        - ID: pt_4_4, Delta E(00): 1.2087, Max Ch: G 0.0312, Ref RGB: [0.44,0.44,0.50]
        ...
    """
    if format == SerializerFormat.NATURAL:
        return _to_natural(result, top_k, preamble)
    return _to_json_block(result, top_k, preamble)


def _criterion_label(criterion: PassCriterion) -> str:
    return "DE76" if criterion == PassCriterion.DE76 else "DE2000"


def _to_natural(result: ComparisonResult, top_k: int, preamble: bool) -> str:
    """Generate the plain-text prompt."""
    lines: list[str] = []

    if preamble:
        lines.extend(_INSTRUCTIONS)
        lines.append("")

    s = result.stats
    lines.append(
        f"Strategy: {result.strategy.value} "
        f"({s.sample_count} of {result.reference_count} reference pixels compared)"
    )
    lines.append("")

    if result.is_empty:
        lines.append(
            f"No pixels could be aligned: reference has {result.reference_count} "
            f"pixels, test has {result.test_count}."
        )
        return "\n".join(lines)

    lines.extend([
        "Statistics:",
        f"- Average Delta E (2000): {s.avg_delta_e_2000:.4f}",
        f"- Max Delta E (2000): {s.max_delta_e_2000:.4f}",
        f"- Average Delta E (94): {s.avg_delta_e_94:.4f}",
        f"- Average Delta E (76): {s.avg_delta_e_76:.4f}",
        f"- Max Delta E (76): {s.max_delta_e_76:.4f}",
        f"- Max Channel Deviation: {s.max_channel_delta:.4f}",
        f"- Pass Rate (Threshold {result.threshold:g} on "
        f"{_criterion_label(result.criterion)}): {s.pass_rate:.1f}%",
        "",
    ])

    worst = result.top_deviations(top_k)
    if worst:
        lines.append(f"Worst {len(worst)} Points of Deviation (based on DE2000):")
        for p in worst:
            ref = p.reference_color
            lines.append(
                f"- ID: {p.id}, Delta E(00): {p.delta_e_2000:.4f}, "
                f"Max Ch: {p.max_channel.name.value} {p.max_channel.value:.4f}, "
                f"Ref RGB: [{ref.r:.2f},{ref.g:.2f},{ref.b:.2f}]"
            )

    return "\n".join(lines)


def _to_json_block(result: ComparisonResult, top_k: int, preamble: bool) -> str:
    """Generate the JSON-block prompt."""
    lines: list[str] = []

    if preamble:
        lines.extend(_INSTRUCTIONS)
        lines.append("")

    data = {
        "strategy": result.strategy.value,
        "threshold": result.threshold,
        "criterion": result.criterion.value,
        "reference_count": result.reference_count,
        "test_count": result.test_count,
        "stats": result.stats.to_dict(),
        "worst_points": [p.to_dict() for p in result.top_deviations(top_k)],
    }

    lines.append("```json")
    lines.append(json.dumps(data, indent=2))
    lines.append("```")

    return "\n".join(lines)
