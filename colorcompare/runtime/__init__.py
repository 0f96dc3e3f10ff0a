# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Delivery runtime for ColorCompare.

1. Session -- reference/test slots with latest-wins recompute
2. Tool Output -- JSON bundle for function-calling consumers
3. Report Prompt -- statistics and worst points for the AI-report writer

The delivery layer never modifies comparison content.
"""

from colorcompare.runtime.serializers import (
    SerializerFormat,
    to_report_prompt,
    to_tool_output,
)
from colorcompare.runtime.session import ComparisonSession

__all__ = [
    "ComparisonSession",
    "to_tool_output",
    "to_report_prompt",
    "SerializerFormat",
]
