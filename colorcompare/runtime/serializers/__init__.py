# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Serializers for ComparisonResult delivery to collaborators.

Each serializer formats a ComparisonResult for one consumer. All
serializers preserve the result exactly -- no modification or inference.
"""

from colorcompare.runtime.serializers.base import SerializerFormat
from colorcompare.runtime.serializers.report import to_report_prompt
from colorcompare.runtime.serializers.tool import to_tool_output

__all__ = [
    "SerializerFormat",
    "to_tool_output",
    "to_report_prompt",
]
