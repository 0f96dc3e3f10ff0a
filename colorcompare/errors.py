# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""Exception types raised by ColorCompare."""

from __future__ import annotations

from typing import Optional


class ColorCompareError(Exception):
    """Base class for all ColorCompare errors."""


class IngestionError(ColorCompareError, ValueError):
    """
    Raw probe input could not be read as structured data.

    Raised for unparseable JSON, a top level that is not a mapping, a
    ``pixels`` field that is not a list, or channel values that are not
    numbers. Missing optional fields never raise.

    Attributes:
        source: Path or label of the input that failed, if known
    """

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)
