# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error codes and exception classes for agentpanel.

The aggregator tolerates malformed orchestrator payloads without raising.
PanelError is reserved for programmer errors at the package boundary,
such as wiring an object that is not an event source.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class EnumPanelErrorCode(StrEnum):
    """Error codes for agentpanel operations."""

    INVALID_INPUT = "INVALID_INPUT"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class PanelError(Exception):
    """Base exception class for agentpanel.

    Attributes:
        code: Error code from EnumPanelErrorCode
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: EnumPanelErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        return f"PanelError(code={self.code}, message={self.message}, details={self.details})"


__all__ = [
    "EnumPanelErrorCode",
    "PanelError",
]
