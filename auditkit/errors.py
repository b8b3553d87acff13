"""
auditkit.errors
===============

Exception taxonomy shared by every sub-module.

Each error also derives from the closest built-in so callers that only know
about ``ValueError`` / ``RuntimeError`` still catch them.
"""

from __future__ import annotations

from typing import Any, Optional


class AuditKitError(Exception):
    """Base class for all auditkit errors."""


class ValidationError(AuditKitError, ValueError):
    """A required field is empty or a value is outside its allowed set."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidStatus(AuditKitError, ValueError):
    """A status value outside the closed enumeration reached the model."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"invalid status: {value!r}")
        self.value = value


class ExportError(AuditKitError, RuntimeError):
    """Report generation could not run or failed while running."""
