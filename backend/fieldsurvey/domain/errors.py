"""Errors raised by the domain layer.

Entities only ever raise :class:`ValidationError`. The API layer catches it
and turns it into a user-facing response.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


class DomainError(Exception):
    """Base class for business errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class ValidationError(DomainError, ValueError):
    """A broken invariant or an illegal state transition.

    Example:
        >>> ValidationError("Latitude invalide", field="latitude", value=91)
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        data["value"] = self.value if _is_plain(self.value) else repr(self.value)
        return data


def _is_plain(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))
