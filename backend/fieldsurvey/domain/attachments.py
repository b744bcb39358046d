"""Uploaded file references (CV, profile photo, identity document)."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .clock import ensure_aware, to_iso
from .errors import ValidationError


@dataclass(frozen=True)
class Attachment:
    filename: str
    upload_date: datetime
    path: str | None = None
    mime_type: str | None = None
    size: int | None = None

    @classmethod
    def build(cls, data: Any, upload_date: datetime, message: str, field_name: str) -> "Attachment":
        """Build from a mapping; ``upload_date`` is used when none is stored."""
        raw = data if isinstance(data, Mapping) else {}
        filename = raw.get("filename")
        if not isinstance(filename, str) or not filename.strip():
            raise ValidationError(message, field=field_name, value=filename)
        stored_date = raw.get("upload_date")
        return cls(
            filename=filename,
            path=raw.get("path"),
            mime_type=raw.get("mime_type"),
            size=raw.get("size"),
            upload_date=ensure_aware(stored_date) if stored_date else upload_date,
        )

    @classmethod
    def uploaded(cls, data: Any, upload_date: datetime, message: str, field_name: str) -> "Attachment":
        """Build a freshly uploaded file; a stored ``upload_date`` is replaced."""
        if not isinstance(data, Mapping):
            raise ValidationError(message, field=field_name, value=data)
        fresh = {key: value for key, value in data.items() if key != "upload_date"}
        return cls.build(fresh, upload_date, message, field_name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "path": self.path,
            "mimeType": self.mime_type,
            "size": self.size,
            "uploadDate": to_iso(self.upload_date),
        }
