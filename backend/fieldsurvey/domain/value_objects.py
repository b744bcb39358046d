"""Immutable, self-validating scalar wrappers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from email_validator import EmailNotValidError, validate_email

from .errors import ValidationError

EMAIL_MAX_LENGTH = 254

_QUESTION_CODE_RE = re.compile(r"^Q\d+$")


@dataclass(frozen=True)
class Email:
    """Lower-cased, trimmed e-mail address.

    Example:
        >>> Email("  Awa.Kone@Example.CI ").value
        'awa.kone@example.ci'
    """

    value: str

    def __post_init__(self) -> None:
        raw = self.value
        if not isinstance(raw, str) or not raw:
            raise ValidationError("L'email doit être une chaîne de caractères", field="email", value=raw)
        normalized = raw.strip().lower()
        if not normalized:
            raise ValidationError("L'email ne peut pas être vide", field="email", value=raw)
        if len(normalized) > EMAIL_MAX_LENGTH:
            raise ValidationError(
                f"L'email est trop long (maximum {EMAIL_MAX_LENGTH} caractères)", field="email", value=raw
            )
        try:
            validate_email(normalized, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValidationError("Format d'email invalide", field="email", value=raw) from exc
        object.__setattr__(self, "value", normalized)

    @property
    def domain(self) -> str:
        return self.value.split("@", 1)[1]

    @property
    def local_part(self) -> str:
        return self.value.split("@", 1)[0]

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class QuestionCode:
    """Human identifier of a question, ``Q`` followed by digits (e.g. ``Q27``)."""

    value: str
    number: int = field(init=False, compare=False)

    def __post_init__(self) -> None:
        raw = self.value
        if not isinstance(raw, str) or not raw:
            raise ValidationError(
                "Le code de question doit être une chaîne de caractères", field="code", value=raw
            )
        normalized = raw.strip().upper()
        if not _QUESTION_CODE_RE.match(normalized):
            raise ValidationError(
                "Format de code de question invalide. Attendu: Q suivi de chiffres (ex: Q27)",
                field="code",
                value=raw,
            )
        object.__setattr__(self, "value", normalized)
        object.__setattr__(self, "number", int(normalized[1:]))

    def __str__(self) -> str:
        return self.value

    @staticmethod
    def is_valid_format(code: object) -> bool:
        try:
            QuestionCode(code)  # type: ignore[arg-type]
        except ValidationError:
            return False
        return True

    @classmethod
    def from_number(cls, number: int) -> "QuestionCode":
        if isinstance(number, bool) or not isinstance(number, int) or number < 1:
            raise ValidationError(
                "Le numéro de question doit être un entier positif", field="number", value=number
            )
        return cls(f"Q{number}")
