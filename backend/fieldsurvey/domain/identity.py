"""Identity and timestamp bookkeeping shared by every entity.

Each entity embeds an :class:`Identity` value. :class:`EntityMixin` only
delegates to it so that ``id``, ``created_at`` and ``updated_at`` are
read-only views and ``touch()`` is the single place where "last modified"
changes. Entities are frozen dataclasses: their fields change only through
their business methods.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .clock import Clock, IdFactory, ensure_aware, new_id, to_iso, utc_now
from .errors import ValidationError


@dataclass(frozen=True, eq=False)
class Identity:
    """Identifier plus creation/update timestamps.

    Example:
        >>> Identity.new("prod_1")
    """

    id: str
    created_at: datetime
    updated_at: datetime
    clock: Clock = field(default=utc_now, repr=False, compare=False)
    id_factory: IdFactory = field(default=new_id, repr=False, compare=False)

    @classmethod
    def new(
        cls,
        id: str | None = None,
        *,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> "Identity":
        now = clock()
        return cls(
            id=id or id_factory(),
            created_at=ensure_aware(created_at) if created_at else now,
            updated_at=ensure_aware(updated_at) if updated_at else now,
            clock=clock,
            id_factory=id_factory,
        )

    def touch(self) -> None:
        """Move ``updated_at`` to the clock's now."""
        object.__setattr__(self, "updated_at", self.clock())

    def validate(self) -> None:
        if not self.id:
            raise ValidationError("L'ID est requis pour une entité", field="id")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


class EntityMixin:
    """Read-only identity views, equality by id and cloning."""

    identity: Identity

    @property
    def id(self) -> str:
        return self.identity.id

    @property
    def created_at(self) -> datetime:
        return self.identity.created_at

    @property
    def updated_at(self) -> datetime:
        return self.identity.updated_at

    def now(self) -> datetime:
        return self.identity.clock()

    def touch(self) -> None:
        self.identity.touch()

    def _update(self, **changes: Any) -> None:
        """Set fields on a frozen entity; only business methods call this."""
        for name, value in changes.items():
            object.__setattr__(self, name, value)

    def equals(self, other: object) -> bool:
        """True when ``other`` is an entity with the same id."""
        return isinstance(other, EntityMixin) and other.id == self.id

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    def __hash__(self) -> int:
        return hash(self.id)

    def clone(self):
        """Shallow copy keeping id and timestamps.

        The identity is copied so that touching the clone leaves the
        original's ``updated_at`` alone.
        """
        cloned = copy.copy(self)
        object.__setattr__(cloned, "identity", copy.copy(self.identity))
        return cloned
