"""Shared fixtures: a controllable clock and predictable ids."""

from datetime import datetime, timedelta, timezone
from itertools import count
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def id_factory():
    counter = count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def identity(clock, id_factory):
    from fieldsurvey.domain.identity import Identity

    return lambda entity_id=None: Identity.new(entity_id, clock=clock, id_factory=id_factory)
