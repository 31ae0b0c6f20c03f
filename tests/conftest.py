from datetime import datetime, timedelta, timezone

import pytest

from squadgrid.ledger import LedgerStore


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kw) -> None:
        self.now = self.now + timedelta(**kw)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock):
    return LedgerStore(clock=clock, widget_origin="https://pay.example")
