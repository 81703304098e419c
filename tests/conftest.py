import datetime

import pytest


class FakeClock:
    """Settable stand-in for date.today, passed to LibrarySystem as `clock`."""

    def __init__(self, today=datetime.date(2024, 3, 1)):
        self.today = today

    def __call__(self):
        return self.today

    def advance(self, days):
        self.today += datetime.timedelta(days=days)


@pytest.fixture
def clock():
    return FakeClock()
