# tests/clock.py
from datetime import datetime, timedelta, timezone


class TickingClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now
