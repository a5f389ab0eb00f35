from datetime import UTC, date, datetime


class Clock:
    """Wall clock used by every service; swap in a fixed one for tests."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def today(self) -> date:
        return self.now().date()


system_clock = Clock()
