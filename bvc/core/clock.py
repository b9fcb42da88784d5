"""
Clock implementations.

Commit ids include a wall-clock timestamp, so the clock is injected: the CLI
uses SystemClock, tests pin time with FixedClock.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SystemClock:
    """Wall-clock time source."""

    def now(self) -> str:
        return format_timestamp(datetime.now(timezone.utc))


@dataclass
class FixedClock:
    """
    Manually advanced time source.

    Each call to now() returns the current instant and then advances it by
    step_ms, so consecutive commits never share a timestamp.
    """
    current: datetime = field(default_factory=lambda: datetime(2024, 1, 1, tzinfo=timezone.utc))
    step_ms: int = 1000

    def now(self) -> str:
        ts = format_timestamp(self.current)
        self.current = self.current + timedelta(milliseconds=self.step_ms)
        return ts

    def peek(self) -> str:
        """Get current timestamp without advancing."""
        return format_timestamp(self.current)
