"""
Request context and clock

Every core operation is scoped to one user and one notion of "now". Both are
passed explicitly through a RequestContext so tests can pin the date.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Local wall clock (naive local dates, no timezone arithmetic)"""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return date.today()


class FixedClock:
    """Clock pinned to a given instant, advanced manually"""

    def __init__(self, current: datetime):
        self._current = current

    @classmethod
    def on(cls, day: str) -> "FixedClock":
        """Build a clock at noon of a YYYY-MM-DD day"""
        return cls(datetime.fromisoformat(day).replace(hour=12))

    def now(self) -> datetime:
        return self._current

    def today(self) -> date:
        return self._current.date()

    def advance(self, days: int = 0, **kwargs) -> None:
        self._current += timedelta(days=days, **kwargs)


def now_millis(clock: Optional[Clock] = None) -> int:
    """Epoch milliseconds used for created_at / updated_at / message timestamps"""
    current = (clock or SystemClock()).now()
    return int(current.timestamp() * 1000)


@dataclass
class RequestContext:
    """Authenticated caller plus the clock used for 'today'"""

    user_id: str
    external_id: str
    clock: Clock = field(default_factory=SystemClock)

    def today(self) -> date:
        return self.clock.today()
