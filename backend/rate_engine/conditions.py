"""
rate_engine/conditions.py

Adjustment rule conditions.

A rule declares any subset of: day-of-week set, absolute date window,
last-minute threshold, early-bird threshold, room categories. Each declared
field becomes a clause; the rule applies to a night only if every clause holds.
An empty condition always holds.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, List, Optional
import logging

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


@dataclass(frozen=True)
class NightContext:
    """
    Evaluation context for one night of a stay.

    Attributes:
        night: The calendar night being priced
        booking_date: When the quote is computed
        check_in: Anchor for booking-window conditions (the stay's check-in)
        room_category: Requested room category
    """

    night: date
    booking_date: date
    check_in: date
    room_category: Optional[str] = None

    @property
    def days_before_checkin(self) -> int:
        return (self.check_in - self.booking_date).days


class ConditionClause(ABC):
    """A single declared condition field."""

    @abstractmethod
    def evaluate(self, context: NightContext) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()})"

    @abstractmethod
    def describe(self) -> str:
        raise NotImplementedError


class DayOfWeekClause(ConditionClause):
    def __init__(self, days: Iterable[int]):
        self.days = frozenset(days)

    def evaluate(self, context: NightContext) -> bool:
        return context.night.weekday() in self.days

    def describe(self) -> str:
        return ",".join(WEEKDAY_NAMES[d] for d in sorted(self.days))


class DateRangeClause(ConditionClause):
    """Inclusive absolute window on the night; either bound may be open."""

    def __init__(self, start_date: Optional[date], end_date: Optional[date]):
        self.start_date = start_date
        self.end_date = end_date

    def evaluate(self, context: NightContext) -> bool:
        if self.start_date is not None and context.night < self.start_date:
            return False
        if self.end_date is not None and context.night > self.end_date:
            return False
        return True

    def describe(self) -> str:
        return f"{self.start_date or '*'}..{self.end_date or '*'}"


class LastMinuteClause(ConditionClause):
    """Holds when check-in is at most N days after the booking date."""

    def __init__(self, max_days: int):
        self.max_days = max_days

    def evaluate(self, context: NightContext) -> bool:
        return context.days_before_checkin <= self.max_days

    def describe(self) -> str:
        return f"days_before_checkin<={self.max_days}"


class EarlyBirdClause(ConditionClause):
    """Holds when check-in is at least N days after the booking date."""

    def __init__(self, min_days: int):
        self.min_days = min_days

    def evaluate(self, context: NightContext) -> bool:
        return context.days_before_checkin >= self.min_days

    def describe(self) -> str:
        return f"days_before_checkin>={self.min_days}"


class RoomCategoryClause(ConditionClause):
    def __init__(self, categories: Iterable[str]):
        self.categories = frozenset(c.upper() for c in categories)

    def evaluate(self, context: NightContext) -> bool:
        if context.room_category is None:
            return False
        return context.room_category.upper() in self.categories

    def describe(self) -> str:
        return ",".join(sorted(self.categories))


@dataclass(frozen=True)
class RuleCondition:
    """
    Declared condition of an adjustment rule (AND semantics).

    Attributes:
        days_of_week: Weekdays the night must fall on (Mon=0 .. Sun=6)
        start_date: First night the rule may apply to (inclusive)
        end_date: Last night the rule may apply to (inclusive)
        max_days_before_checkin: Last-minute threshold
        min_days_before_checkin: Early-bird threshold
        room_categories: Categories the rule is limited to
    """

    days_of_week: Optional[FrozenSet[int]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_days_before_checkin: Optional[int] = None
    min_days_before_checkin: Optional[int] = None
    room_categories: Optional[FrozenSet[str]] = None

    def __post_init__(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("Condition start_date must not be after end_date")
        if self.days_of_week is not None:
            days = frozenset(self.days_of_week)
            if not days:
                raise ValueError("days_of_week must not be empty")
            if any(d < 0 or d > 6 for d in days):
                raise ValueError(f"Invalid weekday in {sorted(days)}")
            object.__setattr__(self, "days_of_week", days)
        if self.room_categories is not None:
            if not self.room_categories:
                raise ValueError("room_categories must not be empty")
            object.__setattr__(
                self, "room_categories", frozenset(c.upper() for c in self.room_categories)
            )

    def clauses(self) -> List[ConditionClause]:
        clauses: List[ConditionClause] = []
        if self.days_of_week is not None:
            clauses.append(DayOfWeekClause(self.days_of_week))
        if self.start_date is not None or self.end_date is not None:
            clauses.append(DateRangeClause(self.start_date, self.end_date))
        if self.max_days_before_checkin is not None:
            clauses.append(LastMinuteClause(self.max_days_before_checkin))
        if self.min_days_before_checkin is not None:
            clauses.append(EarlyBirdClause(self.min_days_before_checkin))
        if self.room_categories is not None:
            clauses.append(RoomCategoryClause(self.room_categories))
        return clauses

    def matches(self, context: NightContext) -> bool:
        return all(clause.evaluate(context) for clause in self.clauses())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize declared fields only."""
        data: Dict[str, Any] = {}
        if self.days_of_week is not None:
            data["days_of_week"] = sorted(self.days_of_week)
        if self.start_date is not None:
            data["start_date"] = self.start_date.isoformat()
        if self.end_date is not None:
            data["end_date"] = self.end_date.isoformat()
        if self.max_days_before_checkin is not None:
            data["max_days_before_checkin"] = self.max_days_before_checkin
        if self.min_days_before_checkin is not None:
            data["min_days_before_checkin"] = self.min_days_before_checkin
        if self.room_categories is not None:
            data["room_categories"] = sorted(self.room_categories)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RuleCondition":
        if not data:
            return cls()
        days = data.get("days_of_week")
        start = data.get("start_date")
        end = data.get("end_date")
        categories = data.get("room_categories")
        return cls(
            days_of_week=frozenset(parse_weekday(d) for d in days) if days is not None else None,
            start_date=date.fromisoformat(start) if isinstance(start, str) else start,
            end_date=date.fromisoformat(end) if isinstance(end, str) else end,
            max_days_before_checkin=data.get("max_days_before_checkin"),
            min_days_before_checkin=data.get("min_days_before_checkin"),
            room_categories=frozenset(categories) if categories is not None else None,
        )


def parse_weekday(value: Any) -> int:
    """Accept 0-6 (Mon=0) or names like 'Fri' / 'friday'."""
    if isinstance(value, int):
        if not 0 <= value <= 6:
            raise ValueError(f"Invalid weekday: {value}")
        return value
    key = str(value).strip().lower()[:3]
    if key not in WEEKDAY_NAMES:
        raise ValueError(f"Invalid weekday: {value}")
    return WEEKDAY_NAMES.index(key)


__all__ = [
    "WEEKDAY_NAMES",
    "NightContext",
    "ConditionClause",
    "DayOfWeekClause",
    "DateRangeClause",
    "LastMinuteClause",
    "EarlyBirdClause",
    "RoomCategoryClause",
    "RuleCondition",
    "parse_weekday",
]
