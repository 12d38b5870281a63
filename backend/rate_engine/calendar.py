"""
rate_engine/calendar.py

Price calendar - resolved nightly price for every day of an inclusive window,
as shown on the pricing calendar screens.
"""
from datetime import date
from typing import List, Optional
import logging

from rate_engine.aggregator import iter_nights
from rate_engine.errors import InvalidDateRange, NoPriceConfigured
from rate_engine.evaluator import RuleEvaluator
from rate_engine.models import CalendarDay, OccupancyType, PlanType

logger = logging.getLogger(__name__)

MAX_CALENDAR_DAYS = 366


def is_weekend(night: date) -> bool:
    """Hotel weekend: Friday and Saturday nights."""
    return night.weekday() in (4, 5)


class PriceCalendar:
    def __init__(self, evaluator: RuleEvaluator, max_days: int = MAX_CALENDAR_DAYS):
        self.evaluator = evaluator
        self.max_days = max_days

    def build(
        self,
        property_id: str,
        room_category: str,
        plan_type: PlanType,
        occupancy_type: OccupancyType,
        start: date,
        end: date,
        booking_date: Optional[date] = None,
    ) -> List[CalendarDay]:
        """
        Price each day in [start, end], each night treated as its own check-in.

        Days without configuration are reported unavailable rather than failing
        the calendar. StoreUnavailable still propagates.
        """
        if end < start:
            raise InvalidDateRange(start, end, "calendar end is before start")
        if (end - start).days + 1 > self.max_days:
            raise InvalidDateRange(start, end, f"calendar spans more than {self.max_days} days")

        booking_date = booking_date or date.today()
        days = []
        for night in iter_nights(start, date.fromordinal(end.toordinal() + 1)):
            try:
                price = self.evaluator.evaluate(
                    property_id, room_category, plan_type, occupancy_type, night, booking_date
                )
            except NoPriceConfigured:
                days.append(CalendarDay(night=night, available=False, is_weekend=is_weekend(night)))
                continue
            days.append(
                CalendarDay(
                    night=night,
                    available=True,
                    nightly_price=price.nightly_price,
                    currency=price.currency,
                    source=price.source,
                    is_weekend=is_weekend(night),
                )
            )
        return days


__all__ = ["MAX_CALENDAR_DAYS", "is_weekend", "PriceCalendar"]
