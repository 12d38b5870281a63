"""
rate_engine/aggregator.py

Stay Aggregator - prices every night of a stay and sums the rounded nightly
prices. Nights are evaluated concurrently; the breakdown is always returned in
calendar order.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Iterator, List, Optional
import logging

from rate_engine.errors import InvalidDateRange, PricingError
from rate_engine.evaluator import RuleEvaluator, total_of
from rate_engine.models import NightlyPrice, OccupancyType, PlanType, StayPrice

logger = logging.getLogger(__name__)

DEFAULT_MAX_ADVANCE_DAYS = 365


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    """Yield each night in [check_in, check_out)."""
    current = check_in
    while current < check_out:
        yield current
        current += timedelta(days=1)


def validate_stay_window(
    check_in: date,
    check_out: date,
    booking_date: date,
    max_advance_days: Optional[int] = DEFAULT_MAX_ADVANCE_DAYS,
) -> int:
    """
    Validate a stay window and return its night count.

    Raises:
        InvalidDateRange: check_out <= check_in, or check_in beyond the advance window
    """
    nights = (check_out - check_in).days
    if nights <= 0:
        raise InvalidDateRange(check_in, check_out, "check-out must be after check-in")
    if max_advance_days is not None and (check_in - booking_date).days > max_advance_days:
        raise InvalidDateRange(
            check_in,
            check_out,
            f"check-in is more than {max_advance_days} days after {booking_date.isoformat()}",
        )
    return nights


class StayAggregator:
    """
    Task-per-night fan-out over the RuleEvaluator.

    Any failing night fails the whole stay; no partial total is returned.
    """

    def __init__(
        self,
        evaluator: RuleEvaluator,
        max_workers: int = 8,
        max_advance_days: Optional[int] = DEFAULT_MAX_ADVANCE_DAYS,
    ):
        self.evaluator = evaluator
        self.max_workers = max(1, max_workers)
        self.max_advance_days = max_advance_days

    def price_stay(
        self,
        property_id: str,
        room_category: str,
        plan_type: PlanType,
        occupancy_type: OccupancyType,
        check_in: date,
        check_out: date,
        booking_date: Optional[date] = None,
    ) -> StayPrice:
        """
        Price a stay [check_in, check_out).

        Last-minute and early-bird conditions are anchored on check_in for
        every night of the stay.

        Args:
            property_id: Property identifier
            room_category: Room category code
            plan_type: Rate plan
            occupancy_type: Occupancy tier
            check_in: First night (inclusive)
            check_out: Departure date (exclusive)
            booking_date: When the quote is computed; defaults to today

        Returns:
            StayPrice with a calendar-ordered per-night breakdown

        Raises:
            InvalidDateRange, NoPriceConfigured, StoreUnavailable
        """
        booking_date = booking_date or date.today()
        plan_type = PlanType(plan_type)
        occupancy_type = OccupancyType(occupancy_type)
        nights = validate_stay_window(check_in, check_out, booking_date, self.max_advance_days)

        breakdown = self._evaluate_nights(
            property_id,
            room_category,
            plan_type,
            occupancy_type,
            list(iter_nights(check_in, check_out)),
            booking_date,
            check_in,
        )

        currencies = {n.currency for n in breakdown}
        if len(currencies) > 1:
            raise PricingError(
                f"Stay {check_in} -> {check_out} mixes currencies {sorted(currencies)}"
            )

        total = total_of(breakdown)
        logger.info(
            f"Priced {nights} night(s) of {room_category}/{plan_type.value}/"
            f"{occupancy_type.value} at {property_id}: {total} {breakdown[0].currency}"
        )
        return StayPrice(
            property_id=property_id,
            room_category=room_category,
            plan_type=plan_type,
            occupancy_type=occupancy_type,
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            total_price=total,
            currency=breakdown[0].currency,
            breakdown=tuple(breakdown),
        )

    def _evaluate_nights(
        self,
        property_id: str,
        room_category: str,
        plan_type: PlanType,
        occupancy_type: OccupancyType,
        nights: List[date],
        booking_date: date,
        check_in: date,
    ) -> List[NightlyPrice]:
        def evaluate(night: date) -> NightlyPrice:
            return self.evaluator.evaluate(
                property_id, room_category, plan_type, occupancy_type,
                night, booking_date, check_in,
            )

        if self.max_workers == 1 or len(nights) == 1:
            return [evaluate(night) for night in nights]

        workers = min(self.max_workers, len(nights))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="stay-night") as pool:
            futures = [pool.submit(evaluate, night) for night in nights]
            # result() re-raises the first failure in calendar order
            return [future.result() for future in futures]


__all__ = [
    "DEFAULT_MAX_ADVANCE_DAYS",
    "iter_nights",
    "validate_stay_window",
    "StayAggregator",
]
