"""
rate_engine/quote.py

Quote Query Service - fast "from X/night" listing quote.

Groups the raw matrix entries intersecting a stay window by
(category, plan, occupancy) and reports the price range per group. Rules and
overrides are not applied; the result is labeled non-bookable.
"""
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Tuple
import logging

from rate_engine.errors import InvalidDateRange, RuleConfigurationWarning
from rate_engine.models import (
    OccupancyType,
    PlanType,
    Quote,
    QuoteGroup,
    RateMatrixEntry,
)
from rate_engine.stores import StoreReader

logger = logging.getLogger(__name__)

GroupKey = Tuple[str, PlanType, OccupancyType]


class QuoteQueryService:
    def __init__(self, reader: StoreReader):
        self.reader = reader

    def quote(
        self,
        property_id: str,
        check_in: date,
        check_out: date,
        room_category: Optional[str] = None,
        plan_type: Optional[PlanType] = None,
        occupancy_type: Optional[OccupancyType] = None,
    ) -> Quote:
        """
        Build a listing quote for a property and window.

        Args:
            property_id: Property identifier
            check_in: Window start (inclusive)
            check_out: Window end (exclusive)
            room_category: Optional category filter
            plan_type: Optional plan filter
            occupancy_type: Optional occupancy filter

        Returns:
            Quote; groups are empty when nothing is configured for the window.
            The overall range and currency are None when groups differ in currency.

        Raises:
            InvalidDateRange: check_out <= check_in
            StoreUnavailable: The matrix read failed or timed out
        """
        if check_out <= check_in:
            raise InvalidDateRange(check_in, check_out, "check-out must be after check-in")

        plan_type = PlanType(plan_type) if plan_type is not None else None
        occupancy_type = OccupancyType(occupancy_type) if occupancy_type is not None else None

        entries = self.reader.find_entries_in_window(
            property_id, check_in, check_out, room_category, plan_type, occupancy_type
        )

        grouped: Dict[GroupKey, List[RateMatrixEntry]] = defaultdict(list)
        for entry in entries:
            grouped[(entry.room_category, entry.plan_type, entry.occupancy_type)].append(entry)

        groups = []
        for (category, plan, occupancy), members in grouped.items():
            prices = [m.price for m in members]
            currencies = {m.currency for m in members}
            if len(currencies) > 1:
                logger.warning(
                    f"Quote group {category}/{plan.value}/{occupancy.value} at {property_id} "
                    f"mixes currencies {sorted(currencies)}"
                )
            groups.append(
                QuoteGroup(
                    room_category=category,
                    plan_type=plan,
                    occupancy_type=occupancy,
                    lowest_price=min(prices),
                    highest_price=max(prices),
                    currency=min(members, key=lambda m: m.price).currency,
                    entry_count=len(members),
                )
            )

        groups.sort(
            key=lambda g: (g.lowest_price, g.room_category, g.plan_type.value, g.occupancy_type.value)
        )

        if not groups:
            logger.info(f"No matrix entries for {property_id} between {check_in} and {check_out}")
            return Quote(
                property_id=property_id,
                check_in=check_in,
                check_out=check_out,
                groups=(),
                lowest_price=None,
                highest_price=None,
                currency=None,
            )

        currencies = {g.currency for g in groups}
        if len(currencies) > 1:
            RuleConfigurationWarning(
                code="quote_currency_mismatch",
                message="Quote groups are priced in different currencies; no overall range",
                context={"property_id": property_id, "currencies": sorted(currencies)},
            ).emit()
            return Quote(
                property_id=property_id,
                check_in=check_in,
                check_out=check_out,
                groups=tuple(groups),
                lowest_price=None,
                highest_price=None,
                currency=None,
            )

        cheapest = groups[0]
        return Quote(
            property_id=property_id,
            check_in=check_in,
            check_out=check_out,
            groups=tuple(groups),
            lowest_price=cheapest.lowest_price,
            highest_price=max(g.highest_price for g in groups),
            currency=cheapest.currency,
        )


__all__ = ["QuoteQueryService"]
