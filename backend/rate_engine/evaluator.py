"""
rate_engine/evaluator.py

Rule Evaluator - resolves the price of a single night.

Resolution order:
1. Active override for the night: price used verbatim, nothing else runs.
2. Otherwise the active matrix entries for the night; several overlapping
   entries resolve to the lowest price.
3. The adjustment rule stack, highest priority first, each rule feeding the
   next; then clamp at zero and round half-up to the currency minor unit.
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional
import logging

from rate_engine.errors import NoPriceConfigured, RuleConfigurationWarning
from rate_engine.models import (
    AppliedAdjustment,
    NightlyPrice,
    OccupancyType,
    PlanType,
    PriceSource,
    RateMatrixEntry,
)
from rate_engine.money import ZERO, round_price
from rate_engine.stores import StoreReader

logger = logging.getLogger(__name__)


class RuleEvaluator:
    """
    Resolves one night's price from the override, matrix and rule stores.

    Stateless; safe to share between threads.

    Example:
        >>> evaluator = RuleEvaluator(StoreReader(matrix, overrides, rules))
        >>> price = evaluator.evaluate("P1", "DELUXE", PlanType.EP,
        ...                            OccupancyType.DOUBLE, date(2025, 1, 3), date(2025, 1, 1))
        >>> price.nightly_price
        Decimal('6000')
    """

    def __init__(self, reader: StoreReader):
        self.reader = reader

    def evaluate(
        self,
        property_id: str,
        room_category: str,
        plan_type: PlanType,
        occupancy_type: OccupancyType,
        night: date,
        booking_date: date,
        check_in: Optional[date] = None,
    ) -> NightlyPrice:
        """
        Resolve the final nightly price and its audit trail.

        Args:
            property_id: Property identifier
            room_category: Room category code
            plan_type: Rate plan
            occupancy_type: Occupancy tier
            night: Night being priced
            booking_date: When the quote is computed
            check_in: Anchor for last-minute/early-bird conditions; defaults to night

        Returns:
            NightlyPrice

        Raises:
            NoPriceConfigured: Neither an override nor a matrix entry exists
            StoreUnavailable: A store read failed or timed out
        """
        plan_type = PlanType(plan_type)
        occupancy_type = OccupancyType(occupancy_type)

        override = self.reader.find_override(
            property_id, room_category, plan_type, occupancy_type, night
        )
        if override is not None:
            logger.debug(
                f"Override {override.override_id} applies to {room_category}/{plan_type.value} "
                f"on {night}"
            )
            return NightlyPrice(
                night=night,
                nightly_price=override.price,
                currency=override.currency,
                source=PriceSource.OVERRIDE,
                base_price=override.price,
                applied_adjustments=(
                    AppliedAdjustment(f"override: {override.reason}", None, ZERO),
                ),
            )

        entries = self.reader.find_matrix_entries(
            property_id, room_category, plan_type, occupancy_type, night
        )
        if not entries:
            raise NoPriceConfigured(property_id, room_category, plan_type, occupancy_type, night)

        warnings: List[RuleConfigurationWarning] = []
        base_entry = self._select_base_entry(entries, night, warnings)
        currency = base_entry.currency

        rules = self.reader.find_applicable_rules(
            property_id,
            plan_type,
            night,
            booking_date,
            check_in or night,
            room_category,
        )

        price = base_entry.price
        adjustments: List[AppliedAdjustment] = []
        for rule in rules:
            before = price
            price = rule.apply(price, plan_type)
            if price < 0 <= before:
                warnings.append(
                    RuleConfigurationWarning(
                        code="negative_before_clamp",
                        message=f"Rule '{rule.name}' drives the price below zero",
                        context={
                            "rule_id": rule.rule_id,
                            "night": night.isoformat(),
                            "price": str(price),
                        },
                    ).emit()
                )
            if rule.min_price is not None and price < rule.min_price:
                price = rule.min_price
            if rule.max_price is not None and price > rule.max_price:
                price = rule.max_price
            adjustments.append(AppliedAdjustment(rule.name, rule.type, price - before))

        final_price = round_price(max(price, ZERO), currency)
        return NightlyPrice(
            night=night,
            nightly_price=final_price,
            currency=currency,
            source=PriceSource.MATRIX,
            base_price=base_entry.price,
            applied_adjustments=tuple(adjustments),
            warnings=tuple(warnings),
        )

    def _select_base_entry(
        self,
        entries: List[RateMatrixEntry],
        night: date,
        warnings: List[RuleConfigurationWarning],
    ) -> RateMatrixEntry:
        """Lowest price wins when active windows overlap."""
        chosen = min(entries, key=lambda e: e.price)
        if len(entries) > 1:
            warnings.append(
                RuleConfigurationWarning(
                    code="matrix_overlap",
                    message=(
                        f"{len(entries)} active matrix entries overlap on {night.isoformat()}; "
                        f"using the lowest price {chosen.price}"
                    ),
                    context={
                        "entry_ids": [e.entry_id for e in entries],
                        "chosen": chosen.entry_id,
                    },
                ).emit()
            )
        currencies = {e.currency for e in entries}
        if len(currencies) > 1:
            warnings.append(
                RuleConfigurationWarning(
                    code="matrix_currency_mismatch",
                    message=f"Overlapping entries use different currencies {sorted(currencies)}",
                    context={"entry_ids": [e.entry_id for e in entries]},
                ).emit()
            )
        return chosen


def total_of(prices: List[NightlyPrice]) -> Decimal:
    return sum((p.nightly_price for p in prices), ZERO)


__all__ = ["RuleEvaluator", "total_of"]
