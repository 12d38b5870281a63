"""
rate_engine - pricing resolution engine

Pure, database-free components:
- models: immutable configuration rows and price results
- conditions: adjustment rule conditions
- stores: store read interfaces, in-memory stores, timeout-guarded reader
- evaluator: single-night resolution (override / matrix / rule stack)
- aggregator: per-stay fan-out and totals
- quote: listing quotes from raw matrix prices
- calendar: per-day price calendar

Usage:
    >>> from rate_engine import build_engine
    >>> engine = build_engine(matrix_store, override_store, rule_store)
    >>> engine.aggregator.price_stay("P1", "DELUXE", "EP", "double", check_in, check_out)
"""
from dataclasses import dataclass
from typing import Optional

from rate_engine.aggregator import DEFAULT_MAX_ADVANCE_DAYS, StayAggregator, iter_nights
from rate_engine.calendar import MAX_CALENDAR_DAYS, PriceCalendar
from rate_engine.conditions import NightContext, RuleCondition
from rate_engine.errors import (
    InvalidDateRange,
    NoPriceConfigured,
    PricingError,
    RuleConfigurationWarning,
    StoreUnavailable,
)
from rate_engine.evaluator import RuleEvaluator
from rate_engine.models import (
    AdjustmentRule,
    AdjustmentType,
    AppliedAdjustment,
    CalendarDay,
    NightlyPrice,
    OccupancyType,
    OverrideEntry,
    PlanType,
    PriceSource,
    Quote,
    QuoteGroup,
    RateMatrixEntry,
    StayPrice,
)
from rate_engine.quote import QuoteQueryService
from rate_engine.stores import (
    AdjustmentRuleStore,
    InMemoryAdjustmentRuleStore,
    InMemoryOverrideStore,
    InMemoryRateMatrixStore,
    OverrideStore,
    RateMatrixStore,
    StoreReader,
)


@dataclass
class PricingEngine:
    """The engine components sharing one StoreReader."""

    reader: StoreReader
    evaluator: RuleEvaluator
    aggregator: StayAggregator
    quotes: QuoteQueryService
    calendar: PriceCalendar

    def close(self) -> None:
        self.reader.close()


def build_engine(
    matrix_store: RateMatrixStore,
    override_store: OverrideStore,
    rule_store: AdjustmentRuleStore,
    timeout: Optional[float] = None,
    max_workers: int = 8,
    max_advance_days: Optional[int] = DEFAULT_MAX_ADVANCE_DAYS,
    calendar_max_days: int = MAX_CALENDAR_DAYS,
) -> PricingEngine:
    reader = StoreReader(matrix_store, override_store, rule_store, timeout=timeout)
    evaluator = RuleEvaluator(reader)
    return PricingEngine(
        reader=reader,
        evaluator=evaluator,
        aggregator=StayAggregator(evaluator, max_workers=max_workers, max_advance_days=max_advance_days),
        quotes=QuoteQueryService(reader),
        calendar=PriceCalendar(evaluator, max_days=calendar_max_days),
    )


__all__ = [
    "PricingEngine",
    "build_engine",
    "iter_nights",
    "NightContext",
    "RuleCondition",
    "PricingError",
    "NoPriceConfigured",
    "InvalidDateRange",
    "StoreUnavailable",
    "RuleConfigurationWarning",
    "RuleEvaluator",
    "StayAggregator",
    "QuoteQueryService",
    "PriceCalendar",
    "AdjustmentRule",
    "AdjustmentType",
    "AppliedAdjustment",
    "CalendarDay",
    "NightlyPrice",
    "OccupancyType",
    "OverrideEntry",
    "PlanType",
    "PriceSource",
    "Quote",
    "QuoteGroup",
    "RateMatrixEntry",
    "StayPrice",
    "RateMatrixStore",
    "OverrideStore",
    "AdjustmentRuleStore",
    "InMemoryRateMatrixStore",
    "InMemoryOverrideStore",
    "InMemoryAdjustmentRuleStore",
    "StoreReader",
]
