"""
Tests for rate_engine/calendar.py
"""
import pytest
from datetime import date
from decimal import Decimal

from rate_engine import (
    AdjustmentRule,
    AdjustmentType,
    InvalidDateRange,
    OccupancyType,
    PlanType,
    PriceSource,
    RateMatrixEntry,
    RuleCondition,
    build_engine,
)
from rate_engine.calendar import is_weekend


def _build(engine, start, end):
    return engine.calendar.build(
        "P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE, start, end, date(2024, 12, 1)
    )


class TestPriceCalendar:

    def test_inclusive_window_with_weekend_rule(self, engine, deluxe_matrix, rule_store):
        rule_store.add(AdjustmentRule(
            rule_id=1, name="Weekend", type=AdjustmentType.MULTIPLIER,
            factors={PlanType.EP: Decimal("1.2")},
            condition=RuleCondition(days_of_week=frozenset({4, 5})),
        ))

        days = _build(engine, date(2025, 1, 2), date(2025, 1, 5))

        assert [d.night.day for d in days] == [2, 3, 4, 5]
        assert [d.nightly_price for d in days] == [
            Decimal("5000"), Decimal("6000"), Decimal("6000"), Decimal("5000")
        ]
        assert [d.is_weekend for d in days] == [False, True, True, False]
        assert all(d.available and d.source == PriceSource.MATRIX for d in days)

    def test_unconfigured_days_unavailable(self, engine, matrix_store):
        matrix_store.add(RateMatrixEntry(
            entry_id=1, property_id="P", room_category="DELUXE",
            plan_type=PlanType.EP, occupancy_type=OccupancyType.DOUBLE,
            start_date=date(2025, 1, 1), end_date=date(2025, 1, 2), price=Decimal("5000"),
        ))

        days = _build(engine, date(2025, 1, 1), date(2025, 1, 3))

        assert [d.available for d in days] == [True, True, False]
        assert days[2].nightly_price is None
        assert days[2].to_dict()["source"] is None

    def test_end_before_start(self, engine):
        with pytest.raises(InvalidDateRange):
            _build(engine, date(2025, 1, 5), date(2025, 1, 1))

    def test_span_limit(self, matrix_store, override_store, rule_store):
        engine = build_engine(matrix_store, override_store, rule_store, calendar_max_days=7)
        try:
            assert len(_build(engine, date(2025, 1, 1), date(2025, 1, 7))) == 7
            with pytest.raises(InvalidDateRange):
                _build(engine, date(2025, 1, 1), date(2025, 1, 8))
        finally:
            engine.close()


class TestIsWeekend:

    def test_friday_and_saturday(self):
        assert is_weekend(date(2025, 1, 3))
        assert is_weekend(date(2025, 1, 4))
        assert not is_weekend(date(2025, 1, 5))
