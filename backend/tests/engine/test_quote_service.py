"""
Tests for rate_engine/quote.py
"""
import pytest
from datetime import date
from decimal import Decimal

from rate_engine import (
    AdjustmentRule,
    AdjustmentType,
    InvalidDateRange,
    OccupancyType,
    OverrideEntry,
    PlanType,
    RateMatrixEntry,
)
from rate_engine.models import LISTING_QUOTE_LABEL


def _entry(entry_id, price, room_category="DELUXE", plan_type=PlanType.EP,
           occupancy_type=OccupancyType.DOUBLE, start=date(2025, 1, 1), end=date(2025, 12, 31),
           property_id="P", currency="INR"):
    return RateMatrixEntry(
        entry_id=entry_id, property_id=property_id, room_category=room_category,
        plan_type=plan_type, occupancy_type=occupancy_type,
        start_date=start, end_date=end, price=Decimal(price), currency=currency,
    )


@pytest.fixture
def listing(matrix_store):
    matrix_store.add(_entry(1, "5000"))
    matrix_store.add(_entry(2, "7000", start=date(2025, 1, 4), end=date(2025, 1, 31)))
    matrix_store.add(_entry(3, "5800", plan_type=PlanType.CP))
    matrix_store.add(_entry(4, "3500", room_category="STANDARD", occupancy_type=OccupancyType.SINGLE))
    matrix_store.add(_entry(5, "1000", property_id="OTHER"))
    matrix_store.add(_entry(6, "2000", start=date(2025, 2, 1), end=date(2025, 2, 28)))
    return matrix_store


def _quote(engine, check_in=date(2025, 1, 2), check_out=date(2025, 1, 5), **filters):
    return engine.quotes.quote("P", check_in, check_out, **filters)


class TestQuote:

    def test_groups_and_range(self, engine, listing):
        quote = _quote(engine)

        assert quote.lowest_price == Decimal("3500")
        assert quote.highest_price == Decimal("7000")
        assert quote.currency == "INR"
        assert [(g.room_category, g.plan_type, g.lowest_price) for g in quote.groups] == [
            ("STANDARD", PlanType.EP, Decimal("3500")),
            ("DELUXE", PlanType.EP, Decimal("5000")),
            ("DELUXE", PlanType.CP, Decimal("5800")),
        ]
        deluxe_ep = quote.groups[1]
        assert deluxe_ep.highest_price == Decimal("7000")
        assert deluxe_ep.entry_count == 2

    def test_not_bookable(self, engine, listing):
        quote = _quote(engine)
        assert quote.is_bookable is False
        assert quote.label == LISTING_QUOTE_LABEL

    def test_ignores_rules_and_overrides(self, engine, listing, rule_store, override_store):
        rule_store.add(AdjustmentRule(
            rule_id=1, name="Double", type=AdjustmentType.MULTIPLIER,
            factors={PlanType.EP: Decimal("2")},
        ))
        override_store.add(OverrideEntry(
            override_id=1, property_id="P", room_category="STANDARD",
            plan_type=PlanType.EP, occupancy_type=OccupancyType.SINGLE,
            start_date=date(2025, 1, 1), end_date=date(2025, 1, 31), price=Decimal("100"),
            reason="Flash sale",
        ))
        quote = _quote(engine)
        assert quote.lowest_price == Decimal("3500")
        assert quote.highest_price == Decimal("7000")

    def test_filters(self, engine, listing):
        quote = _quote(engine, room_category="DELUXE", plan_type=PlanType.CP)
        assert len(quote.groups) == 1
        assert quote.lowest_price == Decimal("5800")

        quote = _quote(engine, occupancy_type=OccupancyType.SINGLE)
        assert [g.room_category for g in quote.groups] == ["STANDARD"]

    def test_check_out_is_exclusive(self, engine, listing):
        # Entry 2 starts on 2025-01-04; a stay leaving that morning never touches it
        quote = _quote(engine, check_out=date(2025, 1, 4), room_category="DELUXE",
                       plan_type=PlanType.EP)
        assert quote.highest_price == Decimal("5000")

    def test_nothing_configured(self, engine, listing):
        quote = _quote(engine, date(2026, 6, 1), date(2026, 6, 3))
        assert quote.groups == ()
        assert quote.lowest_price is None
        assert quote.highest_price is None
        assert quote.to_dict()["lowest_price"] is None

    def test_mixed_currencies_have_no_overall_range(self, engine, matrix_store, caplog):
        matrix_store.add(_entry(1, "5000"))
        matrix_store.add(_entry(2, "60", currency="USD", plan_type=PlanType.CP))

        quote = _quote(engine)

        assert quote.lowest_price is None
        assert quote.highest_price is None
        assert quote.currency is None
        assert [(g.lowest_price, g.currency) for g in quote.groups] == [
            (Decimal("60"), "USD"),
            (Decimal("5000"), "INR"),
        ]
        assert "quote_currency_mismatch" in caplog.text

    def test_invalid_range(self, engine, listing):
        with pytest.raises(InvalidDateRange):
            _quote(engine, date(2025, 1, 5), date(2025, 1, 5))
