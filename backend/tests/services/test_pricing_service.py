"""
Tests for app/services/pricing_service.py and app/services/store_service.py
Covers: SQL-backed stores, price_stay, price_night, quote, price_calendar
"""
import threading
import time
import pytest
from datetime import date
from decimal import Decimal

from app.config import Settings
from app.models.pricing import RateMatrixRow, AdjustmentRuleRow
from app.services.pricing_service import PricingService
from app.services.store_service import SqlAdjustmentRuleStore, SqlOverrideStore, SqlRateMatrixStore
from rate_engine import (
    build_engine,
    AdjustmentType,
    InvalidDateRange,
    NoPriceConfigured,
    OccupancyType,
    PlanType,
    PriceSource,
    StoreUnavailable,
)


BOOKED_ON = date(2024, 12, 1)


# ── helpers ──────────────────────────────────────────────────────────

def _make_matrix_row(db, price=Decimal("5000"), start=date(2025, 1, 1), end=date(2025, 12, 31),
                     plan_type=PlanType.EP, room_category="DELUXE", is_active=True):
    row = RateMatrixRow(
        property_id="P", room_category=room_category, plan_type=plan_type,
        occupancy_type=OccupancyType.DOUBLE, start_date=start, end_date=end,
        price=price, currency="INR", is_active=is_active,
    )
    db.add(row)
    db.flush()
    return row


def _make_rule_row(db, name, type, factors, priority=0, condition=None, property_id="P"):
    row = AdjustmentRuleRow(
        property_id=property_id, name=name, type=type, factors=factors,
        condition=condition or {}, priority=priority,
    )
    db.add(row)
    db.flush()
    return row


class _SlowSqlMatrixStore(SqlRateMatrixStore):
    """Holds the session lock well past the read timeout"""

    def __init__(self, db, lock, delay=0.3):
        super().__init__(db, lock)
        self.delay = delay
        self.finished = threading.Event()

    def find_matrix_entries(self, *args):
        with self._lock:
            time.sleep(self.delay)
        entries = super().find_matrix_entries(*args)
        self.finished.set()
        return entries


@pytest.fixture
def service(db_session):
    svc = PricingService(db_session)
    yield svc
    svc.close()


# ── tests ────────────────────────────────────────────────────────────

class TestSqlStores:

    def test_matrix_lookup(self, db_session, sample_matrix_row):
        store = SqlRateMatrixStore(db_session)
        entries = store.find_matrix_entries("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE,
                                            date(2025, 6, 1))
        assert len(entries) == 1
        assert entries[0].entry_id == sample_matrix_row.id
        assert entries[0].price == Decimal("5000")

    def test_matrix_lookup_skips_inactive(self, db_session):
        _make_matrix_row(db_session, is_active=False)
        db_session.commit()
        store = SqlRateMatrixStore(db_session)
        assert store.find_matrix_entries("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE,
                                         date(2025, 6, 1)) == []

    def test_window_lookup_is_half_open(self, db_session):
        _make_matrix_row(db_session, start=date(2025, 1, 4), end=date(2025, 1, 31))
        db_session.commit()
        store = SqlRateMatrixStore(db_session)
        assert store.find_entries_in_window("P", date(2025, 1, 2), date(2025, 1, 4)) == []
        assert len(store.find_entries_in_window("P", date(2025, 1, 2), date(2025, 1, 5))) == 1

    def test_override_lookup(self, db_session, conference_override_row):
        store = SqlOverrideStore(db_session)
        found = store.find_override("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE, date(2025, 3, 11))
        assert found.override_id == conference_override_row.id
        assert found.reason == "Conference"
        assert store.find_override("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE,
                                   date(2025, 3, 13)) is None

    def test_rules_global_and_property(self, db_session, weekend_rule_row):
        _make_rule_row(db_session, "Global festival", AdjustmentType.PERCENTAGE, {"EP": "10"},
                       priority=20, property_id=None)
        _make_rule_row(db_session, "Other hotel", AdjustmentType.PERCENTAGE, {"EP": "10"},
                       property_id="OTHER")
        db_session.commit()

        store = SqlAdjustmentRuleStore(db_session)
        rules = store.find_applicable_rules("P", PlanType.EP, date(2025, 1, 3), BOOKED_ON)

        assert [r.name for r in rules] == ["Global festival", "Weekend"]
        assert rules[1].factor_for(PlanType.EP) == Decimal("1.2")

    def test_rule_tie_break_by_creation_order(self, db_session):
        _make_rule_row(db_session, "A", AdjustmentType.FIXED_AMOUNT, {"EP": "100"}, priority=5)
        _make_rule_row(db_session, "B", AdjustmentType.FIXED_AMOUNT, {"EP": "100"}, priority=5)
        db_session.commit()
        rules = SqlAdjustmentRuleStore(db_session).find_applicable_rules(
            "P", PlanType.EP, date(2025, 1, 3), BOOKED_ON)
        assert [r.name for r in rules] == ["A", "B"]


class TestPriceStay:

    def test_weekend_stay(self, service, sample_matrix_row, weekend_rule_row):
        stay = service.price_stay("P", "deluxe", PlanType.EP, OccupancyType.DOUBLE,
                                  date(2025, 1, 2), date(2025, 1, 5), BOOKED_ON)
        assert stay.room_category == "DELUXE"
        assert stay.nightly_prices == [Decimal("5000"), Decimal("6000"), Decimal("6000")]
        assert stay.total_price == Decimal("17000")

    def test_cp_factor(self, service, db_session, weekend_rule_row):
        _make_matrix_row(db_session, price=Decimal("6000"), plan_type=PlanType.CP)
        db_session.commit()
        stay = service.price_stay("P", "DELUXE", PlanType.CP, OccupancyType.DOUBLE,
                                  date(2025, 1, 3), date(2025, 1, 4), BOOKED_ON)
        # 6000 * 1.15
        assert stay.total_price == Decimal("6900")

    def test_override_inside_stay(self, service, sample_matrix_row, weekend_rule_row,
                                  conference_override_row):
        stay = service.price_stay("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE,
                                  date(2025, 3, 9), date(2025, 3, 14), BOOKED_ON)
        assert [n.source for n in stay.breakdown] == [
            PriceSource.MATRIX, PriceSource.OVERRIDE, PriceSource.OVERRIDE,
            PriceSource.OVERRIDE, PriceSource.MATRIX,
        ]
        assert stay.total_price == Decimal("5000") * 2 + Decimal("9999") * 3

    def test_missing_configuration(self, service):
        with pytest.raises(NoPriceConfigured):
            service.price_stay("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE,
                               date(2025, 1, 2), date(2025, 1, 5), BOOKED_ON)

    def test_advance_window_from_settings(self, db_session, sample_matrix_row):
        svc = PricingService(db_session, Settings(MAX_ADVANCE_DAYS=10))
        try:
            with pytest.raises(InvalidDateRange):
                svc.price_stay("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE,
                               date(2025, 1, 2), date(2025, 1, 5), BOOKED_ON)
        finally:
            svc.close()

    def test_sequential_settings(self, db_session, sample_matrix_row, weekend_rule_row):
        svc = PricingService(db_session, Settings(STAY_MAX_WORKERS=1, STORE_TIMEOUT_SECONDS=None))
        try:
            stay = svc.price_stay("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE,
                                  date(2025, 1, 2), date(2025, 1, 5), BOOKED_ON)
        finally:
            svc.close()
        assert stay.total_price == Decimal("17000")


class TestPriceNight:

    def test_audit_trail(self, service, sample_matrix_row, weekend_rule_row):
        price = service.price_night("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE,
                                    date(2025, 1, 3), BOOKED_ON)
        assert price.nightly_price == Decimal("6000")
        assert [a.rule_name for a in price.applied_adjustments] == ["Weekend"]


class TestQuote:

    def test_quote_uses_raw_prices(self, service, sample_matrix_row, weekend_rule_row):
        quote = service.quote("P", date(2025, 1, 3), date(2025, 1, 5))
        assert quote.lowest_price == Decimal("5000")
        assert quote.is_bookable is False

    def test_category_filter_is_case_insensitive(self, service, sample_matrix_row):
        quote = service.quote("P", date(2025, 1, 3), date(2025, 1, 5), room_category="deluxe")
        assert len(quote.groups) == 1


class TestPriceCalendar:

    def test_calendar(self, service, sample_matrix_row, conference_override_row):
        days = service.price_calendar("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE,
                                      date(2025, 3, 9), date(2025, 3, 13), BOOKED_ON)
        assert len(days) == 5
        assert [d.source for d in days] == [
            PriceSource.MATRIX, PriceSource.OVERRIDE, PriceSource.OVERRIDE,
            PriceSource.OVERRIDE, PriceSource.MATRIX,
        ]


class TestEngineClose:

    def test_close_waits_for_timed_out_read(self, db_session, sample_matrix_row):
        lock = threading.Lock()
        slow = _SlowSqlMatrixStore(db_session, lock)
        engine = build_engine(
            slow, SqlOverrideStore(db_session, lock), SqlAdjustmentRuleStore(db_session, lock),
            timeout=0.05,
        )
        with pytest.raises(StoreUnavailable):
            engine.evaluator.evaluate("P", "DELUXE", PlanType.EP, OccupancyType.DOUBLE,
                                      date(2025, 6, 1), BOOKED_ON)
        assert not slow.finished.is_set()

        engine.close()

        assert slow.finished.is_set()
