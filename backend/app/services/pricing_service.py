"""
Pricing service - wires the SQL stores into the pricing engine
One engine per request/session; the engine itself holds no state.
"""
from typing import List, Optional
from datetime import date
import logging
import threading
from sqlalchemy.orm import Session

from app.config import Settings, settings as default_settings
from app.services.store_service import SqlRateMatrixStore, SqlOverrideStore, SqlAdjustmentRuleStore
from rate_engine import PricingEngine, build_engine
from rate_engine.models import CalendarDay, NightlyPrice, OccupancyType, PlanType, Quote, StayPrice

logger = logging.getLogger(__name__)


class PricingService:
    """Price resolution over the database-backed configuration"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self._engine: Optional[PricingEngine] = None

    @property
    def engine(self) -> PricingEngine:
        if self._engine is None:
            lock = threading.Lock()
            self._engine = build_engine(
                SqlRateMatrixStore(self.db, lock),
                SqlOverrideStore(self.db, lock),
                SqlAdjustmentRuleStore(self.db, lock),
                timeout=self.settings.STORE_TIMEOUT_SECONDS,
                max_workers=self.settings.STAY_MAX_WORKERS,
                max_advance_days=self.settings.MAX_ADVANCE_DAYS,
                calendar_max_days=self.settings.CALENDAR_MAX_DAYS,
            )
            logger.debug(
                f"Pricing engine built (timeout={self.settings.STORE_TIMEOUT_SECONDS}, "
                f"workers={self.settings.STAY_MAX_WORKERS})"
            )
        return self._engine

    def close(self) -> None:
        if self._engine is not None:
            self._engine.close()
            self._engine = None

    def price_stay(self, property_id: str, room_category: str, plan_type: PlanType,
                   occupancy_type: OccupancyType, check_in: date, check_out: date,
                   booking_date: Optional[date] = None) -> StayPrice:
        """Bookable price of a fully specified stay"""
        return self.engine.aggregator.price_stay(
            property_id, room_category.upper(), plan_type, occupancy_type,
            check_in, check_out, booking_date or date.today()
        )

    def price_night(self, property_id: str, room_category: str, plan_type: PlanType,
                    occupancy_type: OccupancyType, night: date,
                    booking_date: Optional[date] = None) -> NightlyPrice:
        """Resolved price of a single night, priced as its own check-in"""
        return self.engine.evaluator.evaluate(
            property_id, room_category.upper(), plan_type, occupancy_type,
            night, booking_date or date.today()
        )

    def quote(self, property_id: str, check_in: date, check_out: date,
              room_category: Optional[str] = None, plan_type: Optional[PlanType] = None,
              occupancy_type: Optional[OccupancyType] = None) -> Quote:
        """Listing quote from raw matrix prices"""
        return self.engine.quotes.quote(
            property_id, check_in, check_out,
            room_category.upper() if room_category else None, plan_type, occupancy_type
        )

    def price_calendar(self, property_id: str, room_category: str, plan_type: PlanType,
                       occupancy_type: OccupancyType, start_date: date, end_date: date,
                       booking_date: Optional[date] = None) -> List[CalendarDay]:
        """Per-day price calendar"""
        return self.engine.calendar.build(
            property_id, room_category.upper(), plan_type, occupancy_type,
            start_date, end_date, booking_date
        )
