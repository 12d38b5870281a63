"""
SQLAlchemy-backed pricing stores
Implement the engine's read interfaces over the configuration tables.
The session is shared by concurrent night evaluations, so reads are serialized.
"""
from typing import List, Optional
from datetime import date
import logging
import threading
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.pricing import RateMatrixRow, RateOverrideRow, AdjustmentRuleRow
from rate_engine.models import (
    AdjustmentRule, OccupancyType, OverrideEntry, PlanType, RateMatrixEntry
)
from rate_engine.stores import pick_override, select_applicable_rules

logger = logging.getLogger(__name__)


class _SessionStore:
    def __init__(self, db: Session, lock: Optional[threading.Lock] = None):
        self.db = db
        self._lock = lock or threading.Lock()


class SqlRateMatrixStore(_SessionStore):
    """Rate matrix reads"""

    def find_matrix_entries(self, property_id: str, room_category: str, plan_type: PlanType,
                            occupancy_type: OccupancyType, night: date) -> List[RateMatrixEntry]:
        with self._lock:
            rows = self.db.query(RateMatrixRow).filter(
                RateMatrixRow.property_id == property_id,
                RateMatrixRow.room_category == room_category,
                RateMatrixRow.plan_type == PlanType(plan_type),
                RateMatrixRow.occupancy_type == OccupancyType(occupancy_type),
                RateMatrixRow.is_active == True,
                RateMatrixRow.start_date <= night,
                RateMatrixRow.end_date >= night,
            ).order_by(RateMatrixRow.id).all()
            return [row.to_entry() for row in rows]

    def find_entries_in_window(self, property_id: str, check_in: date, check_out: date,
                               room_category: Optional[str] = None,
                               plan_type: Optional[PlanType] = None,
                               occupancy_type: Optional[OccupancyType] = None) -> List[RateMatrixEntry]:
        with self._lock:
            query = self.db.query(RateMatrixRow).filter(
                RateMatrixRow.property_id == property_id,
                RateMatrixRow.is_active == True,
                RateMatrixRow.start_date < check_out,
                RateMatrixRow.end_date >= check_in,
            )
            if room_category is not None:
                query = query.filter(RateMatrixRow.room_category == room_category)
            if plan_type is not None:
                query = query.filter(RateMatrixRow.plan_type == PlanType(plan_type))
            if occupancy_type is not None:
                query = query.filter(RateMatrixRow.occupancy_type == OccupancyType(occupancy_type))
            return [row.to_entry() for row in query.order_by(RateMatrixRow.id).all()]


class SqlOverrideStore(_SessionStore):
    """Override reads"""

    def find_override(self, property_id: str, room_category: str, plan_type: PlanType,
                      occupancy_type: OccupancyType, night: date) -> Optional[OverrideEntry]:
        with self._lock:
            rows = self.db.query(RateOverrideRow).filter(
                RateOverrideRow.property_id == property_id,
                RateOverrideRow.room_category == room_category,
                RateOverrideRow.plan_type == PlanType(plan_type),
                RateOverrideRow.occupancy_type == OccupancyType(occupancy_type),
                RateOverrideRow.is_active == True,
                RateOverrideRow.start_date <= night,
                RateOverrideRow.end_date >= night,
            ).order_by(RateOverrideRow.id).all()
            candidates = [row.to_entry() for row in rows]
        return pick_override(candidates)


class SqlAdjustmentRuleStore(_SessionStore):
    """
    Adjustment rule reads
    Candidate rows (active, global or owned by the property) are loaded once
    per store instance; condition matching happens in the engine helpers.
    """

    def __init__(self, db: Session, lock: Optional[threading.Lock] = None):
        super().__init__(db, lock)
        self._cache = {}

    def _candidates(self, property_id: str) -> List[AdjustmentRule]:
        with self._lock:
            if property_id not in self._cache:
                rows = self.db.query(AdjustmentRuleRow).filter(
                    AdjustmentRuleRow.is_active == True,
                    or_(AdjustmentRuleRow.property_id == None,
                        AdjustmentRuleRow.property_id == property_id),
                ).order_by(AdjustmentRuleRow.id).all()
                self._cache[property_id] = [row.to_rule() for row in rows]
                logger.debug(f"Loaded {len(rows)} adjustment rule(s) for {property_id}")
            return self._cache[property_id]

    def find_applicable_rules(self, property_id: str, plan_type: PlanType, night: date,
                              booking_date: date, check_in: Optional[date] = None,
                              room_category: Optional[str] = None) -> List[AdjustmentRule]:
        return select_applicable_rules(
            self._candidates(property_id), property_id, plan_type, night,
            booking_date, check_in, room_category
        )
