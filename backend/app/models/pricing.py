"""
Pricing configuration tables
Rate matrix, date overrides and adjustment rules. Rows are never deleted,
only deactivated, so historical quotes stay explainable.
"""
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Text, Enum as SQLEnum, Boolean, Numeric, JSON, Index
)

from app.database import Base
from rate_engine.conditions import RuleCondition
from rate_engine.models import (
    AdjustmentRule, AdjustmentType, OccupancyType, OverrideEntry, PlanType, RateMatrixEntry
)


class RateMatrixRow(Base):
    """Base nightly price per (property, category, plan, occupancy, window)"""
    __tablename__ = "rate_matrix_entries"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(String(64), nullable=False, index=True)
    room_category = Column(String(50), nullable=False)
    plan_type = Column(SQLEnum(PlanType), nullable=False)
    occupancy_type = Column(SQLEnum(OccupancyType), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    season_label = Column(String(50))
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(64))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_rate_matrix_lookup", "property_id", "room_category", "plan_type", "occupancy_type"),
    )

    def to_entry(self) -> RateMatrixEntry:
        return RateMatrixEntry(
            entry_id=self.id,
            property_id=self.property_id,
            room_category=self.room_category,
            plan_type=self.plan_type,
            occupancy_type=self.occupancy_type,
            start_date=self.start_date,
            end_date=self.end_date,
            price=self.price,
            currency=self.currency,
            season_label=self.season_label,
            is_active=self.is_active,
        )


class RateOverrideRow(Base):
    """Explicit date-ranged price that replaces matrix + rules"""
    __tablename__ = "rate_overrides"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(String(64), nullable=False, index=True)
    room_category = Column(String(50), nullable=False)
    plan_type = Column(SQLEnum(PlanType), nullable=False)
    occupancy_type = Column(SQLEnum(OccupancyType), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    reason = Column(Text, nullable=False, default="")
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(64))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_rate_override_lookup", "property_id", "room_category", "plan_type", "occupancy_type"),
    )

    def to_entry(self) -> OverrideEntry:
        return OverrideEntry(
            override_id=self.id,
            property_id=self.property_id,
            room_category=self.room_category,
            plan_type=self.plan_type,
            occupancy_type=self.occupancy_type,
            start_date=self.start_date,
            end_date=self.end_date,
            price=self.price,
            reason=self.reason or "",
            currency=self.currency,
            is_active=self.is_active,
        )


class AdjustmentRuleRow(Base):
    """
    Conditional adjustment rule
    factors: {"EP": "1.2", "CP": "1.15", ...}
    condition: {"days_of_week": [4, 5], "start_date": ..., "max_days_before_checkin": 3}
    property_id NULL means a global default rule
    """
    __tablename__ = "adjustment_rules"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(String(64), index=True)
    name = Column(String(100), nullable=False)
    type = Column(SQLEnum(AdjustmentType), nullable=False)
    factors = Column(JSON, nullable=False, default=dict)
    condition = Column(JSON, nullable=False, default=dict)
    priority = Column(Integer, nullable=False, default=0)
    min_price = Column(Numeric(12, 2))
    max_price = Column(Numeric(12, 2))
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(64))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_rule(self) -> AdjustmentRule:
        # id is monotonic, so it doubles as the insertion-order tie-break
        return AdjustmentRule(
            rule_id=self.id,
            name=self.name,
            type=self.type,
            factors={PlanType(plan): value for plan, value in (self.factors or {}).items()},
            condition=RuleCondition.from_dict(self.condition),
            priority=self.priority,
            property_id=self.property_id,
            sequence=self.id,
            min_price=self.min_price,
            max_price=self.max_price,
            is_active=self.is_active,
        )
