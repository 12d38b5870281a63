"""
Rate administration service
Create / update / deactivate the pricing configuration rows.
Rows are never deleted; deactivation keeps the audit history.
"""
from typing import List, Optional
import logging
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.pricing import RateMatrixRow, RateOverrideRow, AdjustmentRuleRow
from app.models.schemas import (
    RateMatrixCreate, RateMatrixUpdate,
    RateOverrideCreate, RateOverrideUpdate,
    AdjustmentRuleCreate, AdjustmentRuleUpdate,
)

logger = logging.getLogger(__name__)


def _validate_window(row) -> None:
    if row.end_date < row.start_date:
        raise ValueError("end_date must not be before start_date")


def _factors_to_storage(factors) -> dict:
    return {getattr(plan, "value", plan): str(value) for plan, value in factors.items()}


class RateAdminService:
    """Administrative writes for matrix entries, overrides and adjustment rules"""

    def __init__(self, db: Session):
        self.db = db

    # ============== Rate matrix ==============

    def list_matrix_entries(self, property_id: Optional[str] = None,
                            room_category: Optional[str] = None,
                            is_active: Optional[bool] = None) -> List[RateMatrixRow]:
        query = self.db.query(RateMatrixRow)
        if property_id:
            query = query.filter(RateMatrixRow.property_id == property_id)
        if room_category:
            query = query.filter(RateMatrixRow.room_category == room_category.upper())
        if is_active is not None:
            query = query.filter(RateMatrixRow.is_active == is_active)
        return query.order_by(RateMatrixRow.start_date, RateMatrixRow.id).all()

    def get_matrix_entry(self, entry_id: int) -> Optional[RateMatrixRow]:
        return self.db.query(RateMatrixRow).filter(RateMatrixRow.id == entry_id).first()

    def create_matrix_entry(self, data: RateMatrixCreate, created_by: Optional[str] = None) -> RateMatrixRow:
        row = RateMatrixRow(**data.model_dump(), created_by=created_by)
        _validate_window(row)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"Rate matrix entry {row.id} created for {row.property_id}/{row.room_category}")
        return row

    def update_matrix_entry(self, entry_id: int, data: RateMatrixUpdate) -> RateMatrixRow:
        row = self.get_matrix_entry(entry_id)
        if not row:
            raise ValueError("Rate matrix entry not found")

        for key, value in data.model_dump(exclude_unset=True).items():
            if key == "currency" and value:
                value = value.upper()
            setattr(row, key, value)
        try:
            _validate_window(row)
        except ValueError:
            self.db.rollback()
            raise

        self.db.commit()
        self.db.refresh(row)
        return row

    def deactivate_matrix_entry(self, entry_id: int) -> RateMatrixRow:
        row = self.get_matrix_entry(entry_id)
        if not row:
            raise ValueError("Rate matrix entry not found")
        row.is_active = False
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"Rate matrix entry {entry_id} deactivated")
        return row

    # ============== Overrides ==============

    def list_overrides(self, property_id: Optional[str] = None,
                       is_active: Optional[bool] = None) -> List[RateOverrideRow]:
        query = self.db.query(RateOverrideRow)
        if property_id:
            query = query.filter(RateOverrideRow.property_id == property_id)
        if is_active is not None:
            query = query.filter(RateOverrideRow.is_active == is_active)
        return query.order_by(RateOverrideRow.start_date, RateOverrideRow.id).all()

    def get_override(self, override_id: int) -> Optional[RateOverrideRow]:
        return self.db.query(RateOverrideRow).filter(RateOverrideRow.id == override_id).first()

    def create_override(self, data: RateOverrideCreate, created_by: Optional[str] = None) -> RateOverrideRow:
        row = RateOverrideRow(**data.model_dump(), created_by=created_by)
        _validate_window(row)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"Override {row.id} created for {row.property_id}: {row.reason}")
        return row

    def update_override(self, override_id: int, data: RateOverrideUpdate) -> RateOverrideRow:
        row = self.get_override(override_id)
        if not row:
            raise ValueError("Override not found")

        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(row, key, value)
        try:
            _validate_window(row)
        except ValueError:
            self.db.rollback()
            raise

        self.db.commit()
        self.db.refresh(row)
        return row

    def deactivate_override(self, override_id: int) -> RateOverrideRow:
        row = self.get_override(override_id)
        if not row:
            raise ValueError("Override not found")
        row.is_active = False
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"Override {override_id} deactivated")
        return row

    # ============== Adjustment rules ==============

    def list_rules(self, property_id: Optional[str] = None,
                   is_active: Optional[bool] = None) -> List[AdjustmentRuleRow]:
        query = self.db.query(AdjustmentRuleRow)
        if property_id:
            query = query.filter(or_(AdjustmentRuleRow.property_id == None,
                                     AdjustmentRuleRow.property_id == property_id))
        if is_active is not None:
            query = query.filter(AdjustmentRuleRow.is_active == is_active)
        return query.order_by(AdjustmentRuleRow.priority.desc(), AdjustmentRuleRow.id).all()

    def get_rule(self, rule_id: int) -> Optional[AdjustmentRuleRow]:
        return self.db.query(AdjustmentRuleRow).filter(AdjustmentRuleRow.id == rule_id).first()

    def create_rule(self, data: AdjustmentRuleCreate, created_by: Optional[str] = None) -> AdjustmentRuleRow:
        row = AdjustmentRuleRow(
            property_id=data.property_id,
            name=data.name,
            type=data.type,
            factors=_factors_to_storage(data.factors),
            condition=data.condition.to_storage(),
            priority=data.priority,
            min_price=data.min_price,
            max_price=data.max_price,
            created_by=created_by,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"Adjustment rule {row.id} '{row.name}' created (priority {row.priority})")
        return row

    def update_rule(self, rule_id: int, data: AdjustmentRuleUpdate) -> AdjustmentRuleRow:
        row = self.get_rule(rule_id)
        if not row:
            raise ValueError("Adjustment rule not found")

        update_data = data.model_dump(exclude_unset=True)
        if "factors" in update_data:
            if not data.factors:
                raise ValueError("factors must define at least one plan type")
            update_data["factors"] = _factors_to_storage(data.factors)
        if "condition" in update_data:
            update_data["condition"] = data.condition.to_storage() if data.condition else {}

        for key, value in update_data.items():
            setattr(row, key, value)

        if row.min_price is not None and row.max_price is not None and row.min_price > row.max_price:
            self.db.rollback()
            raise ValueError("min_price must not exceed max_price")

        self.db.commit()
        self.db.refresh(row)
        return row

    def deactivate_rule(self, rule_id: int) -> AdjustmentRuleRow:
        row = self.get_rule(rule_id)
        if not row:
            raise ValueError("Adjustment rule not found")
        row.is_active = False
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"Adjustment rule {rule_id} deactivated")
        return row
