"""
Pydantic schemas
Request/response validation for the pricing API
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from rate_engine.conditions import parse_weekday
from rate_engine.models import AdjustmentType, OccupancyType, PlanType


def _check_window(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValueError("end_date must not be before start_date")


def _reject_nulls(model: BaseModel, fields) -> None:
    """Explicit null is only allowed on nullable columns"""
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise ValueError(f"{name} must not be null")


# ============== Rate matrix Schemas ==============

class RateMatrixCreate(BaseModel):
    property_id: str = Field(..., max_length=64)
    room_category: str = Field(..., max_length=50)
    plan_type: PlanType
    occupancy_type: OccupancyType
    start_date: date
    end_date: date
    price: Decimal = Field(..., ge=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)
    season_label: Optional[str] = Field(None, max_length=50)

    @field_validator("room_category", "currency")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def check_window(self):
        _check_window(self.start_date, self.end_date)
        return self


class RateMatrixUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    price: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    season_label: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def check_nulls(self):
        _reject_nulls(self, ("start_date", "end_date", "price", "currency", "is_active"))
        return self


class RateMatrixResponse(BaseModel):
    id: int
    property_id: str
    room_category: str
    plan_type: PlanType
    occupancy_type: OccupancyType
    start_date: date
    end_date: date
    price: Decimal
    currency: str
    season_label: Optional[str] = None
    is_active: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== Override Schemas ==============

class RateOverrideCreate(BaseModel):
    property_id: str = Field(..., max_length=64)
    room_category: str = Field(..., max_length=50)
    plan_type: PlanType
    occupancy_type: OccupancyType
    start_date: date
    end_date: date
    price: Decimal = Field(..., ge=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)
    reason: str = Field(..., min_length=1)

    @field_validator("room_category", "currency")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def check_window(self):
        _check_window(self.start_date, self.end_date)
        return self


class RateOverrideUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    price: Optional[Decimal] = Field(None, ge=0)
    reason: Optional[str] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def check_nulls(self):
        _reject_nulls(self, ("start_date", "end_date", "price", "reason", "is_active"))
        return self


class RateOverrideResponse(BaseModel):
    id: int
    property_id: str
    room_category: str
    plan_type: PlanType
    occupancy_type: OccupancyType
    start_date: date
    end_date: date
    price: Decimal
    currency: str
    reason: str
    is_active: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== Adjustment rule Schemas ==============

class RuleConditionSchema(BaseModel):
    """All declared fields must hold (AND)"""
    days_of_week: Optional[List[int]] = Field(None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_days_before_checkin: Optional[int] = Field(None, ge=0)
    min_days_before_checkin: Optional[int] = Field(None, ge=0)
    room_categories: Optional[List[str]] = Field(None, min_length=1)

    @field_validator("days_of_week", mode="before")
    @classmethod
    def parse_days(cls, v):
        if v is None:
            return v
        return sorted({parse_weekday(d) for d in v})

    @model_validator(mode="after")
    def check_window(self):
        _check_window(self.start_date, self.end_date)
        return self

    def to_storage(self) -> dict:
        data = self.model_dump(exclude_none=True, mode="json")
        if "room_categories" in data:
            data["room_categories"] = [c.upper() for c in data["room_categories"]]
        return data


class AdjustmentRuleCreate(BaseModel):
    property_id: Optional[str] = Field(None, max_length=64)
    name: str = Field(..., max_length=100)
    type: AdjustmentType
    factors: Dict[PlanType, Decimal]
    condition: RuleConditionSchema = Field(default_factory=RuleConditionSchema)
    priority: int = 0
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_bounds(self):
        if not self.factors:
            raise ValueError("factors must define at least one plan type")
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self


class AdjustmentRuleUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    type: Optional[AdjustmentType] = None
    factors: Optional[Dict[PlanType, Decimal]] = None
    condition: Optional[RuleConditionSchema] = None
    priority: Optional[int] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def check_nulls(self):
        _reject_nulls(self, ("name", "type", "factors", "priority", "is_active"))
        return self


class AdjustmentRuleResponse(BaseModel):
    id: int
    property_id: Optional[str] = None
    name: str
    type: AdjustmentType
    factors: Dict[str, Decimal]
    condition: dict
    priority: int
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    is_active: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
