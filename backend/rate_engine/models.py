"""
rate_engine/models.py

Immutable value objects passed into the pricing functions.

Configuration rows (matrix entries, overrides, adjustment rules) are authored
by administrators elsewhere; the engine only reads them. Result objects
(nightly price, stay price, quote) are derived per call and never persisted.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from rate_engine.conditions import RuleCondition
from rate_engine.errors import RuleConfigurationWarning
from rate_engine.money import DEFAULT_CURRENCY, to_decimal


class PlanType(str, Enum):
    """Rate plan codes"""
    EP = "EP"      # room only
    CP = "CP"      # breakfast included
    MAP = "MAP"    # half board
    AP = "AP"      # full board


class OccupancyType(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    QUAD = "quad"


class AdjustmentType(str, Enum):
    MULTIPLIER = "multiplier"
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class PriceSource(str, Enum):
    OVERRIDE = "override"
    MATRIX = "matrix"


PriceKey = Tuple[str, str, PlanType, OccupancyType]


def _check_window(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise ValueError(f"start_date {start_date} is after end_date {end_date}")


def _check_price(price: Decimal) -> None:
    if price < 0:
        raise ValueError(f"Price must be non-negative, got {price}")


@dataclass(frozen=True)
class RateMatrixEntry:
    """
    Base nightly price for a (property, category, plan, occupancy) tuple.

    Attributes:
        entry_id: Store identifier
        property_id: Opaque property identifier
        room_category: Catalog room category code
        plan_type: Rate plan
        occupancy_type: Guest-count tier
        start_date: First night covered (inclusive)
        end_date: Last night covered (inclusive)
        price: Nightly price
        currency: ISO 4217 code
        season_label: Optional label such as "Peak"
        is_active: Soft-delete flag
    """

    entry_id: Any
    property_id: str
    room_category: str
    plan_type: PlanType
    occupancy_type: OccupancyType
    start_date: date
    end_date: date
    price: Decimal
    currency: str = DEFAULT_CURRENCY
    season_label: Optional[str] = None
    is_active: bool = True

    def __post_init__(self):
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "plan_type", PlanType(self.plan_type))
        object.__setattr__(self, "occupancy_type", OccupancyType(self.occupancy_type))
        _check_window(self.start_date, self.end_date)
        _check_price(self.price)

    @property
    def key(self) -> PriceKey:
        return (self.property_id, self.room_category, self.plan_type, self.occupancy_type)

    def covers(self, night: date) -> bool:
        return self.start_date <= night <= self.end_date

    def intersects(self, start: date, end_exclusive: date) -> bool:
        """True if any night in [start, end_exclusive) falls inside the window."""
        return self.start_date < end_exclusive and self.end_date >= start


@dataclass(frozen=True)
class OverrideEntry:
    """An explicit nightly price that bypasses the matrix and the rule stack."""

    override_id: Any
    property_id: str
    room_category: str
    plan_type: PlanType
    occupancy_type: OccupancyType
    start_date: date
    end_date: date
    price: Decimal
    reason: str = ""
    currency: str = DEFAULT_CURRENCY
    is_active: bool = True

    def __post_init__(self):
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "plan_type", PlanType(self.plan_type))
        object.__setattr__(self, "occupancy_type", OccupancyType(self.occupancy_type))
        _check_window(self.start_date, self.end_date)
        _check_price(self.price)

    @property
    def key(self) -> PriceKey:
        return (self.property_id, self.room_category, self.plan_type, self.occupancy_type)

    def covers(self, night: date) -> bool:
        return self.start_date <= night <= self.end_date


@dataclass(frozen=True)
class AdjustmentRule:
    """
    Conditional, prioritized price adjustment.

    Attributes:
        rule_id: Store identifier
        name: Human-readable name shown in the audit trail
        type: multiplier / percentage / fixed_amount
        factors: Per-plan adjustment factor
        condition: Declared conditions (AND semantics)
        priority: Higher evaluates first
        property_id: None for a global default rule
        sequence: Stable secondary ordering key (insertion order)
        min_price: Optional floor applied right after this rule's step
        max_price: Optional ceiling applied right after this rule's step
        is_active: Soft-delete flag
    """

    rule_id: Any
    name: str
    type: AdjustmentType
    factors: Mapping[PlanType, Decimal]
    condition: RuleCondition = field(default_factory=RuleCondition)
    priority: int = 0
    property_id: Optional[str] = None
    sequence: int = 0
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    is_active: bool = True

    def __post_init__(self):
        object.__setattr__(self, "type", AdjustmentType(self.type))
        object.__setattr__(
            self,
            "factors",
            {PlanType(plan): to_decimal(value) for plan, value in self.factors.items()},
        )
        if self.min_price is not None:
            object.__setattr__(self, "min_price", to_decimal(self.min_price))
        if self.max_price is not None:
            object.__setattr__(self, "max_price", to_decimal(self.max_price))
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError(f"Rule '{self.name}': min_price exceeds max_price")

    @property
    def is_global(self) -> bool:
        return self.property_id is None

    def factor_for(self, plan_type: PlanType) -> Optional[Decimal]:
        return self.factors.get(PlanType(plan_type))

    def apply(self, price: Decimal, plan_type: PlanType) -> Decimal:
        """Apply one step of the rule stack to a running price."""
        factor = self.factor_for(plan_type)
        if factor is None:
            return price
        if self.type is AdjustmentType.MULTIPLIER:
            return price * factor
        if self.type is AdjustmentType.PERCENTAGE:
            return price * (1 + factor / 100)
        return price + factor


@dataclass(frozen=True)
class AppliedAdjustment:
    """One audit trail entry: which rule fired and by how much."""

    rule_name: str
    type: Optional[AdjustmentType]
    delta: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_name": self.rule_name,
            "type": self.type.value if self.type else None,
            "delta": str(self.delta),
        }


@dataclass(frozen=True)
class NightlyPrice:
    """Resolved price for a single night."""

    night: date
    nightly_price: Decimal
    currency: str
    source: PriceSource
    base_price: Decimal
    applied_adjustments: Tuple[AppliedAdjustment, ...] = ()
    warnings: Tuple[RuleConfigurationWarning, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "night": self.night.isoformat(),
            "nightly_price": str(self.nightly_price),
            "currency": self.currency,
            "source": self.source.value,
            "base_price": str(self.base_price),
            "applied_adjustments": [a.to_dict() for a in self.applied_adjustments],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class StayPrice:
    """Per-night breakdown and total for a stay [check_in, check_out)."""

    property_id: str
    room_category: str
    plan_type: PlanType
    occupancy_type: OccupancyType
    check_in: date
    check_out: date
    nights: int
    total_price: Decimal
    currency: str
    breakdown: Tuple[NightlyPrice, ...]

    @property
    def nightly_prices(self) -> List[Decimal]:
        return [n.nightly_price for n in self.breakdown]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "property_id": self.property_id,
            "room_category": self.room_category,
            "plan_type": self.plan_type.value,
            "occupancy_type": self.occupancy_type.value,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "total_price": str(self.total_price),
            "currency": self.currency,
            "breakdown": [n.to_dict() for n in self.breakdown],
        }


@dataclass(frozen=True)
class QuoteGroup:
    room_category: str
    plan_type: PlanType
    occupancy_type: OccupancyType
    lowest_price: Decimal
    highest_price: Decimal
    currency: str
    entry_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_category": self.room_category,
            "plan_type": self.plan_type.value,
            "occupancy_type": self.occupancy_type.value,
            "lowest_price": str(self.lowest_price),
            "highest_price": str(self.highest_price),
            "currency": self.currency,
            "entry_count": self.entry_count,
        }


LISTING_QUOTE_LABEL = "listing quote: pre-rule, pre-override; not a bookable price"


@dataclass(frozen=True)
class Quote:
    """
    Approximate "from X/night" price range for listing and search.

    Built from raw matrix prices only. Callers needing a bookable price must
    price the stay with a fully specified tuple.
    """

    property_id: str
    check_in: date
    check_out: date
    groups: Tuple[QuoteGroup, ...]
    lowest_price: Optional[Decimal]
    highest_price: Optional[Decimal]
    currency: Optional[str]
    is_bookable: bool = False
    label: str = LISTING_QUOTE_LABEL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "property_id": self.property_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "groups": [g.to_dict() for g in self.groups],
            "lowest_price": str(self.lowest_price) if self.lowest_price is not None else None,
            "highest_price": str(self.highest_price) if self.highest_price is not None else None,
            "currency": self.currency,
            "is_bookable": self.is_bookable,
            "label": self.label,
        }


@dataclass(frozen=True)
class CalendarDay:
    """One day of a price calendar; unavailable days carry no price."""

    night: date
    available: bool
    nightly_price: Optional[Decimal] = None
    currency: Optional[str] = None
    source: Optional[PriceSource] = None
    is_weekend: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "night": self.night.isoformat(),
            "available": self.available,
            "nightly_price": str(self.nightly_price) if self.nightly_price is not None else None,
            "currency": self.currency,
            "source": self.source.value if self.source else None,
            "is_weekend": self.is_weekend,
        }


__all__ = [
    "PlanType",
    "OccupancyType",
    "AdjustmentType",
    "PriceSource",
    "PriceKey",
    "RateMatrixEntry",
    "OverrideEntry",
    "AdjustmentRule",
    "AppliedAdjustment",
    "NightlyPrice",
    "StayPrice",
    "QuoteGroup",
    "Quote",
    "CalendarDay",
    "LISTING_QUOTE_LABEL",
]
