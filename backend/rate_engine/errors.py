"""
rate_engine/errors.py

Pricing error taxonomy.

Every failure is explicit and attributable to a missing or conflicting
configuration row; nothing here falls back to a default price.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class PricingError(Exception):
    """Base class for all pricing engine failures."""


class NoPriceConfigured(PricingError):
    """No matrix entry and no override exists for the requested tuple/night."""

    def __init__(
        self,
        property_id: str,
        room_category: str,
        plan_type: Any,
        occupancy_type: Any,
        night: date,
    ):
        self.property_id = property_id
        self.room_category = room_category
        self.plan_type = plan_type
        self.occupancy_type = occupancy_type
        self.night = night
        super().__init__(
            f"Pricing not available for {room_category}/{_code(plan_type)}/"
            f"{_code(occupancy_type)} at property {property_id} on {night.isoformat()}"
        )


class InvalidDateRange(PricingError):
    """checkOut <= checkIn, or checkIn beyond the maximum advance window."""

    def __init__(self, check_in: date, check_out: Optional[date], reason: str):
        self.check_in = check_in
        self.check_out = check_out
        self.reason = reason
        super().__init__(f"Invalid date range {check_in} -> {check_out}: {reason}")


class StoreUnavailable(PricingError):
    """A store read failed or timed out."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"Store read '{operation}' unavailable{detail}")


@dataclass(frozen=True)
class RuleConfigurationWarning:
    """
    Non-fatal configuration problem found while resolving a price.

    Warnings are logged, never raised. The resolved price still stands.

    Attributes:
        code: Machine-readable code ("matrix_overlap", "negative_before_clamp", ...)
        message: Human-readable description for operators
        context: Identifiers of the rows involved
    """

    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    def emit(self) -> "RuleConfigurationWarning":
        """Log this warning and return it for chaining."""
        logger.warning(f"[{self.code}] {self.message} {self.context}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "context": dict(self.context)}


def _code(value: Any) -> str:
    return getattr(value, "value", value)


__all__ = [
    "PricingError",
    "NoPriceConfigured",
    "InvalidDateRange",
    "StoreUnavailable",
    "RuleConfigurationWarning",
]
