"""
Pricing routes
Resolved stay/night prices, listing quotes and price calendars
"""
from typing import Optional
from datetime import date, timedelta
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.pricing_service import PricingService
from rate_engine.errors import InvalidDateRange, NoPriceConfigured, PricingError, StoreUnavailable
from rate_engine.models import OccupancyType, PlanType

router = APIRouter(prefix="/pricing", tags=["Pricing"])


def get_pricing_service(db: Session = Depends(get_db)):
    """Dependency: request-scoped pricing service"""
    service = PricingService(db)
    try:
        yield service
    finally:
        service.close()


def to_http_error(e: PricingError) -> HTTPException:
    """Map engine failures to HTTP errors; no price is ever defaulted"""
    if isinstance(e, NoPriceConfigured):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pricing not available for these dates/category: {e}"
        )
    if isinstance(e, InvalidDateRange):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, StoreUnavailable):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.get("/stay")
def price_stay(
    property_id: str,
    room_category: str,
    plan_type: PlanType,
    occupancy_type: OccupancyType,
    check_in: date,
    check_out: date,
    booking_date: Optional[date] = None,
    service: PricingService = Depends(get_pricing_service)
):
    """Bookable price of a stay with per-night breakdown"""
    try:
        stay = service.price_stay(
            property_id, room_category, plan_type, occupancy_type,
            check_in, check_out, booking_date
        )
    except PricingError as e:
        raise to_http_error(e)
    return stay.to_dict()


@router.get("/night")
def price_night(
    property_id: str,
    room_category: str,
    plan_type: PlanType,
    occupancy_type: OccupancyType,
    night: date,
    booking_date: Optional[date] = None,
    service: PricingService = Depends(get_pricing_service)
):
    """Resolved price of one night with its audit trail"""
    try:
        price = service.price_night(
            property_id, room_category, plan_type, occupancy_type, night, booking_date
        )
    except PricingError as e:
        raise to_http_error(e)
    return price.to_dict()


@router.get("/quote")
def get_quote(
    property_id: str,
    check_in: date,
    check_out: date,
    room_category: Optional[str] = None,
    plan_type: Optional[PlanType] = None,
    occupancy_type: Optional[OccupancyType] = None,
    service: PricingService = Depends(get_pricing_service)
):
    """Listing quote ("from X/night"); not a bookable price"""
    try:
        quote = service.quote(
            property_id, check_in, check_out, room_category, plan_type, occupancy_type
        )
    except PricingError as e:
        raise to_http_error(e)
    return quote.to_dict()


@router.get("/calendar")
def get_price_calendar(
    property_id: str,
    room_category: str,
    plan_type: PlanType,
    occupancy_type: OccupancyType,
    start_date: Optional[date] = Query(None, description="Defaults to today"),
    end_date: Optional[date] = Query(None, description="Defaults to start + 30 days"),
    booking_date: Optional[date] = None,
    service: PricingService = Depends(get_pricing_service)
):
    """Per-day price calendar"""
    if not start_date:
        start_date = date.today()
    if not end_date:
        end_date = start_date + timedelta(days=30)
    try:
        days = service.price_calendar(
            property_id, room_category, plan_type, occupancy_type,
            start_date, end_date, booking_date
        )
    except PricingError as e:
        raise to_http_error(e)
    return [d.to_dict() for d in days]
