"""
Rate administration routes
Matrix entries, overrides and adjustment rules; deactivate instead of delete
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.schemas import (
    RateMatrixCreate, RateMatrixUpdate, RateMatrixResponse,
    RateOverrideCreate, RateOverrideUpdate, RateOverrideResponse,
    AdjustmentRuleCreate, AdjustmentRuleUpdate, AdjustmentRuleResponse,
)
from app.services.rate_admin_service import RateAdminService

router = APIRouter(prefix="/rates", tags=["Rate administration"])


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def _bad_request(e: ValueError) -> HTTPException:
    if "not found" in str(e):
        return _not_found(str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ============== Rate matrix ==============

@router.get("/matrix", response_model=List[RateMatrixResponse])
def list_matrix_entries(
    property_id: Optional[str] = None,
    room_category: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """List rate matrix entries"""
    return RateAdminService(db).list_matrix_entries(property_id, room_category, is_active)


@router.get("/matrix/{entry_id}", response_model=RateMatrixResponse)
def get_matrix_entry(entry_id: int, db: Session = Depends(get_db)):
    """Get one rate matrix entry"""
    row = RateAdminService(db).get_matrix_entry(entry_id)
    if not row:
        raise _not_found("Rate matrix entry not found")
    return row


@router.post("/matrix", response_model=RateMatrixResponse)
def create_matrix_entry(data: RateMatrixCreate, db: Session = Depends(get_db)):
    """Create a rate matrix entry"""
    try:
        return RateAdminService(db).create_matrix_entry(data)
    except ValueError as e:
        raise _bad_request(e)


@router.put("/matrix/{entry_id}", response_model=RateMatrixResponse)
def update_matrix_entry(entry_id: int, data: RateMatrixUpdate, db: Session = Depends(get_db)):
    """Update a rate matrix entry"""
    try:
        return RateAdminService(db).update_matrix_entry(entry_id, data)
    except ValueError as e:
        raise _bad_request(e)


@router.post("/matrix/{entry_id}/deactivate", response_model=RateMatrixResponse)
def deactivate_matrix_entry(entry_id: int, db: Session = Depends(get_db)):
    """Deactivate a rate matrix entry"""
    try:
        return RateAdminService(db).deactivate_matrix_entry(entry_id)
    except ValueError as e:
        raise _bad_request(e)


# ============== Overrides ==============

@router.get("/overrides", response_model=List[RateOverrideResponse])
def list_overrides(
    property_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """List overrides"""
    return RateAdminService(db).list_overrides(property_id, is_active)


@router.post("/overrides", response_model=RateOverrideResponse)
def create_override(data: RateOverrideCreate, db: Session = Depends(get_db)):
    """Create an override"""
    try:
        return RateAdminService(db).create_override(data)
    except ValueError as e:
        raise _bad_request(e)


@router.put("/overrides/{override_id}", response_model=RateOverrideResponse)
def update_override(override_id: int, data: RateOverrideUpdate, db: Session = Depends(get_db)):
    """Update an override"""
    try:
        return RateAdminService(db).update_override(override_id, data)
    except ValueError as e:
        raise _bad_request(e)


@router.post("/overrides/{override_id}/deactivate", response_model=RateOverrideResponse)
def deactivate_override(override_id: int, db: Session = Depends(get_db)):
    """Deactivate an override"""
    try:
        return RateAdminService(db).deactivate_override(override_id)
    except ValueError as e:
        raise _bad_request(e)


# ============== Adjustment rules ==============

@router.get("/rules", response_model=List[AdjustmentRuleResponse])
def list_rules(
    property_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """List adjustment rules (global + property)"""
    return RateAdminService(db).list_rules(property_id, is_active)


@router.post("/rules", response_model=AdjustmentRuleResponse)
def create_rule(data: AdjustmentRuleCreate, db: Session = Depends(get_db)):
    """Create an adjustment rule"""
    try:
        return RateAdminService(db).create_rule(data)
    except ValueError as e:
        raise _bad_request(e)


@router.put("/rules/{rule_id}", response_model=AdjustmentRuleResponse)
def update_rule(rule_id: int, data: AdjustmentRuleUpdate, db: Session = Depends(get_db)):
    """Update an adjustment rule"""
    try:
        return RateAdminService(db).update_rule(rule_id, data)
    except ValueError as e:
        raise _bad_request(e)


@router.post("/rules/{rule_id}/deactivate", response_model=AdjustmentRuleResponse)
def deactivate_rule(rule_id: int, db: Session = Depends(get_db)):
    """Deactivate an adjustment rule"""
    try:
        return RateAdminService(db).deactivate_rule(rule_id)
    except ValueError as e:
        raise _bad_request(e)
