"""Resolution endpoints - monthly goals and their status"""

from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from expense_ledger.api.dependencies import get_current_user_id, parse_id
from expense_ledger.api.v1.schemas import (
    CreateResolutionRequest,
    CreateResolutionResponse,
    MessageResponse,
    ResolutionParameters,
    ResolutionSchema,
    ResolutionStatusSchema,
)
from expense_ledger.infrastructure.database.repositories import to_resolution
from expense_ledger.infrastructure.database.session import get_db
from expense_ledger.services import resolutions

router = APIRouter()


@router.get("/resolutions", response_model=List[ResolutionSchema])
def list_resolutions(
    month_key: str = Query(..., description="Month in YYYY-MM form"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    items = []
    for record in resolutions.list_resolutions(db, user_id, month_key):
        resolution = to_resolution(record)
        items.append(
            ResolutionSchema(
                id=str(resolution.id),
                type=resolution.type,
                month_key=resolution.month_key,
                amount_threshold=resolution.amount_threshold,
                rating_threshold=resolution.rating_threshold,
                unit=resolution.unit,
                target_avg_rating=resolution.target_avg_rating,
                reduction_amount=resolution.reduction_amount,
                reduction_unit=resolution.reduction_unit,
                max_affective_amount=resolution.max_affective_amount,
                max_affective_count=resolution.max_affective_count,
                max_affective_period=resolution.max_affective_period,
            )
        )
    return items


@router.post("/resolutions", response_model=CreateResolutionResponse, status_code=201)
def create_resolution(
    request_body: CreateResolutionRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Create a resolution; at most nine per month"""
    parameters = request_body.model_dump(exclude={"type", "month_key"})
    record = resolutions.create_resolution(db, user_id, request_body.type, request_body.month_key, parameters)
    return CreateResolutionResponse(id=str(record.id), message="Resolution created")


@router.put("/resolutions/{resolution_id}", response_model=MessageResponse)
def update_resolution(
    resolution_id: str,
    request_body: ResolutionParameters,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    resolutions.update_resolution(db, user_id, parse_id(resolution_id, "resolution"), request_body.model_dump())
    return MessageResponse(message="Resolution updated")


@router.delete("/resolutions/{resolution_id}", response_model=MessageResponse)
def delete_resolution(
    resolution_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
):
    resolutions.delete_resolution(db, user_id, parse_id(resolution_id, "resolution"))
    return MessageResponse(message="Resolution deleted")


@router.get("/resolutions/status", response_model=List[ResolutionStatusSchema])
def get_resolution_status(
    month_key: str = Query(..., description="Month in YYYY-MM form"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Progress of every resolution of a month.

    Past months always report is_met=true.
    """
    return [
        ResolutionStatusSchema(
            id=str(s.resolution_id),
            is_met=s.is_met,
            current=s.current,
            target=s.target,
            description=s.description,
        )
        for s in resolutions.resolution_statuses(db, user_id, month_key)
    ]
