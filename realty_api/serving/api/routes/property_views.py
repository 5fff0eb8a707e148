"""
Property Views API Endpoints

Public endpoints that record a listing view and report view counts.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from pydantic import BaseModel, Field
import structlog

from realty_api.exceptions import ValidationError
from realty_api.serving.api.dependencies import get_view_counter
from realty_api.serving.api.middleware import client_ip
from realty_api.views.counter import ViewCounter

router = APIRouter()
logger = structlog.get_logger(__name__)

MAX_BATCH_IDS = 100


class RecordViewRequest(BaseModel):
    """Optional body of a view recording request"""
    viewer_profile_id: Optional[str] = Field(default=None, max_length=64)


class ViewCount(BaseModel):
    """View count payload"""
    count: int


class ViewCountResponse(BaseModel):
    """Single property view count"""
    success: bool = True
    data: ViewCount


class ViewCounts(BaseModel):
    """Batch view count payload"""
    counts: Dict[str, int]


class ViewCountsResponse(BaseModel):
    """View counts for several properties"""
    success: bool = True
    data: ViewCounts


@router.get("", response_model=ViewCountsResponse)
async def get_view_counts(
    ids: List[str] = Query(..., min_length=1, max_length=MAX_BATCH_IDS),
    counter: ViewCounter = Depends(get_view_counter),
) -> ViewCountsResponse:
    """Get total view counts for several properties."""
    counts = await counter.get_view_counts(ids)
    return ViewCountsResponse(data=ViewCounts(counts=counts))


@router.post("/{property_id}", response_model=ViewCountResponse)
async def record_property_view(
    property_id: str,
    request: Request,
    body: Optional[RecordViewRequest] = Body(default=None),
    counter: ViewCounter = Depends(get_view_counter),
) -> ViewCountResponse:
    """
    Record a view for a property and return the updated count.

    Repeat views from the same client IP on the same day are not counted
    again but still succeed.
    """
    viewer_ip = client_ip(request)
    if not viewer_ip:
        raise ValidationError("Unable to determine client IP")

    count = await counter.record_view(
        property_id,
        viewer_ip,
        viewer_profile_id=body.viewer_profile_id if body else None,
    )
    return ViewCountResponse(data=ViewCount(count=count))


@router.get("/{property_id}", response_model=ViewCountResponse)
async def get_property_view_count(
    property_id: str,
    counter: ViewCounter = Depends(get_view_counter),
) -> ViewCountResponse:
    """Get the total view count for a property without recording a new view."""
    count = await counter.get_view_count(property_id)
    return ViewCountResponse(data=ViewCount(count=count))
