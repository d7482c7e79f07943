"""API endpoints for Revenue module."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.revenue.schemas import (
    BackfillRequest,
    BackfillResponse,
    LocationRevenue,
    RevenueRecordFilters,
    RevenueRecordResponse,
)
from src.modules.revenue.service import RevenueRecognitionService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/revenue", tags=["Revenue"])


@router.get(
    "/records",
    response_model=ApiResponse[PaginatedResponse[RevenueRecordResponse]],
)
async def list_revenue_records(
    invoice_id: int | None = Query(None),
    family_id: int | None = Query(None),
    location_id: int | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List recognized revenue records."""
    service = RevenueRecognitionService(db)
    filters = RevenueRecordFilters(
        invoice_id=invoice_id,
        family_id=family_id,
        location_id=location_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    records, total = await service.list_records(filters)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[RevenueRecordResponse.model_validate(r) for r in records],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/by-location",
    response_model=ApiResponse[list[LocationRevenue]],
)
async def revenue_by_location(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Recognized revenue totals per location."""
    service = RevenueRecognitionService(db)
    data = await service.revenue_by_location(date_from=date_from, date_to=date_to)
    return ApiResponse(success=True, data=data)


@router.post(
    "/backfill",
    response_model=ApiResponse[BackfillResponse],
)
async def backfill_revenue(
    data: BackfillRequest,
    db: AsyncSession = Depends(get_db),
):
    """Recognize revenue for already-paid invoices. Safe to repeat."""
    service = RevenueRecognitionService(db)
    result = await service.backfill(since=data.since, family_id=data.family_id)
    await db.commit()
    return ApiResponse(
        success=True,
        message=f"Created {result.records_created} revenue record(s)",
        data=result,
    )
