"""API endpoints for Invoices module."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.invoices.models import Invoice
from src.modules.invoices.schemas import (
    InvoiceCreate,
    InvoiceLineItemResponse,
    InvoiceResponse,
    InvoiceStatusUpdate,
    PaymentCreate,
)
from src.modules.invoices.service import InvoiceService
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def _invoice_to_response(invoice: Invoice, service: InvoiceService | None = None) -> InvoiceResponse:
    """Convert Invoice model to response schema."""
    recognition = service.last_recognition if service else None
    return InvoiceResponse(
        id=invoice.id,
        family_id=invoice.family_id,
        status=invoice.status,
        invoice_date=invoice.invoice_date,
        period_start=invoice.period_start,
        period_end=invoice.period_end,
        due_date=invoice.due_date,
        total_amount=invoice.total_amount,
        amount_paid=invoice.amount_paid,
        balance_due=invoice.balance_due,
        notes=invoice.notes,
        line_items=[
            InvoiceLineItemResponse.model_validate(line) for line in invoice.line_items
        ],
        revenue_records_created=recognition.inserted_count if recognition else None,
    )


@router.post(
    "",
    response_model=ApiResponse[InvoiceResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice(
    data: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create an invoice. Invoices created as `paid` are recognized immediately."""
    service = InvoiceService(db)
    invoice = await service.create_invoice(data)
    return ApiResponse(
        success=True,
        message="Invoice created successfully",
        data=_invoice_to_response(invoice, service),
    )


@router.get(
    "/{invoice_id}",
    response_model=ApiResponse[InvoiceResponse],
)
async def get_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get invoice by ID."""
    service = InvoiceService(db)
    invoice = await service.get_invoice_by_id(invoice_id)
    return ApiResponse(success=True, data=_invoice_to_response(invoice))


@router.patch(
    "/{invoice_id}/status",
    response_model=ApiResponse[InvoiceResponse],
)
async def update_invoice_status(
    invoice_id: int,
    data: InvoiceStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Change invoice status. A transition into `paid` recognizes revenue."""
    service = InvoiceService(db)
    invoice = await service.update_status(invoice_id, data.status)
    return ApiResponse(
        success=True,
        message="Invoice status updated",
        data=_invoice_to_response(invoice, service),
    )


@router.post(
    "/{invoice_id}/payments",
    response_model=ApiResponse[InvoiceResponse],
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    invoice_id: int,
    data: PaymentCreate,
    db: AsyncSession = Depends(get_db),
):
    """Record a payment. Paying the invoice in full recognizes revenue."""
    service = InvoiceService(db)
    invoice = await service.record_payment(invoice_id, data)
    return ApiResponse(
        success=True,
        message="Payment recorded",
        data=_invoice_to_response(invoice, service),
    )
