"""Service for Invoices module."""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import NotFoundError, ValidationError
from src.modules.directory.models import Enrollment, Family
from src.modules.invoices.models import Invoice, InvoiceLineItem, InvoiceStatus, Payment
from src.modules.invoices.schemas import InvoiceCreate, PaymentCreate
from src.modules.revenue.service import RecognitionResult, RevenueRecognitionService
from src.shared.utils.money import round_money, sum_money

logger = logging.getLogger(__name__)


class InvoiceService:
    """
    Write path for invoices.

    Every mutation fires the matching revenue handler before the single commit,
    so an invoice change and its revenue consequence are atomic. If recognition
    fails the invoice change is not committed either.
    """

    def __init__(self, db: AsyncSession, revenue: RevenueRecognitionService | None = None):
        self.db = db
        self.revenue = revenue or RevenueRecognitionService(db)
        self.last_recognition: RecognitionResult | None = None

    # --- Invoice CRUD ---

    async def create_invoice(self, data: InvoiceCreate) -> Invoice:
        """Create an invoice with its line items, in any initial status."""
        family = await self.db.get(Family, data.family_id)
        if not family:
            raise NotFoundError("Family", data.family_id)

        enrollment_ids = {
            line.enrollment_id for line in data.line_items if line.enrollment_id is not None
        }
        if enrollment_ids:
            result = await self.db.execute(
                select(Enrollment.id).where(Enrollment.id.in_(enrollment_ids))
            )
            missing = enrollment_ids - set(result.scalars().all())
            if missing:
                raise NotFoundError("Enrollment", min(missing))

        invoice = Invoice(
            family_id=data.family_id,
            status=data.status.value,
            invoice_date=data.invoice_date,
            period_start=data.period_start,
            period_end=data.period_end,
            due_date=data.due_date,
            notes=data.notes,
            amount_paid=Decimal("0.00"),
        )
        invoice.line_items = [
            InvoiceLineItem(
                description=line.description,
                enrollment_id=line.enrollment_id,
                amount=round_money(line.amount) if line.amount is not None else None,
            )
            for line in data.line_items
        ]
        invoice.total_amount = sum_money(line.amount for line in invoice.line_items)
        self.db.add(invoice)
        await self.db.flush()

        self.last_recognition = await self.revenue.on_invoice_created(invoice)

        await self.db.commit()
        logger.info(f"Invoice {invoice.id} created with status '{invoice.status}'")
        return await self.get_invoice_by_id(invoice.id)

    async def update_status(self, invoice_id: int, status: InvoiceStatus | str) -> Invoice:
        """Change invoice status. Re-saving the same status is allowed."""
        invoice = await self.get_invoice_by_id(invoice_id)
        previous_status = invoice.status

        invoice.status = InvoiceStatus(status).value
        await self.db.flush()

        self.last_recognition = await self.revenue.on_invoice_status_changed(
            invoice, previous_status
        )

        await self.db.commit()
        if previous_status != invoice.status:
            logger.info(f"Invoice {invoice_id}: status {previous_status} -> {invoice.status}")
        return await self.get_invoice_by_id(invoice_id)

    async def record_payment(self, invoice_id: int, data: PaymentCreate) -> Invoice:
        """
        Record a payment and update amount_paid/status.

        Status becomes `paid` once payments cover the total, `partial` while
        something is paid. The status change goes through the transition handler.
        """
        invoice = await self.get_invoice_by_id(invoice_id)
        if not invoice.can_receive_payment:
            raise ValidationError(
                f"Cannot record a payment on an invoice with status '{invoice.status}'"
            )
        previous_status = invoice.status

        payment = Payment(
            invoice_id=invoice.id,
            amount=round_money(data.amount),
            payment_date=data.payment_date,
            payment_method=data.payment_method,
            reference=data.reference,
            notes=data.notes,
        )
        self.db.add(payment)
        await self.db.flush()

        total_paid = await self.db.scalar(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.invoice_id == invoice.id
            )
        )
        invoice.amount_paid = round_money(total_paid)
        if invoice.amount_paid >= invoice.total_amount:
            invoice.status = InvoiceStatus.PAID.value
        elif invoice.amount_paid > 0:
            invoice.status = InvoiceStatus.PARTIAL.value
        await self.db.flush()

        self.last_recognition = await self.revenue.on_invoice_status_changed(
            invoice, previous_status
        )

        await self.db.commit()
        return await self.get_invoice_by_id(invoice_id)

    async def get_invoice_by_id(self, invoice_id: int) -> Invoice:
        """Get invoice by ID with line items loaded."""
        result = await self.db.execute(
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .options(selectinload(Invoice.line_items))
            .execution_options(populate_existing=True)
        )
        invoice = result.scalar_one_or_none()
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice
