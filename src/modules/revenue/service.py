"""Service for Revenue module: recognition handlers and ledger queries."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, settings as default_settings
from src.modules.directory.models import Enrollment, Location, Service
from src.modules.directory.service import DirectoryService, LocationTable
from src.modules.invoices.models import Invoice, InvoiceLineItem, InvoiceStatus
from src.modules.revenue.models import RevenueRecord
from src.modules.revenue.rules import (
    InvoiceFacts,
    LineItemFacts,
    RevenueCandidate,
    SkipReason,
    check_invoice_eligibility,
    evaluate_invoice,
)
from src.modules.revenue.schemas import (
    BackfillResponse,
    LocationRevenue,
    RevenueRecordFilters,
)
from src.shared.utils.money import round_money

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


@dataclass(frozen=True)
class RecognitionResult:
    """Outcome of one handler invocation for one invoice."""

    invoice_id: int
    skip_reason: SkipReason | None = None
    candidate_count: int = 0
    inserted_count: int = 0

    @property
    def duplicate_count(self) -> int:
        return self.candidate_count - self.inserted_count


class RevenueRecognitionService:
    """
    Materializes revenue records from invoice events.

    Two entry points, one code path:
    - on_invoice_created: invoice row inserted (historical imports land directly in `paid`)
    - on_invoice_status_changed: invoice row updated, previous status known

    Handlers run inside the caller's transaction and never commit. The invoice
    write and the revenue write succeed or fail together.
    """

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self.db = db
        self.settings = settings or default_settings

    @property
    def cutoff(self) -> date:
        return self.settings.revenue_cutoff_date

    # --- Event handlers ---

    async def on_invoice_created(self, invoice: Invoice) -> RecognitionResult:
        """Direct-insert path: there is no previous status."""
        return await self._recognize(InvoiceFacts.from_model(invoice), was_paid=False)

    async def on_invoice_status_changed(
        self, invoice: Invoice, previous_status: str | None
    ) -> RecognitionResult:
        """Status-transition path: paid -> paid is a no-op."""
        was_paid = previous_status == InvoiceStatus.PAID.value
        return await self._recognize(InvoiceFacts.from_model(invoice), was_paid=was_paid)

    async def _recognize(self, invoice: InvoiceFacts, was_paid: bool) -> RecognitionResult:
        skip_reason = check_invoice_eligibility(invoice, was_paid=was_paid, cutoff=self.cutoff)
        if skip_reason is not None:
            logger.debug(f"Invoice {invoice.id}: no revenue recognized ({skip_reason})")
            return RecognitionResult(invoice_id=invoice.id, skip_reason=skip_reason)

        # Line items may still be pending in the session
        await self.db.flush()

        line_items = await self._load_line_items(invoice.id)
        locations = await self._location_table()
        decision = evaluate_invoice(
            invoice,
            line_items,
            was_paid=was_paid,
            cutoff=self.cutoff,
            locations=locations,
        )

        inserted_ids = await self._insert_candidates(decision.candidates)
        result = RecognitionResult(
            invoice_id=invoice.id,
            skip_reason=decision.skip_reason,
            candidate_count=len(decision.candidates),
            inserted_count=len(inserted_ids),
        )

        if result.inserted_count:
            logger.info(
                f"Invoice {invoice.id}: recognized {result.inserted_count} revenue record(s)"
            )
        if result.duplicate_count:
            logger.warning(
                f"Invoice {invoice.id}: {result.duplicate_count} line item(s) already recognized, skipped"
            )
        return result

    async def _load_line_items(self, invoice_id: int) -> list[LineItemFacts]:
        """Line items with enrollment/service context. Missing joins degrade to None."""
        result = await self.db.execute(
            select(
                InvoiceLineItem.id,
                InvoiceLineItem.amount,
                InvoiceLineItem.enrollment_id,
                Enrollment.student_id,
                Enrollment.service_id,
                Enrollment.class_title,
                Service.code,
            )
            .select_from(InvoiceLineItem)
            .outerjoin(Enrollment, Enrollment.id == InvoiceLineItem.enrollment_id)
            .outerjoin(Service, Service.id == Enrollment.service_id)
            .where(InvoiceLineItem.invoice_id == invoice_id)
            .order_by(InvoiceLineItem.id)
        )
        return [
            LineItemFacts(
                id=row.id,
                amount=row.amount,
                enrollment_id=row.enrollment_id,
                student_id=row.student_id,
                service_id=row.service_id,
                service_code=row.code,
                class_title=row.class_title,
            )
            for row in result.all()
        ]

    async def _location_table(self) -> LocationTable:
        return await DirectoryService(self.db).build_location_table(self.settings)

    async def _insert_candidates(self, candidates: tuple[RevenueCandidate, ...]) -> list[int]:
        """
        Insert all candidates for one invoice in a single statement.

        Conflicts on source_line_item_id are dropped by the database; only the
        ids of rows actually written are returned.
        """
        if not candidates:
            return []

        dialect = self.db.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Revenue recognition is not supported on '{dialect}'")

        statement = (
            insert(RevenueRecord)
            .values([candidate.as_row() for candidate in candidates])
            .on_conflict_do_nothing(
                index_elements=["source_line_item_id"],
                index_where=RevenueRecord.source_line_item_id.is_not(None),
            )
            .returning(RevenueRecord.id)
        )
        result = await self.db.execute(statement)
        return list(result.scalars().all())

    # --- Backfill ---

    async def backfill(
        self, since: date | None = None, family_id: int | None = None
    ) -> BackfillResponse:
        """
        Recognize revenue for invoices that are already paid.

        Goes through the direct-insert path, so running it any number of times
        produces the same ledger. Invoices before the cutoff are never touched,
        `since` can only narrow the range.
        """
        start = max(self.cutoff, since) if since else self.cutoff
        query = (
            select(Invoice)
            .where(
                Invoice.status == InvoiceStatus.PAID.value,
                Invoice.invoice_date >= start,
            )
            .order_by(Invoice.invoice_date, Invoice.id)
        )
        if family_id is not None:
            query = query.where(Invoice.family_id == family_id)

        invoices = list((await self.db.execute(query)).scalars().all())
        logger.info(f"Backfill: {len(invoices)} paid invoice(s) dated on/after {start}")

        skipped = created = duplicates = 0
        for invoice in invoices:
            result = await self.on_invoice_created(invoice)
            if result.skip_reason is not None:
                skipped += 1
            created += result.inserted_count
            duplicates += result.duplicate_count

        logger.info(
            f"Backfill complete: created={created}, duplicates={duplicates}, skipped={skipped}"
        )
        return BackfillResponse(
            invoices_checked=len(invoices),
            invoices_skipped=skipped,
            records_created=created,
            duplicates_ignored=duplicates,
            cutoff=self.cutoff,
        )

    # --- Queries ---

    async def list_records(
        self, filters: RevenueRecordFilters
    ) -> tuple[list[RevenueRecord], int]:
        """List revenue records with filters and pagination."""
        query = select(RevenueRecord)

        if filters.invoice_id is not None:
            query = query.where(RevenueRecord.source_invoice_id == filters.invoice_id)
        if filters.family_id is not None:
            query = query.where(RevenueRecord.family_id == filters.family_id)
        if filters.location_id is not None:
            query = query.where(RevenueRecord.location_id == filters.location_id)
        if filters.date_from:
            query = query.where(RevenueRecord.period_start >= filters.date_from)
        if filters.date_to:
            query = query.where(RevenueRecord.period_start <= filters.date_to)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(RevenueRecord.period_start.desc(), RevenueRecord.id.desc())
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_records_for_invoice(self, invoice_id: int) -> list[RevenueRecord]:
        result = await self.db.execute(
            select(RevenueRecord)
            .where(RevenueRecord.source_invoice_id == invoice_id)
            .order_by(RevenueRecord.source_line_item_id)
        )
        return list(result.scalars().all())

    async def revenue_by_location(
        self, date_from: date | None = None, date_to: date | None = None
    ) -> list[LocationRevenue]:
        """Total recognized revenue per location, by period_start."""
        query = (
            select(
                RevenueRecord.location_id,
                Location.code,
                Location.name,
                func.coalesce(func.sum(RevenueRecord.revenue), 0),
                func.count(RevenueRecord.id),
            )
            .select_from(RevenueRecord)
            .outerjoin(Location, Location.id == RevenueRecord.location_id)
            .group_by(RevenueRecord.location_id, Location.code, Location.name)
            .order_by(Location.name)
        )
        if date_from:
            query = query.where(RevenueRecord.period_start >= date_from)
        if date_to:
            query = query.where(RevenueRecord.period_start <= date_to)

        rows = (await self.db.execute(query)).all()
        return [
            LocationRevenue(
                location_id=location_id,
                location_code=code,
                location_name=name or "Unassigned",
                revenue=round_money(Decimal(str(total))),
                record_count=count,
            )
            for location_id, code, name, total, count in rows
        ]
