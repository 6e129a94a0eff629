"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
"""

from typing import Optional, List
from datetime import datetime
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice, InvoiceStatus


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Features:
    - Tenant-scoped lookups
    - Pessimistic locking via SELECT FOR UPDATE, reloading the row so the
      caller sees the latest committed state
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invoice: Invoice) -> Invoice:
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def get_by_id(
        self, tenant_id: str, invoice_id: int, for_update: bool = False
    ) -> Optional[Invoice]:
        """
        Retrieve a tenant's invoice by ID with optional row-level locking

        Args:
            tenant_id: Tenant identifier
            invoice_id: Invoice ID
            for_update: If True, locks the row and overwrites any stale
                in-session copy with the database state

        Returns:
            Invoice if found, None otherwise
        """
        stmt = (
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .where(Invoice.tenant_id == tenant_id)
        )

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_status(
        self, tenant_id: str, status: InvoiceStatus, limit: int = 100, offset: int = 0
    ) -> List[Invoice]:
        stmt = (
            select(Invoice)
            .where(Invoice.tenant_id == tenant_id)
            .where(Invoice.status == status)
            .order_by(Invoice.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_successful_refund(
        self, tenant_id: str, original_invoice_id: int
    ) -> Optional[Invoice]:
        stmt = (
            select(Invoice)
            .where(Invoice.tenant_id == tenant_id)
            .where(Invoice.original_invoice_id == original_invoice_id)
            .where(Invoice.is_refund == True)  # noqa: E712
            .where(Invoice.status == InvoiceStatus.REFUNDED)
            .order_by(Invoice.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, invoice: Invoice) -> Invoice:
        invoice.updated_at = datetime.utcnow()
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice
