"""SQLAlchemy Invoice Log Repository Implementation

Append-only persistence of the FNE audit trail.
"""

from typing import Optional, List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_log_repository import InvoiceLogRepository
from src.domain.invoice_log import InvoiceLog


class SqlAlchemyInvoiceLogRepository(InvoiceLogRepository):
    """SQLAlchemy implementation of InvoiceLogRepository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, log: InvoiceLog) -> InvoiceLog:
        self.session.add(log)
        await self.session.flush()
        await self.session.refresh(log)
        return log

    async def get_by_invoice_id(self, tenant_id: str, invoice_id: int) -> List[InvoiceLog]:
        statement = (
            select(InvoiceLog)
            .where(InvoiceLog.tenant_id == tenant_id)
            .where(InvoiceLog.invoice_id == invoice_id)
            .order_by(InvoiceLog.id.desc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_latest(
        self, tenant_id: str, invoice_id: int, response_code: Optional[str] = None
    ) -> Optional[InvoiceLog]:
        statement = (
            select(InvoiceLog)
            .where(InvoiceLog.tenant_id == tenant_id)
            .where(InvoiceLog.invoice_id == invoice_id)
        )

        if response_code:
            statement = statement.where(InvoiceLog.response_code == response_code)

        statement = statement.order_by(InvoiceLog.id.desc()).limit(1)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()
