"""SQLAlchemy Received Item Repository Implementation"""

from typing import List
from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.received_item_repository import ReceivedItemRepository
from src.domain.received_item import ReceivedItem


class SqlAlchemyReceivedItemRepository(ReceivedItemRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_invoice_id(self, tenant_id: str, invoice_id: int) -> List[ReceivedItem]:
        statement = (
            select(ReceivedItem)
            .where(ReceivedItem.tenant_id == tenant_id)
            .where(ReceivedItem.invoice_id == invoice_id)
            .order_by(ReceivedItem.id)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def delete_by_invoice_id(self, tenant_id: str, invoice_id: int) -> int:
        statement = (
            delete(ReceivedItem)
            .where(ReceivedItem.tenant_id == tenant_id)
            .where(ReceivedItem.invoice_id == invoice_id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(statement)
        return result.rowcount

    async def create_many(self, items: List[ReceivedItem]) -> List[ReceivedItem]:
        self.session.add_all(items)
        await self.session.flush()
        return items
