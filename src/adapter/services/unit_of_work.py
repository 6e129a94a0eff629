from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """Transaction boundary over one AsyncSession.

    Every repository built for a request shares the same session, so a
    single commit persists the invoice, its items, the received items
    snapshot and the log row together.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()

    def savepoint(self):
        """Nested transaction; a failure inside only undoes its own writes"""
        return self.session.begin_nested()
