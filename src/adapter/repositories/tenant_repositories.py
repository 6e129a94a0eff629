"""SQLAlchemy Tenant Collaborator Repositories

Read-only lookups of companies, clients and points of sale.
"""

from typing import Optional, List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.tenant_repositories import (
    CompanyRepository,
    ClientRepository,
    PointOfSaleRepository,
)
from src.domain.company import Company
from src.domain.client import Client
from src.domain.point_of_sale import PointOfSale


class SqlAlchemyCompanyRepository(CompanyRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_tenant_id(self, tenant_id: str) -> Optional[Company]:
        stmt = select(Company).where(Company.tenant_id == tenant_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_api_key(self, api_key: str) -> Optional[Company]:
        stmt = (
            select(Company)
            .where(Company.api_key == api_key)
            .where(Company.is_active == True)  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_active(self) -> List[Company]:
        stmt = select(Company).where(Company.is_active == True).order_by(Company.id)  # noqa: E712
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class SqlAlchemyClientRepository(ClientRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, tenant_id: str, client_id: int) -> Optional[Client]:
        stmt = (
            select(Client)
            .where(Client.id == client_id)
            .where(Client.tenant_id == tenant_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class SqlAlchemyPointOfSaleRepository(PointOfSaleRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, tenant_id: str, point_of_sale_id: int) -> Optional[PointOfSale]:
        stmt = (
            select(PointOfSale)
            .where(PointOfSale.id == point_of_sale_id)
            .where(PointOfSale.tenant_id == tenant_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
