from fastapi import Depends, Header, status
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import Optional
from config import ApplicationConfig
from libs.result import Error
from src.adapter.repositories.tenant_repositories import SqlAlchemyCompanyRepository
from src.adapter.services.fne_gateway import HttpxFneGateway
from src.api.error import ClientError
from src.app.services.fne_gateway import FneGateway
from src.app.use_cases.invoicing.dtos import TenantContext

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_fne_gateway() -> FneGateway:
    return HttpxFneGateway(
        ApplicationConfig.FNE_API_URL,
        timeout=float(ApplicationConfig.FNE_TIMEOUT),
    )


async def get_tenant(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    session: AsyncSession = Depends(get_session),
) -> TenantContext:
    """Resolve the calling company from its API key (machine calls act as user 0)"""
    if not x_api_key:
        raise ClientError(
            Error(code="API_KEY_MISSING", message="Missing X-API-Key header"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    company = await SqlAlchemyCompanyRepository(session).get_by_api_key(x_api_key)
    if not company:
        raise ClientError(
            Error(code="API_KEY_INVALID", message="Invalid or inactive API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return TenantContext(
        tenant_id=company.tenant_id,
        company_id=company.id,
        fne_token=company.fne_token,
        user_id=0,
    )
