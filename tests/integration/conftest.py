import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain  # noqa: F401  registers every table on SQLModel.metadata
from src.app.use_cases.invoicing.dtos import TenantContext
from src.depends import get_fne_gateway, get_session
from src.domain.client import Client
from src.domain.company import Company
from src.domain.point_of_sale import PointOfSale
from tests.fixtures.fne_gateway import FakeFneGateway


class SeededTenant:
    """Company with one client and one point of sale"""

    def __init__(self, context: TenantContext, api_key: str, client_id: int, point_of_sale_id: int):
        self.context = context
        self.api_key = api_key
        self.client_id = client_id
        self.point_of_sale_id = point_of_sale_id

    @property
    def headers(self):
        return {"X-API-Key": self.api_key}


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File backed SQLite database so that separate sessions use separate connections"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'fne_test.db'}", echo=False, future=True
    )

    # Let SQLAlchemy drive BEGIN so savepoints behave on SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


async def _seed_tenant(session_factory, tenant_id: str, api_key: str, name: str) -> SeededTenant:
    async with session_factory() as session:
        company = Company(tenant_id=tenant_id, name=name, fne_token=f"fne-{tenant_id}", api_key=api_key)
        client = Client(tenant_id=tenant_id, template="B2B", ncc="CI1234567", company_name=f"{name} Client")
        point_of_sale = PointOfSale(tenant_id=tenant_id, name=f"{name} Plateau")
        session.add_all([company, client, point_of_sale])
        await session.commit()

        return SeededTenant(
            context=TenantContext(
                tenant_id=tenant_id,
                company_id=company.id,
                fne_token=company.fne_token,
            ),
            api_key=api_key,
            client_id=client.id,
            point_of_sale_id=point_of_sale.id,
        )


@pytest_asyncio.fixture
async def tenant_a(session_factory) -> SeededTenant:
    return await _seed_tenant(session_factory, "tenant_a", "key-tenant-a", "Quincaillerie Kone")


@pytest_asyncio.fixture
async def tenant_b(session_factory) -> SeededTenant:
    return await _seed_tenant(session_factory, "tenant_b", "key-tenant-b", "Pharmacie Yao")


@pytest.fixture
def fne_gateway():
    return FakeFneGateway()


@pytest_asyncio.fixture
async def client(session_factory, fne_gateway):
    """Create test client with database session and FNE gateway overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_fne_gateway] = lambda: fne_gateway

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
