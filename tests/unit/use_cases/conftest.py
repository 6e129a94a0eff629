import itertools
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.invoicing.certification import CertificationPipeline
from src.app.use_cases.invoicing.dtos import TenantContext
from src.domain.client import Client
from src.domain.company import Company
from src.domain.invoice import Invoice, InvoiceStatus, InvoiceType
from src.domain.invoice_item import InvoiceItem
from src.domain.point_of_sale import PointOfSale
from tests.fixtures.fne_gateway import FakeFneGateway

TENANT_ID = "tenant_a"


def _assign_ids(start: int):
    counter = itertools.count(start)

    def assign(entity):
        if entity.id is None:
            entity.id = next(counter)
        return entity

    return assign


@pytest.fixture
def tenant():
    return TenantContext(tenant_id=TENANT_ID, company_id=1, fne_token="fne-token-a")


@pytest.fixture
def company():
    return Company(id=1, tenant_id=TENANT_ID, name="Quincaillerie du Plateau", fne_token="fne-token-a")


@pytest.fixture
def client_entity():
    return Client(id=3, tenant_id=TENANT_ID, template="B2C", company_name="Awa Kone")


@pytest.fixture
def point_of_sale():
    return PointOfSale(id=2, tenant_id=TENANT_ID, name="Plateau")


@pytest.fixture
def pending_invoice():
    return Invoice(
        id=10,
        tenant_id=TENANT_ID,
        client_id=3,
        point_of_sale_id=2,
        uid_invoice="uid-10",
        type_invoice=InvoiceType.SALE,
        status=InvoiceStatus.PENDING,
    )


@pytest.fixture
def stored_items():
    return [
        InvoiceItem(
            id=100,
            tenant_id=TENANT_ID,
            uid_invoice="uid-10",
            reference="REF-001",
            description="Ciment 50kg",
            quantity=2,
            amount=Decimal("1000"),
            discount=Decimal("0"),
            taxes="TVA18",
        )
    ]


@pytest.fixture
def mock_invoice_repo():
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=_assign_ids(500))
    repo.update = AsyncMock(side_effect=lambda invoice: invoice)
    repo.get_successful_refund = AsyncMock(return_value=None)
    repo.get_by_status = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_item_repo():
    repo = MagicMock()
    assign = _assign_ids(1000)
    repo.get_by_invoice_uid = AsyncMock(return_value=[])
    repo.create_many = AsyncMock(side_effect=lambda items: [assign(item) for item in items])
    repo.delete_by_invoice_uid = AsyncMock(return_value=1)
    repo.update = AsyncMock(side_effect=lambda item: item)
    return repo


@pytest.fixture
def mock_received_item_repo():
    repo = MagicMock()
    repo.get_by_invoice_id = AsyncMock(return_value=[])
    repo.delete_by_invoice_id = AsyncMock(return_value=0)
    repo.create_many = AsyncMock(side_effect=lambda items: items)
    return repo


@pytest.fixture
def mock_log_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda log: log)
    repo.get_latest = AsyncMock(return_value=None)
    repo.get_by_invoice_id = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_tenant_repos(company, client_entity, point_of_sale):
    company_repo = MagicMock()
    company_repo.get_by_tenant_id = AsyncMock(return_value=company)
    client_repo = MagicMock()
    client_repo.get_by_id = AsyncMock(return_value=client_entity)
    point_of_sale_repo = MagicMock()
    point_of_sale_repo.get_by_id = AsyncMock(return_value=point_of_sale)
    return company_repo, client_repo, point_of_sale_repo


@pytest.fixture
def mock_reconciliation():
    reconciliation = MagicMock()
    reconciliation.apply = AsyncMock()
    return reconciliation


@pytest.fixture
def fne_gateway():
    return FakeFneGateway()


@pytest.fixture
def pipeline(
    mock_uow,
    mock_invoice_repo,
    mock_item_repo,
    mock_log_repo,
    mock_tenant_repos,
    mock_reconciliation,
    fne_gateway,
):
    company_repo, client_repo, point_of_sale_repo = mock_tenant_repos
    return CertificationPipeline(
        uow=mock_uow,
        invoice_repo=mock_invoice_repo,
        item_repo=mock_item_repo,
        log_repo=mock_log_repo,
        company_repo=company_repo,
        client_repo=client_repo,
        point_of_sale_repo=point_of_sale_repo,
        reconciliation=mock_reconciliation,
        fne_gateway=fne_gateway,
        verification_base_url="http://verify.test/fr/verification",
    )
