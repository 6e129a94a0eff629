import pytest
from decimal import Decimal

from src.app.use_cases.invoicing.get_invoice import GetInvoice
from src.domain.invoice import Invoice, InvoiceStatus, InvoiceType
from src.domain.invoice_log import InvoiceLog
from src.domain.received_item import ReceivedItem
from tests.fixtures.fne_gateway import ITEM_ID_1


@pytest.fixture
def get_use_case(mock_invoice_repo, mock_item_repo, mock_received_item_repo, mock_log_repo):
    return GetInvoice(
        invoice_repo=mock_invoice_repo,
        item_repo=mock_item_repo,
        received_item_repo=mock_received_item_repo,
        log_repo=mock_log_repo,
    )


@pytest.mark.asyncio
class TestGetInvoice:
    async def test_not_found(self, get_use_case, tenant):
        result = await get_use_case.execute(tenant, 1)

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_FOUND"

    async def test_certified_invoice_with_snapshot_and_refund(
        self,
        get_use_case,
        tenant,
        pending_invoice,
        stored_items,
        mock_invoice_repo,
        mock_item_repo,
        mock_received_item_repo,
        mock_log_repo,
    ):
        # Arrange
        pending_invoice.status = InvoiceStatus.REFUNDED
        mock_invoice_repo.get_by_id.return_value = pending_invoice
        mock_item_repo.get_by_invoice_uid.return_value = stored_items
        mock_received_item_repo.get_by_invoice_id.return_value = [
            ReceivedItem(
                tenant_id="tenant_a", invoice_id=10, fne_item_id=ITEM_ID_1, quantity=2, reference="REF-001",
                description="Ciment 50kg", amount=Decimal("1000"), discount=Decimal("0"),
                measurement_unit="pcs",
            )
        ]
        mock_invoice_repo.get_successful_refund.return_value = Invoice(
            id=11, tenant_id="tenant_a", client_id=3, point_of_sale_id=2,
            uid_invoice="uid-11", type_invoice=InvoiceType.SALE,
            is_refund=True, original_invoice_id=10, status=InvoiceStatus.REFUNDED,
        )

        # Act
        result = await get_use_case.execute(tenant, 10)

        # Assert
        detail = result.value
        assert detail.invoice.id == 10
        assert detail.invoice.items[0].reference == "REF-001"
        assert detail.received_items[0].fne_item_id == ITEM_ID_1
        assert detail.refund_invoice_id == 11
        assert detail.error is None
        mock_log_repo.get_latest.assert_not_called()

    async def test_rejected_invoice_exposes_last_error(
        self, get_use_case, tenant, pending_invoice, mock_invoice_repo, mock_log_repo
    ):
        pending_invoice.status = InvoiceStatus.REJECTED
        mock_invoice_repo.get_by_id.return_value = pending_invoice
        mock_log_repo.get_latest.return_value = InvoiceLog(
            id=5,
            tenant_id="tenant_a",
            point_of_sale_id=2,
            invoice_id=10,
            request_payload={},
            response_payload={"message": "Invalid NCC"},
            response_code="400",
            response_message="Invalid NCC",
            user_id=0,
        )

        result = await get_use_case.execute(tenant, 10)

        assert result.value.error.code == "400"
        assert result.value.error.message == "Invalid NCC"
        assert result.value.error.details == {"message": "Invalid NCC"}
        mock_log_repo.get_latest.assert_called_once_with("tenant_a", 10)

    async def test_refund_invoice_has_no_refund_lookup(
        self, get_use_case, tenant, pending_invoice, mock_invoice_repo
    ):
        pending_invoice.is_refund = True
        pending_invoice.status = InvoiceStatus.REFUNDED
        mock_invoice_repo.get_by_id.return_value = pending_invoice

        result = await get_use_case.execute(tenant, 10)

        assert result.value.refund_invoice_id is None
        mock_invoice_repo.get_successful_refund.assert_not_called()
