"""Unit tests for UpdateAndRecertifyInvoice use case

Tests cover:
- Immutability of certified and refund invoices
- Fields and items replaced only when FNE accepts
- Rejection leaving fields and items untouched
"""

import pytest
from decimal import Decimal

from src.app.use_cases.invoicing.dtos import InvoiceCommandDTO, LineItemDTO
from src.app.use_cases.invoicing.update_invoice import UpdateAndRecertifyInvoice
from src.domain.invoice import InvoiceStatus, InvoiceType
from tests.fixtures.fne_gateway import certified, fne_item, rejected


@pytest.fixture
def update_use_case(mock_uow, mock_invoice_repo, pipeline):
    return UpdateAndRecertifyInvoice(
        uow=mock_uow,
        invoice_repo=mock_invoice_repo,
        pipeline=pipeline,
    )


@pytest.fixture
def rejected_invoice(mock_invoice_repo, mock_item_repo, pending_invoice, stored_items):
    pending_invoice.status = InvoiceStatus.REJECTED
    mock_invoice_repo.get_by_id.return_value = pending_invoice
    mock_item_repo.get_by_invoice_uid.return_value = stored_items
    return pending_invoice


@pytest.fixture
def command():
    return InvoiceCommandDTO(
        client_id=3,
        point_of_sale_id=2,
        type_invoice="purchase",
        payment_method="card",
        client_seller_name="Yao",
        discount_rate=Decimal("5"),
        items=[
            LineItemDTO(reference="REF-009", description="Tole", quantity=4, amount=Decimal("2500")),
        ],
    )


@pytest.mark.asyncio
class TestUpdateAndRecertifyInvoice:
    async def test_not_found(self, update_use_case, tenant, command):
        result = await update_use_case.execute(tenant, 404, command)

        assert result.error.code == "INVOICE_NOT_FOUND"

    async def test_certified_invoice_is_immutable(
        self, update_use_case, tenant, rejected_invoice, command, fne_gateway, mock_invoice_repo
    ):
        rejected_invoice.status = InvoiceStatus.CERTIFIED

        result = await update_use_case.execute(tenant, 10, command)

        assert result.error.code == "INVOICE_ALREADY_CERTIFIED"
        assert fne_gateway.certify_count == 0
        mock_invoice_repo.update.assert_not_called()

    async def test_refund_invoice_is_immutable(self, update_use_case, tenant, rejected_invoice, command):
        rejected_invoice.is_refund = True

        result = await update_use_case.execute(tenant, 10, command)

        assert result.error.code == "REFUND_INVOICE_NOT_CERTIFIABLE"

    async def test_refunded_invoice_is_immutable(
        self, update_use_case, tenant, rejected_invoice, command, fne_gateway, mock_invoice_repo, mock_log_repo
    ):
        """
        Given: An invoice that was certified and then refunded
        When: An update is requested
        Then: INVOICE_ALREADY_REFUNDED, no FNE call and nothing written
        """
        rejected_invoice.status = InvoiceStatus.REFUNDED
        rejected_invoice.fne_reference = "FNE-1"

        result = await update_use_case.execute(tenant, 10, command)

        assert result.error.code == "INVOICE_ALREADY_REFUNDED"
        assert fne_gateway.certify_count == 0
        mock_invoice_repo.update.assert_not_called()
        mock_log_repo.create.assert_not_called()

    async def test_success_applies_fields_and_replaces_items(
        self, update_use_case, tenant, rejected_invoice, command, fne_gateway, mock_item_repo
    ):
        """
        Given: A rejected invoice
        When: It is updated as a purchase and FNE accepts it
        Then: The new fields are saved and the items replaced
        """
        # Arrange
        fne_gateway.certify_results = [certified([fne_item(reference="REF-009")])]

        # Act
        result = await update_use_case.execute(tenant, 10, command)

        # Assert
        assert result.is_ok()
        assert rejected_invoice.type_invoice == InvoiceType.PURCHASE
        assert rejected_invoice.payment_method == "card"
        assert rejected_invoice.client_seller_name == "Yao"
        assert rejected_invoice.discount_rate == Decimal("5")
        assert rejected_invoice.status == InvoiceStatus.CERTIFIED

        mock_item_repo.delete_by_invoice_uid.assert_called_once_with("tenant_a", "uid-10")
        new_items = mock_item_repo.create_many.call_args[0][0]
        assert [item.reference for item in new_items] == ["REF-009"]
        assert result.value.invoice.items[0].reference == "REF-009"

    async def test_rejection_keeps_fields_and_items(
        self, update_use_case, tenant, rejected_invoice, command, fne_gateway, mock_item_repo, mock_log_repo
    ):
        """
        Given: A rejected invoice
        When: The update is rejected again by FNE
        Then: Status stays rejected, fields and items are unchanged, a log is written
        """
        fne_gateway.certify_results = [rejected("422", "Montant invalide")]

        result = await update_use_case.execute(tenant, 10, command)

        assert result.error.code == "FNE_CERTIFICATION_REJECTED"
        assert rejected_invoice.status == InvoiceStatus.REJECTED
        assert rejected_invoice.type_invoice == InvoiceType.SALE
        assert rejected_invoice.payment_method == "cash"
        mock_item_repo.delete_by_invoice_uid.assert_not_called()
        mock_item_repo.create_many.assert_not_called()
        assert mock_log_repo.create.call_args[0][0].response_code == "422"

    async def test_log_uses_new_point_of_sale(
        self, update_use_case, tenant, rejected_invoice, command, fne_gateway, mock_log_repo
    ):
        command.point_of_sale_id = 7
        fne_gateway.certify_results = [rejected()]

        await update_use_case.execute(tenant, 10, command)

        assert mock_log_repo.create.call_args[0][0].point_of_sale_id == 7
