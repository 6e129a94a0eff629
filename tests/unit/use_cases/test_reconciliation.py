"""Unit tests for FneReconciliation

Tests cover:
- Stamping fne_item_id by reference
- Malformed, missing and duplicated references
- Snapshot replacement and coercion
- apply() never failing a certification
"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.services.fne_gateway import FneCertificate
from src.app.use_cases.invoicing.reconciliation import FneReconciliation, is_fne_uuid
from src.domain.invoice import Invoice, InvoiceStatus, InvoiceType
from src.domain.invoice_item import InvoiceItem
from tests.fixtures.fne_gateway import ITEM_ID_1, ITEM_ID_2, fne_item


@pytest.fixture
def mock_item_repo():
    repo = MagicMock()
    repo.get_by_invoice_uid = AsyncMock(return_value=[])
    repo.update = AsyncMock(side_effect=lambda item: item)
    return repo


@pytest.fixture
def mock_received_item_repo():
    repo = MagicMock()
    repo.delete_by_invoice_id = AsyncMock(return_value=0)
    repo.create_many = AsyncMock(side_effect=lambda items: items)
    return repo


@pytest.fixture
def reconciliation(mock_uow, mock_item_repo, mock_received_item_repo):
    return FneReconciliation(mock_uow, mock_item_repo, mock_received_item_repo)


@pytest.fixture
def invoice():
    return Invoice(
        id=7,
        tenant_id="tenant_a",
        client_id=1,
        point_of_sale_id=1,
        uid_invoice="uid-7",
        type_invoice=InvoiceType.SALE,
        status=InvoiceStatus.CERTIFIED,
    )


def make_item(item_id: int, reference: str) -> InvoiceItem:
    return InvoiceItem(
        id=item_id,
        tenant_id="tenant_a",
        uid_invoice="uid-7",
        reference=reference,
        description="Item",
        quantity=1,
        amount=Decimal("100"),
    )


class TestIsFneUuid:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (ITEM_ID_1, True),
            ("9B2D4F6A-0C1E-4A3B-8D5F-7E9A1B3C5D7F", True),
            ("123", False),
            ("", False),
            (None, False),
            (42, False),
        ],
    )
    def test_is_fne_uuid(self, value, expected):
        assert is_fne_uuid(value) is expected


@pytest.mark.asyncio
class TestUpdateItemExternalIds:
    async def test_stamps_matching_reference(self, reconciliation, mock_item_repo, invoice):
        # Arrange
        item_a = make_item(1, "REF-001")
        item_b = make_item(2, "REF-002")
        mock_item_repo.get_by_invoice_uid.return_value = [item_a, item_b]

        # Act
        stamped = await reconciliation.update_item_external_ids(
            invoice, [fne_item(ITEM_ID_1, "REF-001"), fne_item(ITEM_ID_2, "REF-002")]
        )

        # Assert
        assert stamped == 2
        assert item_a.fne_item_id == ITEM_ID_1
        assert item_b.fne_item_id == ITEM_ID_2
        mock_item_repo.get_by_invoice_uid.assert_called_once_with("tenant_a", "uid-7")

    async def test_skips_malformed_and_unmatched_items(self, reconciliation, mock_item_repo, invoice):
        item = make_item(1, "REF-001")
        mock_item_repo.get_by_invoice_uid.return_value = [item]

        stamped = await reconciliation.update_item_external_ids(
            invoice,
            [
                fne_item("not-a-uuid", "REF-001"),
                fne_item(ITEM_ID_2, "UNKNOWN"),
                {"id": ITEM_ID_1},
            ],
        )

        assert stamped == 0
        assert item.fne_item_id is None
        mock_item_repo.update.assert_not_called()

    async def test_duplicate_reference_stamps_first_match(self, reconciliation, mock_item_repo, invoice):
        first = make_item(1, "REF-001")
        second = make_item(2, "REF-001")
        mock_item_repo.get_by_invoice_uid.return_value = [first, second]

        stamped = await reconciliation.update_item_external_ids(invoice, [fne_item(ITEM_ID_1, "REF-001")])

        assert stamped == 1
        assert first.fne_item_id == ITEM_ID_1
        assert second.fne_item_id is None

    async def test_no_authority_items(self, reconciliation, mock_item_repo, invoice):
        assert await reconciliation.update_item_external_ids(invoice, []) == 0
        mock_item_repo.get_by_invoice_uid.assert_not_called()


@pytest.mark.asyncio
class TestSnapshotReceivedItems:
    async def test_replaces_snapshot_with_valid_items(self, reconciliation, mock_received_item_repo):
        # Act
        snapshot = await reconciliation.snapshot_received_items(
            "tenant_a",
            7,
            [
                fne_item(ITEM_ID_1, "REF-001", quantity=2, amount="1000.50"),
                fne_item("bad-id", "REF-002"),
            ],
        )

        # Assert
        mock_received_item_repo.delete_by_invoice_id.assert_called_once_with("tenant_a", 7)
        assert len(snapshot) == 1
        row = snapshot[0]
        assert row.invoice_id == 7
        assert row.tenant_id == "tenant_a"
        assert row.fne_item_id == ITEM_ID_1
        assert row.quantity == 2
        assert row.amount == Decimal("1000.50")
        assert row.reference == "REF-001"
        assert row.taxes == [{"code": "TVA", "rate": 18}]
        mock_received_item_repo.create_many.assert_called_once()

    async def test_coerces_bad_numbers_and_defaults(self, reconciliation):
        snapshot = await reconciliation.snapshot_received_items(
            "tenant_a", 7, [{"id": ITEM_ID_1, "amount": "n/a", "discount": None}]
        )

        row = snapshot[0]
        assert row.amount == Decimal("0")
        assert row.discount == Decimal("0")
        assert row.quantity == 0
        assert row.measurement_unit == "pcs"
        assert row.reference == ""

    async def test_no_valid_item_leaves_snapshot_empty(self, reconciliation, mock_received_item_repo):
        snapshot = await reconciliation.snapshot_received_items("tenant_a", 7, [fne_item("123", "REF-001")])

        assert snapshot == []
        mock_received_item_repo.delete_by_invoice_id.assert_called_once_with("tenant_a", 7)
        mock_received_item_repo.create_many.assert_not_called()


@pytest.mark.asyncio
class TestApply:
    async def test_runs_both_steps_in_savepoints(self, reconciliation, mock_uow, mock_item_repo, mock_received_item_repo, invoice):
        mock_item_repo.get_by_invoice_uid.return_value = [make_item(1, "REF-001")]
        certificate = FneCertificate(items=[fne_item(ITEM_ID_1, "REF-001")])

        await reconciliation.apply(invoice, certificate)

        assert mock_uow.savepoint.call_count == 2
        mock_item_repo.update.assert_called_once()
        mock_received_item_repo.create_many.assert_called_once()

    async def test_failures_are_swallowed(self, reconciliation, mock_item_repo, mock_received_item_repo, invoice):
        """
        Given: Both reconciliation steps fail
        When: apply is called
        Then: No exception escapes
        """
        mock_item_repo.get_by_invoice_uid.side_effect = RuntimeError("db down")
        mock_received_item_repo.delete_by_invoice_id.side_effect = RuntimeError("db down")

        await reconciliation.apply(invoice, FneCertificate(items=[fne_item()]))

        mock_received_item_repo.create_many.assert_not_called()
