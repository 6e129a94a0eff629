"""FNE Reconciliation

Writes what the FNE authority returned on a successful certification back
into local storage: item identifiers on the invoice items and the snapshot
of received items used to gate refunds.
"""

import logging
import re
from typing import Any, Dict, List
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.received_item_repository import ReceivedItemRepository
from src.app.services.fne_gateway import FneCertificate
from src.app.services.unit_of_work import UnitOfWork
from src.domain.invoice import Invoice
from src.domain.received_item import ReceivedItem
from .wire_format import DEFAULT_MEASUREMENT_UNIT, to_decimal

logger = logging.getLogger(__name__)

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_fne_uuid(value: Any) -> bool:
    """True for a well-formed UUID string"""
    return isinstance(value, str) and bool(_UUID_PATTERN.match(value.strip()))


def _to_quantity(value: Any) -> int:
    return int(to_decimal(value))


class FneReconciliation:
    """
    Reconciliation store for successful certifications

    Business Rules:
    1. Only authority items carrying a well-formed UUID are kept
    2. Local items are matched by reference within the same invoice;
       the first local match wins when references repeat
    3. The received items snapshot is replaced, never appended to
    4. apply() never fails a certification: each step runs in its own
       savepoint and errors are logged
    """

    def __init__(
        self,
        uow: UnitOfWork,
        item_repo: InvoiceItemRepository,
        received_item_repo: ReceivedItemRepository,
    ):
        self.uow = uow
        self.item_repo = item_repo
        self.received_item_repo = received_item_repo

    async def apply(self, invoice: Invoice, certificate: FneCertificate) -> None:
        """
        Run both reconciliation steps for a freshly certified invoice

        Args:
            invoice: Persisted invoice that was just certified
            certificate: Normalized authority response
        """
        try:
            async with self.uow.savepoint():
                await self.update_item_external_ids(invoice, certificate.items)
        except Exception:
            logger.exception(f"Failed to stamp FNE item ids on invoice {invoice.id}")

        try:
            async with self.uow.savepoint():
                await self.snapshot_received_items(
                    invoice.tenant_id, invoice.id, certificate.items
                )
        except Exception:
            logger.exception(f"Failed to snapshot FNE items of invoice {invoice.id}")

    async def update_item_external_ids(
        self, invoice: Invoice, fne_items: List[Dict[str, Any]]
    ) -> int:
        """
        Stamp fne_item_id on the invoice items matching each authority item

        Args:
            invoice: Invoice owning the items
            fne_items: Items returned by the authority

        Returns:
            Number of stamped items
        """
        if not fne_items:
            return 0

        items = await self.item_repo.get_by_invoice_uid(invoice.tenant_id, invoice.uid_invoice)
        if not items:
            logger.warning(f"No items found for invoice {invoice.id}, nothing to stamp")
            return 0

        stamped = 0
        for fne_item in fne_items:
            fne_item_id = fne_item.get("id")
            reference = fne_item.get("reference")
            if not fne_item_id or not reference:
                continue

            if not is_fne_uuid(fne_item_id):
                logger.warning(
                    f"Ignoring malformed FNE item id {fne_item_id!r} for reference {reference}"
                )
                continue

            matches = [item for item in items if item.reference == reference]
            if not matches:
                logger.warning(
                    f"No item with reference {reference} on invoice {invoice.id}"
                )
                continue
            if len(matches) > 1:
                logger.warning(
                    f"Reference {reference} appears {len(matches)} times on invoice "
                    f"{invoice.id}, stamping item {matches[0].id}"
                )

            item = matches[0]
            item.fne_item_id = fne_item_id.strip()
            await self.item_repo.update(item)
            stamped += 1

        logger.info(f"Stamped {stamped} FNE item ids on invoice {invoice.id}")
        return stamped

    async def snapshot_received_items(
        self, tenant_id: str, invoice_id: int, fne_items: List[Dict[str, Any]]
    ) -> List[ReceivedItem]:
        """
        Replace the received items snapshot of an invoice

        Args:
            tenant_id: Tenant identifier
            invoice_id: Invoice ID
            fne_items: Items returned by the authority

        Returns:
            Stored snapshot rows (possibly empty)
        """
        await self.received_item_repo.delete_by_invoice_id(tenant_id, invoice_id)

        snapshot = []
        for fne_item in fne_items:
            fne_item_id = fne_item.get("id")
            if not is_fne_uuid(fne_item_id):
                logger.warning(
                    f"Skipping FNE item without a valid UUID on invoice {invoice_id}: {fne_item_id!r}"
                )
                continue

            snapshot.append(
                ReceivedItem(
                    tenant_id=tenant_id,
                    invoice_id=invoice_id,
                    fne_item_id=fne_item_id.strip(),
                    quantity=_to_quantity(fne_item.get("quantity")),
                    reference=str(fne_item.get("reference") or ""),
                    description=str(fne_item.get("description") or ""),
                    amount=to_decimal(fne_item.get("amount")),
                    discount=to_decimal(fne_item.get("discount")),
                    measurement_unit=fne_item.get("measurementUnit") or DEFAULT_MEASUREMENT_UNIT,
                    taxes=fne_item.get("taxes") or None,
                    custom_taxes=fne_item.get("customTaxes") or None,
                )
            )

        if not snapshot:
            logger.warning(
                f"No valid FNE item to snapshot for invoice {invoice_id} "
                f"({len(fne_items)} received); refunds will require re-certification"
            )
            return []

        await self.received_item_repo.create_many(snapshot)
        logger.info(f"Snapshotted {len(snapshot)} FNE items for invoice {invoice_id}")
        return snapshot
