"""RepairReceivedItems Use Case

Rebuilds the FNE items snapshot of certified invoices whose snapshot is empty
or holds a malformed item id, from the payload of their latest successful
certification log.
"""

import logging
import time
from typing import List
from libs.result import Result, Return, Error
from src.app.repositories.invoice_log_repository import InvoiceLogRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.received_item_repository import ReceivedItemRepository
from src.app.services.fne_gateway import FneCertificate
from src.app.services.unit_of_work import UnitOfWork
from src.domain.invoice import Invoice, InvoiceStatus
from .dtos import RepairResultDTO
from .reconciliation import FneReconciliation, is_fne_uuid

logger = logging.getLogger(__name__)

CERTIFIED_RESPONSE_CODE = "201"


class RepairReceivedItems:
    """
    Use Case: Repair received items snapshots of a tenant

    Business Rules:
    1. Only certified invoices are inspected
    2. A snapshot needs repair when it is empty or any id is not a UUID
    3. The source is the response payload of the latest "201" log of the invoice
    4. Each invoice is repaired in its own savepoint; one failure does not
       stop the batch

    Flow:
    1. Page through certified invoices of the tenant
    2. For each invoice needing repair, rebuild snapshot and item ids
    3. Commit and return counters
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        received_item_repo: ReceivedItemRepository,
        log_repo: InvoiceLogRepository,
        reconciliation: FneReconciliation,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.received_item_repo = received_item_repo
        self.log_repo = log_repo
        self.reconciliation = reconciliation

    async def execute(self, tenant_id: str, batch_size: int = 100) -> Result[RepairResultDTO]:
        """
        Execute snapshot repair for one tenant

        Args:
            tenant_id: Tenant identifier
            batch_size: Invoices loaded per page

        Returns:
            Result[RepairResultDTO]: Counters and repaired invoice ids
        """
        start_time = time.time()

        try:
            logger.info(f"Starting received items repair for tenant {tenant_id}")

            checked = 0
            repaired: List[int] = []
            unrecoverable: List[int] = []
            offset = 0

            while True:
                invoices = await self.invoice_repo.get_by_status(
                    tenant_id, InvoiceStatus.CERTIFIED, limit=batch_size, offset=offset
                )
                if not invoices:
                    break
                offset += len(invoices)

                for invoice in invoices:
                    checked += 1
                    if not await self._needs_repair(tenant_id, invoice):
                        continue

                    if await self._repair(tenant_id, invoice):
                        repaired.append(invoice.id)
                    else:
                        unrecoverable.append(invoice.id)

                if len(invoices) < batch_size:
                    break

            await self.uow.commit()

            execution_time_ms = int((time.time() - start_time) * 1000)
            if unrecoverable:
                logger.warning(
                    f"Repair complete for tenant {tenant_id}: {len(repaired)} repaired, "
                    f"{len(unrecoverable)} need re-certification {unrecoverable}"
                )
            else:
                logger.info(
                    f"Repair complete for tenant {tenant_id}: {checked} checked, "
                    f"{len(repaired)} repaired in {execution_time_ms}ms"
                )

            return Return.ok(
                RepairResultDTO(
                    tenant_id=tenant_id,
                    invoices_checked=checked,
                    invoices_repaired=len(repaired),
                    repaired_invoice_ids=repaired,
                    unrecoverable_invoice_ids=unrecoverable,
                    execution_time_ms=execution_time_ms,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Received items repair failed for tenant {tenant_id}: {e}")
            return Return.err(
                Error(
                    code="REPAIR_RECEIVED_ITEMS_FAILED",
                    message="Failed to repair received items",
                    reason=str(e),
                )
            )

    async def _needs_repair(self, tenant_id: str, invoice: Invoice) -> bool:
        snapshot = await self.received_item_repo.get_by_invoice_id(tenant_id, invoice.id)
        if not snapshot:
            return True
        return any(not is_fne_uuid(row.fne_item_id) for row in snapshot)

    async def _repair(self, tenant_id: str, invoice: Invoice) -> bool:
        log = await self.log_repo.get_latest(
            tenant_id, invoice.id, response_code=CERTIFIED_RESPONSE_CODE
        )
        if not log:
            logger.warning(f"No successful certification log for invoice {invoice.id}")
            return False

        certificate = FneCertificate.from_payload(log.response_payload)
        if not any(is_fne_uuid(item.get("id")) for item in certificate.items):
            logger.warning(
                f"Certification log {log.id} of invoice {invoice.id} holds no valid FNE item"
            )
            return False

        try:
            async with self.uow.savepoint():
                await self.reconciliation.update_item_external_ids(invoice, certificate.items)
                snapshot = await self.reconciliation.snapshot_received_items(
                    tenant_id, invoice.id, certificate.items
                )
        except Exception:
            logger.exception(f"Failed to repair received items of invoice {invoice.id}")
            return False

        logger.info(f"Rebuilt {len(snapshot)} received items for invoice {invoice.id}")
        return True
