"""Get Invoice Use Case

Retrieves an invoice with its items, the FNE items snapshot, its refund and
the last authority error when it was rejected.
"""

from libs.result import Result, Return, Error
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.invoice_log_repository import InvoiceLogRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.received_item_repository import ReceivedItemRepository
from src.domain.invoice import InvoiceStatus
from .dtos import FneErrorDTO, InvoiceDetailDTO, InvoiceDTO, ReceivedItemDTO, TenantContext


class GetInvoice:
    """
    Get Invoice Use Case

    Read-only operation scoped to the caller's tenant.
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        received_item_repo: ReceivedItemRepository,
        log_repo: InvoiceLogRepository,
    ):
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.received_item_repo = received_item_repo
        self.log_repo = log_repo

    async def execute(self, tenant: TenantContext, invoice_id: int) -> Result[InvoiceDetailDTO]:
        """
        Execute get invoice operation

        Errors:
            INVOICE_NOT_FOUND: Invoice does not exist for this tenant
        """
        invoice = await self.invoice_repo.get_by_id(tenant.tenant_id, invoice_id)
        if not invoice:
            return Return.err(
                Error(
                    code="INVOICE_NOT_FOUND",
                    message="Invoice not found",
                    reason=f"Invoice {invoice_id} does not belong to tenant {tenant.tenant_id}",
                )
            )

        items = await self.item_repo.get_by_invoice_uid(tenant.tenant_id, invoice.uid_invoice)
        received_items = await self.received_item_repo.get_by_invoice_id(tenant.tenant_id, invoice.id)

        refund_invoice_id = None
        if not invoice.is_refund:
            refund = await self.invoice_repo.get_successful_refund(tenant.tenant_id, invoice.id)
            if refund:
                refund_invoice_id = refund.id

        error = None
        if invoice.status == InvoiceStatus.REJECTED:
            log = await self.log_repo.get_latest(tenant.tenant_id, invoice.id)
            if log:
                error = FneErrorDTO(
                    code=log.response_code,
                    message=log.response_message,
                    details=log.response_payload,
                )

        return Return.ok(
            InvoiceDetailDTO(
                invoice=InvoiceDTO.from_entity(invoice, items),
                received_items=[ReceivedItemDTO.from_entity(row) for row in received_items],
                refund_invoice_id=refund_invoice_id,
                error=error,
            )
        )
