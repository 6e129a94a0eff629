"""CertifyInvoice Use Case

Submits an existing, not yet certified invoice to the FNE authority with the
items already stored for it.
"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.invoice import InvoiceStatus
from .certification import CertificationPipeline, certification_outcome, check_certifiable
from .dtos import CertificationResponseDTO, TenantContext
from .errors import ManualReconciliationRequired
from .wire_format import build_fne_invoice, line_from_invoice_item

logger = logging.getLogger(__name__)


class CertifyInvoice:
    """
    Use Case: Certify an existing invoice

    Business Rules:
    1. Invoice must belong to the caller's tenant
    2. Certified invoices and refund invoices cannot be certified
    3. Sale invoices need a VAT code on every item
    4. The authority outcome is always logged; a rejection sets status=rejected

    Flow:
    1. Load invoice and its items (plain reads)
    2. Check preconditions
    3. Resolve client, point of sale and company
    4. Build the wire payload and run the certification pipeline
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        pipeline: CertificationPipeline,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.pipeline = pipeline

    async def execute(
        self, tenant: TenantContext, invoice_id: int
    ) -> Result[CertificationResponseDTO]:
        """
        Execute certification of a stored invoice

        Args:
            tenant: Caller identity
            invoice_id: Invoice ID

        Returns:
            Result[CertificationResponseDTO]: Certified invoice or error

        Raises:
            ManualReconciliationRequired: FNE certified the invoice but it
                could not be saved
        """
        try:
            invoice = await self.invoice_repo.get_by_id(tenant.tenant_id, invoice_id)
            if not invoice:
                return Return.err(
                    Error(
                        code="INVOICE_NOT_FOUND",
                        message="Invoice not found",
                        reason=f"Invoice {invoice_id} does not belong to tenant {tenant.tenant_id}",
                    )
                )

            if invoice.status == InvoiceStatus.CERTIFIED:
                return Return.err(
                    Error(
                        code="INVOICE_ALREADY_CERTIFIED",
                        message="This invoice is already certified",
                        reason=f"Invoice {invoice_id} has reference {invoice.fne_reference}",
                    )
                )

            if invoice.is_refund:
                return Return.err(
                    Error(
                        code="REFUND_INVOICE_NOT_CERTIFIABLE",
                        message="A refund invoice cannot be certified",
                        reason=f"Invoice {invoice_id} credits invoice {invoice.original_invoice_id}",
                    )
                )

            if invoice.status == InvoiceStatus.REFUNDED:
                return Return.err(
                    Error(
                        code="INVOICE_ALREADY_REFUNDED",
                        message="A refunded invoice cannot be certified again",
                        reason=f"Invoice {invoice_id} was certified as {invoice.fne_reference} and then refunded",
                    )
                )

            items = await self.item_repo.get_by_invoice_uid(tenant.tenant_id, invoice.uid_invoice)
            lines = [line_from_invoice_item(item) for item in items]

            error = check_certifiable(invoice.type_invoice.value, lines)
            if error:
                return Return.err(error)

            parties = await self.pipeline.resolve_parties(
                tenant, invoice.client_id, invoice.point_of_sale_id
            )
            if isinstance(parties, Error):
                return Return.err(parties)
            company, client, point_of_sale = parties

            fne_invoice = build_fne_invoice(
                invoice_type=invoice.type_invoice.value,
                payment_method=invoice.payment_method,
                client_seller_name=invoice.client_seller_name,
                client=client,
                point_of_sale=point_of_sale,
                company=company,
                lines=lines,
            )

            invoice, items, result = await self.pipeline.run(tenant, invoice, lines, fne_invoice)
            return certification_outcome(invoice, items, result)

        except ManualReconciliationRequired:
            raise
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Certification of invoice {invoice_id} failed: {e}")
            return Return.err(
                Error(
                    code="CERTIFY_INVOICE_FAILED",
                    message="Failed to certify invoice",
                    reason=str(e),
                )
            )
