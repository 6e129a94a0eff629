"""UpdateAndRecertifyInvoice Use Case

Replaces the fields and items of a pending or rejected invoice and submits
it again to the FNE authority.
"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.invoice import InvoiceStatus, InvoiceType
from .certification import CertificationPipeline, certification_outcome, check_certifiable
from .dtos import CertificationResponseDTO, InvoiceCommandDTO, TenantContext
from .errors import ManualReconciliationRequired
from .wire_format import build_fne_invoice

logger = logging.getLogger(__name__)


class UpdateAndRecertifyInvoice:
    """
    Use Case: Update an invoice and certify it again

    Business Rules:
    1. Certified invoices and refund invoices are immutable
    2. The new fields and items are only saved when the authority accepts
       them; a rejection only marks the invoice rejected
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        pipeline: CertificationPipeline,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.pipeline = pipeline

    async def execute(
        self, tenant: TenantContext, invoice_id: int, command: InvoiceCommandDTO
    ) -> Result[CertificationResponseDTO]:
        """
        Execute update and recertification

        Args:
            tenant: Caller identity
            invoice_id: Invoice ID
            command: New invoice fields and line items

        Returns:
            Result[CertificationResponseDTO]: Certified invoice or error
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
                        message="A certified invoice cannot be modified",
                        reason=f"Invoice {invoice_id} has reference {invoice.fne_reference}",
                    )
                )

            if invoice.is_refund:
                return Return.err(
                    Error(
                        code="REFUND_INVOICE_NOT_CERTIFIABLE",
                        message="A refund invoice cannot be modified",
                        reason=f"Invoice {invoice_id} credits invoice {invoice.original_invoice_id}",
                    )
                )

            if invoice.status == InvoiceStatus.REFUNDED:
                return Return.err(
                    Error(
                        code="INVOICE_ALREADY_REFUNDED",
                        message="A refunded invoice cannot be modified",
                        reason=f"Invoice {invoice_id} was certified as {invoice.fne_reference} and then refunded",
                    )
                )

            error = check_certifiable(command.type_invoice, command.items)
            if error:
                return Return.err(error)

            parties = await self.pipeline.resolve_parties(
                tenant, command.client_id, command.point_of_sale_id
            )
            if isinstance(parties, Error):
                return Return.err(parties)
            company, client, point_of_sale = parties

            fne_invoice = build_fne_invoice(
                invoice_type=command.type_invoice,
                payment_method=command.payment_method,
                client_seller_name=command.client_seller_name,
                client=client,
                point_of_sale=point_of_sale,
                company=company,
                lines=command.items,
            )
            changes = {
                "client_id": command.client_id,
                "point_of_sale_id": command.point_of_sale_id,
                "type_invoice": InvoiceType(command.type_invoice),
                "payment_method": command.payment_method,
                "client_seller_name": command.client_seller_name,
                "discount_rate": command.discount_rate,
            }

            invoice, items, result = await self.pipeline.run(
                tenant, invoice, command.items, fne_invoice, changes=changes
            )
            return certification_outcome(invoice, items, result)

        except ManualReconciliationRequired:
            raise
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Update of invoice {invoice_id} failed: {e}")
            return Return.err(
                Error(
                    code="UPDATE_INVOICE_FAILED",
                    message="Failed to update invoice",
                    reason=str(e),
                )
            )
