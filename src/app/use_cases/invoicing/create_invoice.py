"""CreateAndCertifyInvoice Use Case

Creates a new invoice and certifies it with the FNE authority in one call.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import generate_uuid
from src.domain.invoice import Invoice, InvoiceStatus, InvoiceType
from .certification import CertificationPipeline, certification_outcome, check_certifiable
from .dtos import CertificationResponseDTO, InvoiceCommandDTO, TenantContext
from .errors import ManualReconciliationRequired
from .wire_format import build_fne_invoice

logger = logging.getLogger(__name__)


class CreateAndCertifyInvoice:
    """
    Use Case: Create an invoice and certify it

    Business Rules:
    1. Client, point of sale and company must belong to the tenant
    2. Sale invoices need a VAT code on every item
    3. Nothing is stored when a precondition fails
    4. A rejected invoice is stored with status=rejected so it can be
       corrected and resubmitted

    Flow:
    1. Validate type and VAT
    2. Resolve client, point of sale and company
    3. Build a transient invoice with a fresh uid_invoice
    4. Build the wire payload and run the certification pipeline
    """

    def __init__(self, uow: UnitOfWork, pipeline: CertificationPipeline):
        self.uow = uow
        self.pipeline = pipeline

    async def execute(
        self, tenant: TenantContext, command: InvoiceCommandDTO
    ) -> Result[CertificationResponseDTO]:
        """
        Execute invoice creation and certification

        Args:
            tenant: Caller identity
            command: Invoice fields and line items

        Returns:
            Result[CertificationResponseDTO]: Certified invoice or error
        """
        try:
            error = check_certifiable(command.type_invoice, command.items)
            if error:
                return Return.err(error)

            parties = await self.pipeline.resolve_parties(
                tenant, command.client_id, command.point_of_sale_id
            )
            if isinstance(parties, Error):
                return Return.err(parties)
            company, client, point_of_sale = parties

            invoice = Invoice(
                tenant_id=tenant.tenant_id,
                client_id=command.client_id,
                point_of_sale_id=command.point_of_sale_id,
                uid_invoice=generate_uuid(),
                type_invoice=InvoiceType(command.type_invoice),
                payment_method=command.payment_method,
                client_seller_name=command.client_seller_name,
                discount_rate=command.discount_rate,
                status=InvoiceStatus.PENDING,
            )

            fne_invoice = build_fne_invoice(
                invoice_type=command.type_invoice,
                payment_method=command.payment_method,
                client_seller_name=command.client_seller_name,
                client=client,
                point_of_sale=point_of_sale,
                company=company,
                lines=command.items,
            )

            invoice, items, result = await self.pipeline.run(
                tenant, invoice, command.items, fne_invoice
            )
            return certification_outcome(invoice, items, result)

        except ManualReconciliationRequired:
            raise
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Invoice creation for tenant {tenant.tenant_id} failed: {e}")
            return Return.err(
                Error(
                    code="CREATE_INVOICE_FAILED",
                    message="Failed to create invoice",
                    reason=str(e),
                )
            )
