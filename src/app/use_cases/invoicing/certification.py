"""Certification Pipeline

The certify-and-commit algorithm shared by every flow that certifies an
invoice: first-time creation, update-then-recertify and certification of an
existing invoice.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union
from libs.result import Error, Result, Return
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.invoice_log_repository import InvoiceLogRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.tenant_repositories import (
    ClientRepository,
    CompanyRepository,
    PointOfSaleRepository,
)
from src.app.services.fne_gateway import FneGateway, FneResult
from src.app.services.unit_of_work import UnitOfWork
from src.domain.client import Client
from src.domain.company import Company
from src.domain.invoice import Invoice, InvoiceStatus, InvoiceType
from src.domain.invoice_item import InvoiceItem
from src.domain.invoice_log import InvoiceLog
from src.domain.point_of_sale import PointOfSale
from .dtos import (
    CertificationResponseDTO,
    FneResponseDTO,
    InvoiceDTO,
    LineItemDTO,
    TenantContext,
)
from .errors import InvoiceStateConflict, ManualReconciliationRequired
from .reconciliation import FneReconciliation
from .token_parser import DEFAULT_VERIFICATION_URL, parse_fne_token
from .wire_format import has_vat_code, invoice_items_from_lines

logger = logging.getLogger(__name__)

Parties = Tuple[Company, Client, PointOfSale]


def check_certifiable(type_invoice: str, lines: List[LineItemDTO]) -> Optional[Error]:
    """
    Validate the invoice type and the VAT of sale lines

    Returns:
        Error if the authority would reject the invoice, None otherwise
    """
    if type_invoice not in (InvoiceType.SALE.value, InvoiceType.PURCHASE.value):
        return Error(
            code="INVALID_INVOICE_TYPE",
            message='Invalid invoice type. The type must be "sale" or "purchase".',
            reason=f"Got type_invoice={type_invoice!r}",
        )

    if type_invoice == InvoiceType.SALE.value:
        missing = [line.reference for line in lines if not has_vat_code(line.taxes)]
        if missing:
            return Error(
                code="VAT_REQUIRED",
                message="VAT is mandatory on sale invoices. Every item must carry "
                        "TVA 18%, TVAB 9% or TVAC 0%.",
                reason=f"Items without VAT: {', '.join(missing)}",
            )

    return None


class CertificationPipeline:
    """
    Shared certify-and-commit flow

    Business Rules:
    1. The gateway is called with no database lock held
    2. Success: invoice fields, status=certified, item replacement,
       reconciliation and the log row are committed together
    3. Failure: status=rejected and the log row are committed together;
       existing items are left untouched
    4. A failure to commit after the authority accepted the invoice raises
       ManualReconciliationRequired
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        log_repo: InvoiceLogRepository,
        company_repo: CompanyRepository,
        client_repo: ClientRepository,
        point_of_sale_repo: PointOfSaleRepository,
        reconciliation: FneReconciliation,
        fne_gateway: FneGateway,
        verification_base_url: str = DEFAULT_VERIFICATION_URL,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.log_repo = log_repo
        self.company_repo = company_repo
        self.client_repo = client_repo
        self.point_of_sale_repo = point_of_sale_repo
        self.reconciliation = reconciliation
        self.fne_gateway = fne_gateway
        self.verification_base_url = verification_base_url

    async def resolve_parties(
        self, tenant: TenantContext, client_id: int, point_of_sale_id: int
    ) -> Union[Parties, Error]:
        """Load the company, client and point of sale of the tenant"""
        client = await self.client_repo.get_by_id(tenant.tenant_id, client_id)
        if not client:
            return Error(
                code="CLIENT_NOT_FOUND",
                message="Client not found",
                reason=f"Client {client_id} does not belong to tenant {tenant.tenant_id}",
            )

        point_of_sale = await self.point_of_sale_repo.get_by_id(tenant.tenant_id, point_of_sale_id)
        if not point_of_sale:
            return Error(
                code="POINT_OF_SALE_NOT_FOUND",
                message="Point of sale not found",
                reason=f"Point of sale {point_of_sale_id} does not belong to tenant {tenant.tenant_id}",
            )

        company = await self.company_repo.get_by_tenant_id(tenant.tenant_id)
        if not company:
            return Error(
                code="COMPANY_NOT_FOUND",
                message="Company not found",
                reason=f"No company for tenant {tenant.tenant_id}",
            )

        return company, client, point_of_sale

    async def run(
        self,
        tenant: TenantContext,
        invoice: Invoice,
        lines: List[LineItemDTO],
        fne_invoice: Dict[str, Any],
        changes: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Invoice, List[InvoiceItem], FneResult]:
        """
        Certify an invoice and commit the outcome

        Args:
            tenant: Caller identity
            invoice: Transient invoice (create flow) or persisted invoice
            lines: Lines being certified; they replace the stored items on success
            fne_invoice: Wire payload
            changes: Field updates applied to a persisted invoice on success only

        Returns:
            (invoice, items, fne_result) after commit

        Raises:
            ManualReconciliationRequired: the authority accepted the invoice
                but the local commit failed
        """
        invoice_id = invoice.id
        point_of_sale_id = (changes or {}).get("point_of_sale_id", invoice.point_of_sale_id)

        logger.info(
            f"Certifying invoice {invoice.uid_invoice} of tenant {tenant.tenant_id} "
            f"({len(lines)} items)"
        )
        # Close the read transaction so no lock is held during the FNE call
        await self.uow.commit()
        result = await self.fne_gateway.certify(fne_invoice, tenant.fne_token)

        if result.success:
            try:
                invoice, items, token_url = await self._persist_success(
                    tenant, invoice, lines, changes, result
                )
                await self.log_repo.create(
                    self._build_log(tenant, point_of_sale_id, invoice.id, fne_invoice, result, token_url)
                )
                await self.uow.commit()
            except Exception as e:
                await self.uow.rollback()
                await self._record_log_after_rollback(
                    tenant, point_of_sale_id, invoice_id or 0, fne_invoice, result
                )
                certificate = result.certificate
                logger.critical(
                    f"Invoice {invoice_id} of tenant {tenant.tenant_id} was certified by FNE "
                    f"(reference {certificate.reference}) but could not be saved: {e!r}"
                )
                raise ManualReconciliationRequired(
                    operation="certification",
                    tenant_id=tenant.tenant_id,
                    invoice_id=invoice_id,
                    fne_reference=certificate.reference,
                    fne_response=result.data,
                ) from e

            logger.info(f"Invoice {invoice.id} certified with reference {invoice.fne_reference}")
            return invoice, items, result

        logger.warning(
            f"FNE rejected invoice {invoice.uid_invoice} of tenant {tenant.tenant_id}: "
            f"[{result.code}] {result.message}"
        )
        try:
            invoice, items = await self._persist_failure(tenant, invoice, lines)
            await self.log_repo.create(
                self._build_log(tenant, point_of_sale_id, invoice.id, fne_invoice, result, None)
            )
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            await self._record_log_after_rollback(
                tenant, point_of_sale_id, invoice_id or 0, fne_invoice, result
            )
            raise

        return invoice, items, result

    async def _persist_success(
        self,
        tenant: TenantContext,
        invoice: Invoice,
        lines: List[LineItemDTO],
        changes: Optional[Dict[str, Any]],
        result: FneResult,
    ) -> Tuple[Invoice, List[InvoiceItem], Optional[str]]:
        certificate = result.certificate
        token = parse_fne_token(certificate.token, self.verification_base_url) if certificate.token else None

        if invoice.id is not None:
            invoice = await self._lock_for_certification(tenant, invoice.id)
            for name, value in (changes or {}).items():
                setattr(invoice, name, value)

        invoice.fne_reference = certificate.reference
        invoice.fne_invoice_id = certificate.fne_invoice_id
        invoice.fne_token = token.url if token else None
        invoice.fne_token_value = token.value if token else None
        invoice.status = InvoiceStatus.CERTIFIED

        if invoice.id is None:
            invoice = await self.invoice_repo.create(invoice)
        else:
            invoice = await self.invoice_repo.update(invoice)
            await self.item_repo.delete_by_invoice_uid(tenant.tenant_id, invoice.uid_invoice)

        items = await self.item_repo.create_many(
            invoice_items_from_lines(tenant.tenant_id, invoice.uid_invoice, lines)
        )

        await self.reconciliation.apply(invoice, certificate)

        return invoice, items, invoice.fne_token

    async def _persist_failure(
        self, tenant: TenantContext, invoice: Invoice, lines: List[LineItemDTO]
    ) -> Tuple[Invoice, List[InvoiceItem]]:
        if invoice.id is None:
            invoice.status = InvoiceStatus.REJECTED
            invoice = await self.invoice_repo.create(invoice)
            items = await self.item_repo.create_many(
                invoice_items_from_lines(tenant.tenant_id, invoice.uid_invoice, lines)
            )
            return invoice, items

        current = await self.invoice_repo.get_by_id(tenant.tenant_id, invoice.id, for_update=True)
        if current is None:
            raise InvoiceStateConflict(f"Invoice {invoice.id} disappeared during certification")

        # A concurrent request may have certified it meanwhile
        if current.status in (InvoiceStatus.PENDING, InvoiceStatus.REJECTED):
            current.status = InvoiceStatus.REJECTED
            current = await self.invoice_repo.update(current)

        items = await self.item_repo.get_by_invoice_uid(tenant.tenant_id, current.uid_invoice)
        return current, items

    async def _lock_for_certification(self, tenant: TenantContext, invoice_id: int) -> Invoice:
        invoice = await self.invoice_repo.get_by_id(tenant.tenant_id, invoice_id, for_update=True)
        if invoice is None:
            raise InvoiceStateConflict(f"Invoice {invoice_id} disappeared during certification")
        if invoice.is_refund or invoice.status in (InvoiceStatus.CERTIFIED, InvoiceStatus.REFUNDED):
            raise InvoiceStateConflict(
                f"Invoice {invoice_id} was certified by a concurrent request"
            )
        return invoice

    def _build_log(
        self,
        tenant: TenantContext,
        point_of_sale_id: int,
        invoice_id: int,
        fne_invoice: Dict[str, Any],
        result: FneResult,
        token_url: Optional[str],
    ) -> InvoiceLog:
        return InvoiceLog(
            tenant_id=tenant.tenant_id,
            point_of_sale_id=point_of_sale_id,
            invoice_id=invoice_id,
            request_payload=fne_invoice,
            response_payload=result.data if result.data is not None else {},
            response_code=result.code,
            response_message=result.message,
            user_id=tenant.user_id,
            token=token_url,
        )

    async def _record_log_after_rollback(
        self,
        tenant: TenantContext,
        point_of_sale_id: int,
        invoice_id: int,
        fne_invoice: Dict[str, Any],
        result: FneResult,
    ) -> None:
        certificate = result.certificate
        token_url = None
        if result.success and certificate.token:
            token_url = parse_fne_token(certificate.token, self.verification_base_url).url
        try:
            await self.log_repo.create(
                self._build_log(tenant, point_of_sale_id, invoice_id, fne_invoice, result, token_url)
            )
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            logger.exception(
                f"Could not record FNE log for invoice {invoice_id} of tenant {tenant.tenant_id}"
            )


def certification_outcome(
    invoice: Invoice, items: List[InvoiceItem], result: FneResult
) -> Result[CertificationResponseDTO]:
    """Turn a pipeline outcome into the Result returned by every certify flow"""
    if not result.success:
        return Return.err(
            Error(
                code="FNE_CERTIFICATION_REJECTED",
                message=result.message,
                reason=f"FNE status {result.code}",
                details={
                    "invoice_id": invoice.id,
                    "status": invoice.status.value,
                    "fne_code": result.code,
                    "fne_data": result.data,
                },
            )
        )

    return Return.ok(
        CertificationResponseDTO(
            invoice=InvoiceDTO.from_entity(invoice, items),
            fne_response=FneResponseDTO(
                success=result.success,
                code=result.code,
                message=result.message,
                data=result.data,
            ),
        )
    )
