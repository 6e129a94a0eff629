"""RefundInvoice Use Case

Issues a credit note against a certified invoice. The refundable lines and
quantities come exclusively from the snapshot of items the FNE authority
returned when the invoice was certified.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List
from libs.result import Result, Return, Error
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.invoice_log_repository import InvoiceLogRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.received_item_repository import ReceivedItemRepository
from src.app.services.fne_gateway import FneGateway, FneResult
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import generate_uuid
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_item import InvoiceItem
from src.domain.invoice_log import InvoiceLog
from src.domain.received_item import ReceivedItem
from .dtos import (
    FneResponseDTO,
    InvoiceDTO,
    OriginalInvoiceSummaryDTO,
    RefundCommandDTO,
    RefundResponseDTO,
    TenantContext,
)
from .errors import InvoiceStateConflict, ManualReconciliationRequired
from .reconciliation import is_fne_uuid
from .token_parser import DEFAULT_VERIFICATION_URL, parse_fne_token

logger = logging.getLogger(__name__)


def _merge_requested_lines(command: RefundCommandDTO) -> Dict[str, int]:
    """Requested quantity per authority item id, duplicates summed, order kept"""
    requested: Dict[str, int] = {}
    for line in command.items:
        item_id = line.id.strip()
        requested[item_id] = requested.get(item_id, 0) + line.quantity
    return requested


class RefundInvoice:
    """
    Use Case: Refund a certified invoice (partial or full credit note)

    Business Rules:
    1. Only certified, non-refund invoices with an FNE identifier can be refunded
    2. An invoice is refunded at most once
    3. Refundable items and quantities come from the received items snapshot
    4. On success a refund invoice (status=refunded, negative quantities) is
       created and the original is marked refunded in one transaction
    5. On rejection only a log row is written against the original

    Flow:
    1. Check preconditions with plain reads
    2. Call the authority
    3. Commit the outcome, re-checking the double-refund guard under lock
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        received_item_repo: ReceivedItemRepository,
        log_repo: InvoiceLogRepository,
        fne_gateway: FneGateway,
        verification_base_url: str = DEFAULT_VERIFICATION_URL,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.received_item_repo = received_item_repo
        self.log_repo = log_repo
        self.fne_gateway = fne_gateway
        self.verification_base_url = verification_base_url

    async def execute(
        self, tenant: TenantContext, invoice_id: int, command: RefundCommandDTO
    ) -> Result[RefundResponseDTO]:
        """
        Execute refund

        Args:
            tenant: Caller identity
            invoice_id: ID of the invoice to refund
            command: Authority item ids and quantities to refund

        Returns:
            Result[RefundResponseDTO]: Refund invoice and original summary, or error

        Raises:
            ManualReconciliationRequired: FNE issued the credit note but it
                could not be saved
        """
        try:
            requested = _merge_requested_lines(command)
            checked = await self._check_preconditions(tenant, invoice_id, requested)
            if isinstance(checked, Error):
                return Return.err(checked)
            original, snapshot_by_id = checked

            original_id = original.id
            point_of_sale_id = original.point_of_sale_id
            fne_invoice_id = original.fne_invoice_id
            refund_lines = [
                {"id": item_id, "quantity": quantity} for item_id, quantity in requested.items()
            ]
            request_payload = {"originalInvoiceId": fne_invoice_id, "items": refund_lines}

            logger.info(
                f"Refunding {len(refund_lines)} lines of invoice {original_id} "
                f"(FNE {fne_invoice_id}) for tenant {tenant.tenant_id}"
            )
            # Close the read transaction so no lock is held during the FNE call
            await self.uow.commit()
            result = await self.fne_gateway.refund(fne_invoice_id, refund_lines, tenant.fne_token)

            if not result.success:
                return await self._record_rejection(
                    tenant, original_id, point_of_sale_id, request_payload, result
                )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Refund of invoice {invoice_id} failed: {e}")
            return Return.err(
                Error(
                    code="REFUND_INVOICE_FAILED",
                    message="Failed to refund invoice",
                    reason=str(e),
                )
            )

        try:
            refund_invoice, refund_items, original = await self._persist_refund(
                tenant, original_id, requested, snapshot_by_id, request_payload, result
            )
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            await self._record_log_after_rollback(
                tenant, original_id, point_of_sale_id, request_payload, result
            )
            certificate = result.certificate
            logger.critical(
                f"FNE issued credit note {certificate.reference} for invoice {original_id} "
                f"of tenant {tenant.tenant_id} but it could not be saved: {e!r}"
            )
            raise ManualReconciliationRequired(
                operation="refund",
                tenant_id=tenant.tenant_id,
                invoice_id=original_id,
                fne_reference=certificate.reference,
                fne_response=result.data,
            ) from e

        logger.info(
            f"Invoice {original_id} refunded by invoice {refund_invoice.id} "
            f"(reference {refund_invoice.fne_reference})"
        )
        return Return.ok(
            RefundResponseDTO(
                refund_invoice=InvoiceDTO.from_entity(refund_invoice, refund_items),
                original_invoice=OriginalInvoiceSummaryDTO(
                    id=original.id,
                    uid_invoice=original.uid_invoice,
                    fne_reference=original.fne_reference,
                    status=original.status.value,
                ),
                fne_response=FneResponseDTO(
                    success=result.success,
                    code=result.code,
                    message=result.message,
                    data=result.data,
                ),
            )
        )

    async def _check_preconditions(self, tenant: TenantContext, invoice_id: int, requested: Dict[str, int]):
        original = await self.invoice_repo.get_by_id(tenant.tenant_id, invoice_id)
        if not original:
            return Error(
                code="INVOICE_NOT_FOUND",
                message="Invoice not found",
                reason=f"Invoice {invoice_id} does not belong to tenant {tenant.tenant_id}",
            )

        if not original.fne_invoice_id:
            return Error(
                code="FNE_INVOICE_ID_MISSING",
                message="This invoice has no FNE identifier. Certify it again before refunding.",
                reason=f"Invoice {invoice_id} has no fne_invoice_id",
            )

        if original.is_refund:
            return Error(
                code="REFUND_OF_REFUND",
                message="A refund invoice cannot be refunded",
                reason=f"Invoice {invoice_id} credits invoice {original.original_invoice_id}",
            )

        if original.status == InvoiceStatus.REFUNDED:
            return Error(
                code="INVOICE_ALREADY_REFUNDED",
                message="This invoice has already been refunded",
                reason=f"Invoice {invoice_id} has status refunded",
            )

        existing_refund = await self.invoice_repo.get_successful_refund(tenant.tenant_id, original.id)
        if existing_refund:
            return Error(
                code="INVOICE_ALREADY_REFUNDED",
                message="This invoice has already been refunded",
                reason=f"Invoice {invoice_id} is credited by invoice {existing_refund.id}",
            )

        if original.status != InvoiceStatus.CERTIFIED:
            return Error(
                code="INVOICE_NOT_CERTIFIED",
                message="Only a certified invoice can be refunded",
                reason=f"Invoice {invoice_id} has status {original.status.value}",
            )

        snapshot = await self.received_item_repo.get_by_invoice_id(original.tenant_id, original.id)
        if not snapshot:
            return Error(
                code="RECEIVED_ITEMS_MISSING",
                message="No FNE items are recorded for this invoice. Certify it again before refunding.",
                reason=f"Invoice {invoice_id} has an empty received items snapshot",
            )

        invalid = [row.fne_item_id for row in snapshot if not is_fne_uuid(row.fne_item_id)]
        if invalid:
            return Error(
                code="RECEIVED_ITEMS_INVALID",
                message="The FNE items recorded for this invoice are invalid. Certify it again before refunding.",
                reason=f"Malformed FNE item ids: {', '.join(invalid)}",
            )

        snapshot_by_id = {row.fne_item_id: row for row in snapshot}

        unknown = [item_id for item_id in requested if item_id not in snapshot_by_id]
        if unknown:
            return Error(
                code="REFUND_ITEMS_UNKNOWN",
                message="Some items to refund do not belong to this invoice",
                reason=f"Unknown FNE item ids: {', '.join(unknown)}",
            )

        exceeded = []
        for item_id, quantity in requested.items():
            row = snapshot_by_id[item_id]
            if quantity > row.quantity:
                exceeded.append(
                    f"Requested quantity ({quantity}) exceeds available quantity "
                    f"({row.quantity}) for item {row.reference}"
                )
        if exceeded:
            return Error(
                code="REFUND_QUANTITY_EXCEEDED",
                message="; ".join(exceeded),
                reason=f"{len(exceeded)} lines exceed the certified quantity",
            )

        return original, snapshot_by_id

    async def _persist_refund(
        self,
        tenant: TenantContext,
        original_id: int,
        requested: Dict[str, int],
        snapshot_by_id: Dict[str, ReceivedItem],
        request_payload: Dict[str, Any],
        result: FneResult,
    ):
        original = await self.invoice_repo.get_by_id(tenant.tenant_id, original_id, for_update=True)
        if original is None:
            raise InvoiceStateConflict(f"Invoice {original_id} disappeared during refund")
        if original.status != InvoiceStatus.CERTIFIED:
            raise InvoiceStateConflict(
                f"Invoice {original_id} changed to {original.status.value} during refund"
            )
        if await self.invoice_repo.get_successful_refund(tenant.tenant_id, original_id):
            raise InvoiceStateConflict(f"Invoice {original_id} was refunded by a concurrent request")

        certificate = result.certificate
        token = parse_fne_token(certificate.token, self.verification_base_url) if certificate.token else None

        refund_invoice = await self.invoice_repo.create(
            Invoice(
                tenant_id=tenant.tenant_id,
                client_id=original.client_id,
                point_of_sale_id=original.point_of_sale_id,
                uid_invoice=generate_uuid(),
                type_invoice=original.type_invoice,
                payment_method=original.payment_method,
                client_seller_name=original.client_seller_name,
                discount_rate=original.discount_rate,
                is_refund=True,
                original_invoice_id=original_id,
                fne_reference=certificate.reference,
                fne_invoice_id=certificate.fne_invoice_id,
                fne_token=token.url if token else None,
                fne_token_value=token.value if token else None,
                status=InvoiceStatus.REFUNDED,
            )
        )

        original_items = await self.item_repo.get_by_invoice_uid(tenant.tenant_id, original.uid_invoice)
        refund_items = await self.item_repo.create_many(
            self._credit_items(tenant, refund_invoice, requested, snapshot_by_id, original_items)
        )

        await self.log_repo.create(
            InvoiceLog(
                tenant_id=tenant.tenant_id,
                point_of_sale_id=original.point_of_sale_id,
                invoice_id=refund_invoice.id,
                request_payload=request_payload,
                response_payload=result.data if result.data is not None else {},
                response_code=result.code,
                response_message=result.message,
                user_id=tenant.user_id,
                token=refund_invoice.fne_token,
            )
        )

        original.status = InvoiceStatus.REFUNDED
        original = await self.invoice_repo.update(original)

        return refund_invoice, refund_items, original

    def _credit_items(
        self,
        tenant: TenantContext,
        refund_invoice: Invoice,
        requested: Dict[str, int],
        snapshot_by_id: Dict[str, ReceivedItem],
        original_items: List[InvoiceItem],
    ) -> List[InvoiceItem]:
        by_reference: Dict[str, InvoiceItem] = {}
        for item in original_items:
            by_reference.setdefault(item.reference, item)

        credit_items = []
        for item_id, quantity in requested.items():
            row = snapshot_by_id[item_id]
            source = by_reference.get(row.reference)
            credit_items.append(
                InvoiceItem(
                    tenant_id=tenant.tenant_id,
                    uid_invoice=refund_invoice.uid_invoice,
                    reference=row.reference,
                    description=row.description,
                    quantity=-quantity,
                    amount=row.amount,
                    discount=row.discount,
                    measurement_unit=row.measurement_unit,
                    taxes=source.taxes if source else "",
                    custom_tax_name=source.custom_tax_name if source else "",
                    custom_tax_amount=source.custom_tax_amount if source else Decimal("0"),
                    fne_item_id=item_id,
                )
            )
        return credit_items

    async def _record_rejection(
        self,
        tenant: TenantContext,
        original_id: int,
        point_of_sale_id: int,
        request_payload: Dict[str, Any],
        result: FneResult,
    ) -> Result[RefundResponseDTO]:
        logger.error(
            f"FNE rejected refund of invoice {original_id} for tenant {tenant.tenant_id}: "
            f"[{result.code}] {result.message}"
        )
        await self.log_repo.create(
            self._build_log(tenant, original_id, point_of_sale_id, request_payload, result)
        )
        await self.uow.commit()

        return Return.err(
            Error(
                code="FNE_REFUND_REJECTED",
                message=result.message,
                reason=f"FNE status {result.code}",
                details={
                    "invoice_id": original_id,
                    "fne_code": result.code,
                    "fne_data": result.data,
                },
            )
        )

    def _build_log(
        self,
        tenant: TenantContext,
        invoice_id: int,
        point_of_sale_id: int,
        request_payload: Dict[str, Any],
        result: FneResult,
    ) -> InvoiceLog:
        return InvoiceLog(
            tenant_id=tenant.tenant_id,
            point_of_sale_id=point_of_sale_id,
            invoice_id=invoice_id,
            request_payload=request_payload,
            response_payload=result.data if result.data is not None else {},
            response_code=result.code,
            response_message=result.message,
            user_id=tenant.user_id,
        )

    async def _record_log_after_rollback(
        self,
        tenant: TenantContext,
        original_id: int,
        point_of_sale_id: int,
        request_payload: Dict[str, Any],
        result: FneResult,
    ) -> None:
        try:
            await self.log_repo.create(
                self._build_log(tenant, original_id, point_of_sale_id, request_payload, result)
            )
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            logger.exception(
                f"Could not record FNE refund log for invoice {original_id} of tenant {tenant.tenant_id}"
            )
