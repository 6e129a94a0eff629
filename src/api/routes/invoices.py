"""Invoice API Routes

FastAPI routes for invoice certification and refunds with the FNE authority.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Error
from src.api.schemas.invoice_request import InvoiceRequestSchema, RefundRequestSchema
from src.app.services.fne_gateway import FneGateway
from src.app.use_cases.invoicing.certification import CertificationPipeline
from src.app.use_cases.invoicing.certify_invoice import CertifyInvoice
from src.app.use_cases.invoicing.create_invoice import CreateAndCertifyInvoice
from src.app.use_cases.invoicing.update_invoice import UpdateAndRecertifyInvoice
from src.app.use_cases.invoicing.refund_invoice import RefundInvoice
from src.app.use_cases.invoicing.get_invoice import GetInvoice
from src.app.use_cases.invoicing.reconciliation import FneReconciliation
from src.app.use_cases.invoicing.dtos import (
    CertificationResponseDTO,
    InvoiceDetailDTO,
    RefundResponseDTO,
    TenantContext,
)
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.repositories.invoice_item_repository import SqlAlchemyInvoiceItemRepository
from src.adapter.repositories.received_item_repository import SqlAlchemyReceivedItemRepository
from src.adapter.repositories.invoice_log_repository import SqlAlchemyInvoiceLogRepository
from src.adapter.repositories.tenant_repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyClientRepository,
    SqlAlchemyPointOfSaleRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session, get_fne_gateway, get_tenant
from src.api.error import ClientError

router = APIRouter(prefix="/invoices", tags=["Invoices"])

NOT_FOUND_CODES = {
    "INVOICE_NOT_FOUND",
    "CLIENT_NOT_FOUND",
    "POINT_OF_SALE_NOT_FOUND",
    "COMPANY_NOT_FOUND",
}

ERROR_RESPONSES = {
    400: {
        "description": "Business rule violation or FNE rejection",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "VAT_REQUIRED",
                        "message": "VAT is mandatory on sale invoices."
                    }
                }
            }
        }
    },
    404: {
        "description": "Invoice, client or point of sale not found",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "INVOICE_NOT_FOUND",
                        "message": "Invoice not found"
                    }
                }
            }
        }
    },
    500: {
        "description": "FNE accepted the operation but it could not be saved",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "MANUAL_RECONCILIATION_REQUIRED",
                        "message": "FNE accepted certification for invoice 12 ..."
                    }
                }
            }
        }
    },
}


def _raise_for(error: Error):
    if error.code in NOT_FOUND_CODES:
        raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
    raise ClientError(error)


def _build_pipeline(session: AsyncSession, fne_gateway: FneGateway) -> CertificationPipeline:
    uow = SqlAlchemyUnitOfWork(session)
    item_repo = SqlAlchemyInvoiceItemRepository(session)
    reconciliation = FneReconciliation(uow, item_repo, SqlAlchemyReceivedItemRepository(session))
    return CertificationPipeline(
        uow=uow,
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        item_repo=item_repo,
        log_repo=SqlAlchemyInvoiceLogRepository(session),
        company_repo=SqlAlchemyCompanyRepository(session),
        client_repo=SqlAlchemyClientRepository(session),
        point_of_sale_repo=SqlAlchemyPointOfSaleRepository(session),
        reconciliation=reconciliation,
        fne_gateway=fne_gateway,
        verification_base_url=ApplicationConfig.FNE_VERIFICATION_URL,
    )


@router.post(
    "",
    response_model=CertificationResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_invoice(
    request: InvoiceRequestSchema,
    tenant: TenantContext = Depends(get_tenant),
    session: AsyncSession = Depends(get_session),
    fne_gateway: FneGateway = Depends(get_fne_gateway),
):
    """
    Create an invoice and certify it with the FNE authority.

    A rejected invoice is kept with status `rejected` and can be corrected
    with `PUT /invoices/{id}`.

    **Returns:**
    - 201: Invoice created and certified
    - 400: Validation error or FNE rejection
    - 404: Client or point of sale not found
    """
    pipeline = _build_pipeline(session, fne_gateway)
    use_case = CreateAndCertifyInvoice(pipeline.uow, pipeline)
    result = await use_case.execute(tenant, request.to_command())

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.get(
    "/{invoice_id}",
    response_model=InvoiceDetailDTO,
    status_code=status.HTTP_200_OK,
    responses={404: ERROR_RESPONSES[404]},
)
async def get_invoice(
    invoice_id: int,
    tenant: TenantContext = Depends(get_tenant),
    session: AsyncSession = Depends(get_session),
):
    """
    Get an invoice with its items, the FNE items snapshot, its refund and
    the last FNE error when it was rejected.
    """
    use_case = GetInvoice(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
        SqlAlchemyReceivedItemRepository(session),
        SqlAlchemyInvoiceLogRepository(session),
    )
    result = await use_case.execute(tenant, invoice_id)

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.put(
    "/{invoice_id}",
    response_model=CertificationResponseDTO,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def update_invoice(
    invoice_id: int,
    request: InvoiceRequestSchema,
    tenant: TenantContext = Depends(get_tenant),
    session: AsyncSession = Depends(get_session),
    fne_gateway: FneGateway = Depends(get_fne_gateway),
):
    """
    Replace the data of a pending or rejected invoice and certify it again.

    The new data is only saved when FNE certifies it.
    """
    pipeline = _build_pipeline(session, fne_gateway)
    use_case = UpdateAndRecertifyInvoice(pipeline.uow, pipeline.invoice_repo, pipeline)
    result = await use_case.execute(tenant, invoice_id, request.to_command())

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.post(
    "/{invoice_id}/certify",
    response_model=CertificationResponseDTO,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def certify_invoice(
    invoice_id: int,
    tenant: TenantContext = Depends(get_tenant),
    session: AsyncSession = Depends(get_session),
    fne_gateway: FneGateway = Depends(get_fne_gateway),
):
    """Certify a stored invoice with its current items."""
    pipeline = _build_pipeline(session, fne_gateway)
    use_case = CertifyInvoice(pipeline.uow, pipeline.invoice_repo, pipeline.item_repo, pipeline)
    result = await use_case.execute(tenant, invoice_id)

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.post(
    "/{invoice_id}/refund",
    response_model=RefundResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def refund_invoice(
    invoice_id: int,
    request: RefundRequestSchema,
    tenant: TenantContext = Depends(get_tenant),
    session: AsyncSession = Depends(get_session),
    fne_gateway: FneGateway = Depends(get_fne_gateway),
):
    """
    Refund a certified invoice, fully or partially.

    **Request body:**
    - `items`: FNE item ids (from `received_items`) and quantities to refund

    **Returns:**
    - 201: Refund invoice created
    - 400: Refund not allowed or rejected by FNE
    - 404: Invoice not found
    """
    use_case = RefundInvoice(
        uow=SqlAlchemyUnitOfWork(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        item_repo=SqlAlchemyInvoiceItemRepository(session),
        received_item_repo=SqlAlchemyReceivedItemRepository(session),
        log_repo=SqlAlchemyInvoiceLogRepository(session),
        fne_gateway=fne_gateway,
        verification_base_url=ApplicationConfig.FNE_VERIFICATION_URL,
    )
    result = await use_case.execute(tenant, invoice_id, request.to_command())

    if result.is_err():
        _raise_for(result.error)

    return result.value
