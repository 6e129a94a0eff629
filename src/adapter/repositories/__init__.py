from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_item_repository import SqlAlchemyInvoiceItemRepository
from .received_item_repository import SqlAlchemyReceivedItemRepository
from .invoice_log_repository import SqlAlchemyInvoiceLogRepository
from .tenant_repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyClientRepository,
    SqlAlchemyPointOfSaleRepository,
)

__all__ = [
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceItemRepository",
    "SqlAlchemyReceivedItemRepository",
    "SqlAlchemyInvoiceLogRepository",
    "SqlAlchemyCompanyRepository",
    "SqlAlchemyClientRepository",
    "SqlAlchemyPointOfSaleRepository",
]
