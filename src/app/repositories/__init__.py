from .invoice_repository import InvoiceRepository
from .invoice_item_repository import InvoiceItemRepository
from .received_item_repository import ReceivedItemRepository
from .invoice_log_repository import InvoiceLogRepository
from .tenant_repositories import CompanyRepository, ClientRepository, PointOfSaleRepository

__all__ = [
    "InvoiceRepository",
    "InvoiceItemRepository",
    "ReceivedItemRepository",
    "InvoiceLogRepository",
    "CompanyRepository",
    "ClientRepository",
    "PointOfSaleRepository",
]
