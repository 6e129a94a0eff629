from .base import BaseModel, generate_uuid
from .company import Company
from .client import Client
from .point_of_sale import PointOfSale
from .invoice import Invoice, InvoiceStatus, InvoiceType
from .invoice_item import InvoiceItem
from .received_item import ReceivedItem
from .invoice_log import InvoiceLog

__all__ = [
    "BaseModel",
    "generate_uuid",
    "Company",
    "Client",
    "PointOfSale",
    "Invoice",
    "InvoiceStatus",
    "InvoiceType",
    "InvoiceItem",
    "ReceivedItem",
    "InvoiceLog",
]
