"""Invoicing domain use cases"""
from .certification import CertificationPipeline
from .certify_invoice import CertifyInvoice
from .create_invoice import CreateAndCertifyInvoice
from .update_invoice import UpdateAndRecertifyInvoice
from .refund_invoice import RefundInvoice
from .get_invoice import GetInvoice
from .repair_received_items import RepairReceivedItems
from .reconciliation import FneReconciliation
from .errors import InvoiceStateConflict, ManualReconciliationRequired
from .dtos import (
    TenantContext,
    CustomTaxDTO,
    LineItemDTO,
    InvoiceCommandDTO,
    RefundItemDTO,
    RefundCommandDTO,
    InvoiceItemDTO,
    ReceivedItemDTO,
    InvoiceDTO,
    FneResponseDTO,
    CertificationResponseDTO,
    OriginalInvoiceSummaryDTO,
    RefundResponseDTO,
    FneErrorDTO,
    InvoiceDetailDTO,
    RepairResultDTO,
)

__all__ = [
    "CertificationPipeline",
    "CertifyInvoice",
    "CreateAndCertifyInvoice",
    "UpdateAndRecertifyInvoice",
    "RefundInvoice",
    "GetInvoice",
    "RepairReceivedItems",
    "FneReconciliation",
    "InvoiceStateConflict",
    "ManualReconciliationRequired",
    "TenantContext",
    "CustomTaxDTO",
    "LineItemDTO",
    "InvoiceCommandDTO",
    "RefundItemDTO",
    "RefundCommandDTO",
    "InvoiceItemDTO",
    "ReceivedItemDTO",
    "InvoiceDTO",
    "FneResponseDTO",
    "CertificationResponseDTO",
    "OriginalInvoiceSummaryDTO",
    "RefundResponseDTO",
    "FneErrorDTO",
    "InvoiceDetailDTO",
    "RepairResultDTO",
]
