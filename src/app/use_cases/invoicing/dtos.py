"""Data Transfer Objects for Invoicing Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from pydantic import BaseModel, Field
from src.domain.invoice import Invoice
from src.domain.invoice_item import InvoiceItem
from src.domain.received_item import ReceivedItem


class TenantContext(BaseModel):
    """
    Caller identity resolved by the web layer

    user_id is 0 for API-key originated calls.
    """

    tenant_id: str = Field(..., description="Tenant (company) business identifier")
    company_id: int = Field(..., description="Company ID")
    fne_token: str = Field(..., description="Tenant's FNE authority token")
    user_id: int = Field(default=0, description="Acting user (0 for machine calls)")


class CustomTaxDTO(BaseModel):
    """Custom tax applied to a line item"""

    name: str = Field(default="", description="Custom tax name")
    amount: Decimal = Field(default=Decimal("0"), description="Custom tax amount")


class LineItemDTO(BaseModel):
    """
    Canonical line item

    Taxes are already folded from their legacy shapes: taxes is a list of
    internal codes and custom_taxes a list of name/amount pairs.
    """

    reference: str = Field(..., min_length=1, description="Item reference")
    description: str = Field(..., min_length=1, description="Item description")
    quantity: int = Field(..., ge=1, description="Quantity (minimum 1)")
    amount: Decimal = Field(..., ge=0, description="Unit amount")
    discount: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Discount percentage")
    measurement_unit: str = Field(default="pcs", description="Measurement unit")
    taxes: List[str] = Field(default_factory=list, description="Internal tax codes (TVA18, TVAB9, TVAC0)")
    custom_taxes: List[CustomTaxDTO] = Field(default_factory=list, description="Custom taxes")


class InvoiceCommandDTO(BaseModel):
    """
    Command DTO for creating or updating an invoice before certification

    type_invoice is kept as a plain string and checked by the use case.
    """

    client_id: int = Field(..., ge=1, description="Client ID")
    point_of_sale_id: int = Field(..., ge=1, description="Point of sale ID")
    type_invoice: str = Field(default="sale", description="Invoice type (sale, purchase)")
    payment_method: str = Field(default="cash", description="Payment method")
    client_seller_name: str = Field(default="", description="Seller display name")
    discount_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Discount percentage")
    items: List[LineItemDTO] = Field(..., min_length=1, description="Line items (at least one)")

    class Config:
        json_schema_extra = {
            "example": {
                "client_id": 3,
                "point_of_sale_id": 2,
                "type_invoice": "sale",
                "payment_method": "cash",
                "client_seller_name": "Awa Kone",
                "discount_rate": "0",
                "items": [
                    {
                        "reference": "REF-001",
                        "description": "Ciment 50kg",
                        "quantity": 2,
                        "amount": "1000",
                        "discount": "0",
                        "measurement_unit": "pcs",
                        "taxes": ["TVA18"],
                        "custom_taxes": []
                    }
                ]
            }
        }


class RefundItemDTO(BaseModel):
    """Line requested for refund, addressed by its authority item identifier"""

    id: str = Field(..., min_length=1, description="Authority item identifier (UUID)")
    quantity: int = Field(..., ge=1, description="Quantity to refund (minimum 1)")


class RefundCommandDTO(BaseModel):
    """Command DTO for refunding a certified invoice"""

    items: List[RefundItemDTO] = Field(..., min_length=1, description="Lines to refund")

    class Config:
        json_schema_extra = {
            "example": {
                "items": [
                    {"id": "11111111-1111-1111-1111-111111111111", "quantity": 1}
                ]
            }
        }


class InvoiceItemDTO(BaseModel):
    """Response DTO for an invoice item"""

    id: int
    reference: str
    description: str
    quantity: int
    amount: Decimal
    discount: Decimal
    measurement_unit: str
    taxes: str
    custom_tax_name: str
    custom_tax_amount: Decimal
    fne_item_id: Optional[str] = None

    @classmethod
    def from_entity(cls, item: InvoiceItem) -> "InvoiceItemDTO":
        return cls(
            id=item.id,
            reference=item.reference,
            description=item.description,
            quantity=item.quantity,
            amount=item.amount,
            discount=item.discount,
            measurement_unit=item.measurement_unit,
            taxes=item.taxes,
            custom_tax_name=item.custom_tax_name,
            custom_tax_amount=item.custom_tax_amount,
            fne_item_id=item.fne_item_id,
        )


class ReceivedItemDTO(BaseModel):
    """Response DTO for an authority-confirmed item"""

    fne_item_id: str
    reference: str
    description: str
    quantity: int
    amount: Decimal
    discount: Decimal
    measurement_unit: str

    @classmethod
    def from_entity(cls, item: ReceivedItem) -> "ReceivedItemDTO":
        return cls(
            fne_item_id=item.fne_item_id,
            reference=item.reference,
            description=item.description,
            quantity=item.quantity,
            amount=item.amount,
            discount=item.discount,
            measurement_unit=item.measurement_unit,
        )


class InvoiceDTO(BaseModel):
    """Response DTO for an invoice and its items"""

    id: int
    tenant_id: str
    uid_invoice: str
    client_id: int
    point_of_sale_id: int
    type_invoice: str
    payment_method: str
    client_seller_name: str
    discount_rate: Decimal
    is_refund: bool
    original_invoice_id: Optional[int] = None
    fne_reference: Optional[str] = None
    fne_invoice_id: Optional[str] = None
    fne_token: Optional[str] = None
    fne_token_value: Optional[str] = None
    status: str
    items: List[InvoiceItemDTO] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, invoice: Invoice, items: List[InvoiceItem]) -> "InvoiceDTO":
        return cls(
            id=invoice.id,
            tenant_id=invoice.tenant_id,
            uid_invoice=invoice.uid_invoice,
            client_id=invoice.client_id,
            point_of_sale_id=invoice.point_of_sale_id,
            type_invoice=invoice.type_invoice.value,
            payment_method=invoice.payment_method,
            client_seller_name=invoice.client_seller_name,
            discount_rate=invoice.discount_rate,
            is_refund=invoice.is_refund,
            original_invoice_id=invoice.original_invoice_id,
            fne_reference=invoice.fne_reference,
            fne_invoice_id=invoice.fne_invoice_id,
            fne_token=invoice.fne_token,
            fne_token_value=invoice.fne_token_value,
            status=invoice.status.value,
            items=[InvoiceItemDTO.from_entity(item) for item in items],
            created_at=invoice.created_at,
            updated_at=invoice.updated_at,
        )


class FneResponseDTO(BaseModel):
    """Normalized authority outcome returned to callers"""

    success: bool
    code: str
    message: str
    data: Optional[Any] = None


class CertificationResponseDTO(BaseModel):
    """
    Response DTO for a successful certification

    Returned by CreateAndCertifyInvoice, UpdateAndRecertifyInvoice and
    CertifyInvoice.
    """

    invoice: InvoiceDTO
    fne_response: FneResponseDTO


class OriginalInvoiceSummaryDTO(BaseModel):
    """Summary of the invoice credited by a refund"""

    id: int
    uid_invoice: str
    fne_reference: Optional[str] = None
    status: str


class RefundResponseDTO(BaseModel):
    """Response DTO for a successful refund"""

    refund_invoice: InvoiceDTO
    original_invoice: OriginalInvoiceSummaryDTO
    fne_response: FneResponseDTO


class FneErrorDTO(BaseModel):
    """Last authority error of a rejected invoice"""

    code: str
    message: str
    details: Optional[Any] = None


class InvoiceDetailDTO(BaseModel):
    """Response DTO for GetInvoice"""

    invoice: InvoiceDTO
    received_items: List[ReceivedItemDTO] = Field(default_factory=list)
    refund_invoice_id: Optional[int] = None
    error: Optional[FneErrorDTO] = None


class RepairResultDTO(BaseModel):
    """Response DTO for RepairReceivedItems"""

    tenant_id: str
    invoices_checked: int
    invoices_repaired: int
    repaired_invoice_ids: List[int] = Field(default_factory=list)
    unrecoverable_invoice_ids: List[int] = Field(default_factory=list)
    execution_time_ms: int
