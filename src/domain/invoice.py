"""Invoice Domain Entity

Tracks invoices submitted to the FNE authority and their certification state.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String
from src.domain.base import BaseModel, ID_TYPE


class InvoiceStatus(str, Enum):
    """Invoice status types"""
    PENDING = "pending"
    CERTIFIED = "certified"
    REJECTED = "rejected"
    REFUNDED = "refunded"


class InvoiceType(str, Enum):
    """Invoice types accepted by the FNE authority"""
    SALE = "sale"
    PURCHASE = "purchase"


class Invoice(BaseModel, table=True):
    """
    Invoice - Commercial invoice certified against the FNE authority

    Domain Rules:
    - uid_invoice is unique and owns the invoice items
    - Status transitions: pending -> certified | rejected, rejected -> certified,
      certified -> refunded (exactly once)
    - A refund invoice (is_refund=True) points to its original through
      original_invoice_id, is born refunded and can never be refunded itself
    - fne_invoice_id is assigned by the authority on certification and is
      required to request a refund
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_tenant_id', 'tenant_id'),
        Index('ix_invoices_status', 'status'),
        Index('ix_invoices_original_invoice_id', 'original_invoice_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, primary_key=True, autoincrement=True),
        description="Unique invoice identifier (auto-increment)"
    )

    tenant_id: str = Field(
        description="Tenant (company) business identifier"
    )

    client_id: int = Field(
        description="Client the invoice is issued to"
    )

    point_of_sale_id: int = Field(
        description="Point of sale issuing the invoice"
    )

    uid_invoice: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True),
        description="Business-facing unique identifier (UUID)"
    )

    type_invoice: InvoiceType = Field(
        description="Invoice type (sale, purchase)"
    )

    payment_method: str = Field(
        default="cash",
        description="Payment method (cash, card, mobile-money, ...)"
    )

    client_seller_name: str = Field(
        default="",
        description="Seller display name printed on the invoice"
    )

    discount_rate: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(5, 2), nullable=False, default=0),
        description="Invoice-level discount percentage (0-100)"
    )

    is_refund: bool = Field(
        default=False,
        description="True for credit invoices created by a refund"
    )

    original_invoice_id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, ForeignKey("invoices.id"), nullable=True),
        description="Invoice credited by this refund invoice"
    )

    fne_reference: Optional[str] = Field(
        default=None,
        description="Authority-issued business reference"
    )

    fne_invoice_id: Optional[str] = Field(
        default=None,
        description="Authority-issued opaque identifier (UUID), required for refunds"
    )

    fne_token: Optional[str] = Field(
        default=None,
        description="Verification URL"
    )

    fne_token_value: Optional[str] = Field(
        default=None,
        description="Raw verification code"
    )

    status: InvoiceStatus = Field(
        default=InvoiceStatus.PENDING,
        description="Invoice status (pending, certified, rejected, refunded)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Invoice creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "tenant_id": "0b6f6c3e-8f0b-4a8e-9d8e-7f5e2a1b3c4d",
                "client_id": 3,
                "point_of_sale_id": 2,
                "uid_invoice": "5d1c2a4e-3b7f-4e9a-8c6d-1f2e3a4b5c6d",
                "type_invoice": "sale",
                "payment_method": "cash",
                "client_seller_name": "Awa Kone",
                "discount_rate": "0.00",
                "is_refund": False,
                "original_invoice_id": None,
                "fne_reference": "9606123E25000000019",
                "fne_invoice_id": "e2b2d8da-a532-4c08-9182-f5b428ca468d",
                "fne_token": "http://54.247.95.108/fr/verification/019465c1-3f61-766c-9652-706e32dfb436",
                "fne_token_value": "019465c1-3f61-766c-9652-706e32dfb436",
                "status": "certified",
                "created_at": "2025-01-15T09:30:00Z",
                "updated_at": "2025-01-15T09:30:02Z"
            }
        }
