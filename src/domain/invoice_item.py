"""Invoice Item Domain Entity

Tracks individual line items within an invoice.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String
from src.domain.base import BaseModel, ID_TYPE


class InvoiceItem(BaseModel, table=True):
    """
    Invoice Item - Individual line item within an invoice

    Domain Rules:
    - Each item belongs to exactly one invoice, through uid_invoice
    - reference is unique within an invoice (used to match authority items)
    - quantity is negative on refund invoices (returned units)
    - taxes holds a comma-joined list of internal tax codes (TVA18, TVAB9, ...)
    - fne_item_id is only known after a successful certification
    """

    __tablename__ = "invoice_items"
    __table_args__ = (
        Index('ix_invoice_items_uid_invoice', 'uid_invoice'),
        Index('ix_invoice_items_tenant_id', 'tenant_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, primary_key=True, autoincrement=True),
        description="Unique invoice item identifier (auto-increment)"
    )

    tenant_id: str = Field(
        description="Tenant (company) business identifier"
    )

    uid_invoice: str = Field(
        sa_column=Column(
            String(64),
            ForeignKey("invoices.uid_invoice", ondelete="CASCADE"),
            nullable=False,
        ),
        description="Business identifier of the owning invoice"
    )

    reference: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Item business reference (e.g., SKU)"
    )

    description: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Item description"
    )

    quantity: int = Field(
        description="Quantity (negative on refund invoices)"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Unit amount"
    )

    discount: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(5, 2), nullable=False, default=0),
        description="Discount percentage (0-100)"
    )

    measurement_unit: str = Field(
        default="pcs",
        description="Measurement unit"
    )

    taxes: str = Field(
        default="",
        description="Comma-joined internal tax codes"
    )

    custom_tax_name: str = Field(
        default="",
        description="Custom tax name"
    )

    custom_tax_amount: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 2), nullable=False, default=0),
        description="Custom tax amount"
    )

    fne_item_id: Optional[str] = Field(
        default=None,
        description="Authority-issued item identifier (UUID)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Item creation timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "tenant_id": "0b6f6c3e-8f0b-4a8e-9d8e-7f5e2a1b3c4d",
                "uid_invoice": "5d1c2a4e-3b7f-4e9a-8c6d-1f2e3a4b5c6d",
                "reference": "REF-001",
                "description": "Ciment 50kg",
                "quantity": 2,
                "amount": "1000.00",
                "discount": "0.00",
                "measurement_unit": "pcs",
                "taxes": "TVA18",
                "custom_tax_name": "",
                "custom_tax_amount": "0.00",
                "fne_item_id": "11111111-1111-1111-1111-111111111111",
                "created_at": "2025-01-15T09:30:00Z"
            }
        }
