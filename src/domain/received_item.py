"""Received Item Domain Entity

Snapshot of the items the FNE authority confirmed on certification.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, JSON, Numeric, String
from src.domain.base import BaseModel, ID_TYPE


class ReceivedItem(BaseModel, table=True):
    """
    Received Item - Authority-confirmed line item of a certified invoice

    Domain Rules:
    - The set for an invoice is replaced wholesale on every successful
      certification, never appended to
    - fne_item_id is always a well-formed UUID
    - Only source of refundable identifiers and quantities
    - taxes and custom_taxes are stored exactly as returned by the authority
    - Always read and replaced together with the owning tenant_id
    """

    __tablename__ = "received_items"
    __table_args__ = (
        Index('ix_received_items_invoice_id', 'invoice_id'),
        Index('ix_received_items_tenant_id', 'tenant_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, primary_key=True, autoincrement=True),
        description="Unique received item identifier (auto-increment)"
    )

    tenant_id: str = Field(
        description="Tenant (company) business identifier"
    )

    invoice_id: int = Field(
        sa_column=Column(ID_TYPE, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice"
    )

    fne_item_id: str = Field(
        sa_column=Column(String(36), nullable=False),
        description="Authority item identifier (UUID)"
    )

    quantity: int = Field(
        default=0,
        description="Certified quantity"
    )

    reference: str = Field(
        default="",
        description="Item business reference"
    )

    description: str = Field(
        default="",
        description="Item description"
    )

    amount: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 2), nullable=False, default=0),
        description="Unit amount"
    )

    discount: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(5, 2), nullable=False, default=0),
        description="Discount percentage"
    )

    measurement_unit: str = Field(
        default="pcs",
        description="Measurement unit"
    )

    taxes: Optional[Any] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
        description="Raw tax payload returned by the authority"
    )

    custom_taxes: Optional[Any] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
        description="Raw custom tax payload returned by the authority"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Snapshot timestamp"
    )
