"""Invoice Log Domain Entity

Immutable append-only audit trail of every call made to the FNE authority.
"""

from datetime import datetime
from typing import Any, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import JSON, Text
from src.domain.base import BaseModel, ID_TYPE


class InvoiceLog(BaseModel, table=True):
    """
    Invoice Log - One row per certify or refund call, success or failure

    Domain Rules:
    - Logs are immutable (never updated, never deleted)
    - invoice_id is not a foreign key: the trail outlives the invoice
    - user_id is 0 for API-key originated calls
    - response_payload holds the raw authority body ({} when none was parsed)
    """

    __tablename__ = "invoice_logs"
    __table_args__ = (
        Index('ix_invoice_logs_tenant_id', 'tenant_id'),
        Index('ix_invoice_logs_invoice_id', 'invoice_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, primary_key=True, autoincrement=True),
        description="Unique log identifier (auto-increment)"
    )

    tenant_id: str = Field(
        description="Tenant (company) business identifier"
    )

    point_of_sale_id: int = Field(
        description="Point of sale of the invoice"
    )

    invoice_id: int = Field(
        description="Invoice the call was made for"
    )

    request_payload: Any = Field(
        sa_column=Column(JSON, nullable=False),
        description="Payload sent to the authority"
    )

    response_payload: Any = Field(
        sa_column=Column(JSON, nullable=False),
        description="Raw payload received from the authority"
    )

    response_code: str = Field(
        description="HTTP status returned by the authority ('500' on transport errors)"
    )

    response_message: str = Field(
        sa_column=Column(Text, nullable=False),
        description="Authority message or transport error"
    )

    user_id: int = Field(
        default=0,
        description="Acting user (0 for machine calls)"
    )

    token: Optional[str] = Field(
        default=None,
        description="Verification URL parsed from the response"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Log timestamp"
    )
