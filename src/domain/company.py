"""Company Domain Entity

Tenant of the service. Provisioning happens outside of this service;
the certification core only reads companies.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import String
from src.domain.base import BaseModel, ID_TYPE


class Company(BaseModel, table=True):
    """
    Company - Tenant holding an FNE account

    Domain Rules:
    - tenant_id is unique and scopes every invoice, client and point of sale
    - fne_token is sent as-is in the Authorization header of FNE calls
    - Inactive companies cannot authenticate
    """

    __tablename__ = "companies"
    __table_args__ = (
        Index('ix_companies_api_key', 'api_key'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, primary_key=True, autoincrement=True),
        description="Unique company identifier (auto-increment)"
    )

    tenant_id: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True),
        description="Tenant business identifier"
    )

    name: str = Field(
        description="Establishment name sent to the authority"
    )

    fne_token: str = Field(
        description="FNE authority API token"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="API key used by machine clients"
    )

    commercial_message: str = Field(
        default="",
        description="Commercial message printed on certified invoices"
    )

    footer: str = Field(
        default="",
        description="Footer printed on certified invoices"
    )

    is_active: bool = Field(
        default=True,
        description="Whether the company may use the service"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Company creation timestamp"
    )
