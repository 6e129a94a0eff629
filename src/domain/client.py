"""Client Domain Entity

Customer of a tenant, referenced by invoices.
"""

from typing import Optional
from sqlmodel import Field, Column, Index
from src.domain.base import BaseModel, ID_TYPE


class Client(BaseModel, table=True):
    """
    Client - Invoice recipient owned by a tenant

    template is the FNE invoice template for this client (B2B, B2C, B2G, B2F).
    """

    __tablename__ = "clients"
    __table_args__ = (
        Index('ix_clients_tenant_id', 'tenant_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, primary_key=True, autoincrement=True),
        description="Unique client identifier (auto-increment)"
    )

    tenant_id: str = Field(description="Tenant business identifier")
    template: str = Field(default="B2C", description="FNE invoice template")
    ncc: str = Field(default="", description="Taxpayer account number")
    company_name: str = Field(default="", description="Client company name")
    phone: str = Field(default="", description="Client phone")
    email: str = Field(default="", description="Client email")
