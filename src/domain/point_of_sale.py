"""Point Of Sale Domain Entity"""

from typing import Optional
from sqlmodel import Field, Column, Index
from src.domain.base import BaseModel, ID_TYPE


class PointOfSale(BaseModel, table=True):
    """Point Of Sale - Tenant outlet issuing invoices"""

    __tablename__ = "points_of_sale"
    __table_args__ = (
        Index('ix_points_of_sale_tenant_id', 'tenant_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, primary_key=True, autoincrement=True),
        description="Unique point of sale identifier (auto-increment)"
    )

    tenant_id: str = Field(description="Tenant business identifier")
    name: str = Field(description="Point of sale name sent to the authority")
