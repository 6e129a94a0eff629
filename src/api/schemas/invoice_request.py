"""Request schemas for Invoice API

Pydantic models for validating incoming HTTP requests. Field aliases follow
the public API names; taxes are accepted in every historical shape and folded
into the canonical line item here.
"""

from decimal import Decimal
from typing import Any, List, Optional
from pydantic import BaseModel, Field
from src.app.use_cases.invoicing.dtos import (
    InvoiceCommandDTO,
    LineItemDTO,
    RefundCommandDTO,
    RefundItemDTO,
)
from src.app.use_cases.invoicing.wire_format import normalize_custom_taxes, normalize_taxes


class LineItemRequestSchema(BaseModel):
    """
    Line item of an invoice request

    taxes: a code, a comma-joined string or a list of codes.
    customTaxes: list of {name, amount}; the legacy customTaxesname /
    customTaxesamount pair is still accepted.
    """

    reference: str = Field(..., min_length=1, description="Item reference")
    description: str = Field(..., min_length=1, description="Item description")
    quantity: int = Field(..., ge=1, description="Quantity (minimum 1)")
    amount: Decimal = Field(..., ge=0, description="Unit amount")
    discount: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Discount percentage")
    measurement_unit: Optional[str] = Field(default=None, alias="measurementUnit")
    taxes: Any = Field(default=None, description="Tax codes (TVA18, TVAB9, TVAC0)")
    custom_taxes: Any = Field(default=None, alias="customTaxes")
    custom_taxes_name: Optional[str] = Field(default=None, alias="customTaxesname")
    custom_taxes_amount: Any = Field(default=None, alias="customTaxesamount")

    class Config:
        populate_by_name = True

    def to_line(self) -> LineItemDTO:
        return LineItemDTO(
            reference=self.reference,
            description=self.description,
            quantity=self.quantity,
            amount=self.amount,
            discount=self.discount,
            measurement_unit=self.measurement_unit or "pcs",
            taxes=normalize_taxes(self.taxes),
            custom_taxes=normalize_custom_taxes(
                self.custom_taxes,
                legacy_name=self.custom_taxes_name,
                legacy_amount=self.custom_taxes_amount,
            ),
        )


class InvoiceRequestSchema(BaseModel):
    """
    Request schema for creating or updating an invoice

    Used for POST /invoices and PUT /invoices/{id}.
    """

    client_id: int = Field(..., ge=1, alias="clientid", description="Client ID")
    point_of_sale_id: int = Field(..., ge=1, alias="pointdeventeid", description="Point of sale ID")
    type_invoice: str = Field(default="sale", description="Invoice type (sale, purchase)")
    payment_method: str = Field(default="cash", alias="paymentMethod")
    client_seller_name: str = Field(default="", alias="clientSellerName")
    discount_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, alias="remise_taux")
    items: List[LineItemRequestSchema] = Field(..., min_length=1, description="At least one item")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "clientid": 3,
                "pointdeventeid": 2,
                "type_invoice": "sale",
                "paymentMethod": "cash",
                "clientSellerName": "Awa Kone",
                "remise_taux": 0,
                "items": [
                    {
                        "reference": "REF-001",
                        "description": "Ciment 50kg",
                        "quantity": 2,
                        "amount": 1000,
                        "discount": 0,
                        "measurementUnit": "pcs",
                        "taxes": ["TVA18"],
                        "customTaxes": [{"name": "GRA", "amount": 5}]
                    }
                ]
            }
        }

    def to_command(self) -> InvoiceCommandDTO:
        return InvoiceCommandDTO(
            client_id=self.client_id,
            point_of_sale_id=self.point_of_sale_id,
            type_invoice=self.type_invoice,
            payment_method=self.payment_method or "cash",
            client_seller_name=self.client_seller_name or "",
            discount_rate=self.discount_rate,
            items=[item.to_line() for item in self.items],
        )


class RefundItemRequestSchema(BaseModel):
    id: str = Field(..., min_length=1, description="FNE item identifier")
    quantity: int = Field(..., ge=1, description="Quantity to refund")


class RefundRequestSchema(BaseModel):
    """
    Request schema for refunding an invoice

    Used for POST /invoices/{id}/refund endpoint.
    """

    items: List[RefundItemRequestSchema] = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "items": [
                    {"id": "8c1f0a52-3f1e-4f55-9a0c-2f3f6f7c9b11", "quantity": 1}
                ]
            }
        }

    def to_command(self) -> RefundCommandDTO:
        return RefundCommandDTO(
            items=[RefundItemDTO(id=item.id, quantity=item.quantity) for item in self.items]
        )
