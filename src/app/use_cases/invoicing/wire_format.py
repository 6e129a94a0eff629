"""FNE Wire Format

Pure mapping between the internal invoice representation and the FNE
authority payload, plus the single place where legacy tax shapes are folded
into the canonical one. Nothing here raises on malformed tax input: the
authority is the final validator.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Union
from src.domain.client import Client
from src.domain.company import Company
from src.domain.invoice import InvoiceType
from src.domain.invoice_item import InvoiceItem
from src.domain.point_of_sale import PointOfSale
from .dtos import CustomTaxDTO, LineItemDTO

# Internal VAT codes and their legacy bare equivalents
VAT_CODES = frozenset({"TVA18", "TVAB9", "TVAC0", "TVA", "TVAB", "TVAC"})

_FNE_TAX_PREFIXES = (
    ("TVA18", "TVA"),
    ("TVAB9", "TVAB"),
    ("TVAC0", "TVAC"),
)
_LEGACY_FNE_TAX_CODES = frozenset({"TVA", "TVAB", "TVAC", "TVAD", "TVAE"})

DEFAULT_MEASUREMENT_UNIT = "pcs"


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Coerce a number or numeric string to Decimal, falling back to default"""
    if value is None or isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def to_wire_number(value: Decimal) -> Union[int, float]:
    """Render a Decimal as a JSON number, keeping integers integral"""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def normalize_taxes(taxes: Any) -> List[str]:
    """
    Fold a tax specification into a list of codes

    Accepts a single code, a comma-joined string (stored format) or a list
    (legacy format). Anything else yields an empty list.
    """
    if taxes is None:
        return []
    if isinstance(taxes, str):
        candidates: Iterable[Any] = taxes.split(",")
    elif isinstance(taxes, (list, tuple)):
        candidates = taxes
    else:
        return []
    return [str(code).strip() for code in candidates if code is not None and str(code).strip()]


def normalize_custom_taxes(
    custom_taxes: Any = None,
    legacy_name: Optional[str] = None,
    legacy_amount: Any = None,
) -> List[CustomTaxDTO]:
    """
    Fold custom taxes into a list of name/amount pairs

    The modern list of {name, amount} wins; otherwise the legacy flat
    name/amount pair is used when a name is present.
    """
    folded: List[CustomTaxDTO] = []

    if isinstance(custom_taxes, (list, tuple)) and custom_taxes:
        for entry in custom_taxes:
            if isinstance(entry, CustomTaxDTO):
                folded.append(entry)
            elif isinstance(entry, dict):
                folded.append(
                    CustomTaxDTO(
                        name=str(entry.get("name") or ""),
                        amount=to_decimal(entry.get("amount")),
                    )
                )
        return folded

    if legacy_name:
        folded.append(CustomTaxDTO(name=legacy_name, amount=to_decimal(legacy_amount)))

    return folded


def to_fne_tax_codes(taxes: Any) -> List[str]:
    """
    Translate internal tax codes into the FNE vocabulary

    TVA18 -> TVA, TVAB9 -> TVAB, TVAC0 -> TVAC; bare legacy codes pass
    through; unknown codes are dropped.
    """
    translated = []
    for code in normalize_taxes(taxes):
        for prefix, fne_code in _FNE_TAX_PREFIXES:
            if code.startswith(prefix):
                translated.append(fne_code)
                break
        else:
            if code in _LEGACY_FNE_TAX_CODES:
                translated.append(code)
    return translated


def to_fne_custom_taxes(custom_taxes: List[CustomTaxDTO]) -> Optional[List[Dict[str, Any]]]:
    """Keep named, positive custom taxes; None when nothing qualifies"""
    kept = [
        {"name": tax.name, "amount": to_wire_number(tax.amount)}
        for tax in custom_taxes
        if tax.name and tax.amount > 0
    ]
    return kept or None


def has_vat_code(taxes: Any) -> bool:
    return any(code in VAT_CODES for code in normalize_taxes(taxes))


def to_fne_item(line: LineItemDTO, invoice_type: str) -> Dict[str, Any]:
    """
    Map one line item to its wire shape

    Purchase invoices carry no tax data at all.
    """
    item: Dict[str, Any] = {
        "reference": line.reference,
        "description": line.description,
        "quantity": line.quantity,
        "amount": to_wire_number(line.amount),
        "discount": to_wire_number(line.discount),
        "measurementUnit": line.measurement_unit or DEFAULT_MEASUREMENT_UNIT,
    }

    if invoice_type == InvoiceType.SALE.value:
        item["taxes"] = to_fne_tax_codes(line.taxes)
        custom_taxes = to_fne_custom_taxes(line.custom_taxes)
        if custom_taxes is not None:
            item["customTaxes"] = custom_taxes

    return item


def build_fne_invoice(
    invoice_type: str,
    payment_method: str,
    client_seller_name: str,
    client: Client,
    point_of_sale: PointOfSale,
    company: Company,
    lines: List[LineItemDTO],
) -> Dict[str, Any]:
    """Build the certification payload sent to POST /invoices/sign"""
    return {
        "invoiceType": invoice_type,
        "paymentMethod": payment_method or "cash",
        "template": client.template,
        "clientNcc": client.ncc or "",
        "clientCompanyName": client.company_name or "",
        "clientPhone": client.phone or "",
        "clientEmail": client.email or "",
        "clientSellerName": client_seller_name or "",
        "pointOfSale": point_of_sale.name,
        "establishment": company.name,
        "commercialMessage": company.commercial_message or "",
        "footer": company.footer or "",
        "items": [to_fne_item(line, invoice_type) for line in lines],
    }


def line_from_invoice_item(item: InvoiceItem) -> LineItemDTO:
    """Rebuild the canonical line of a stored item"""
    return LineItemDTO(
        reference=item.reference,
        description=item.description,
        quantity=item.quantity,
        amount=item.amount,
        discount=item.discount,
        measurement_unit=item.measurement_unit or DEFAULT_MEASUREMENT_UNIT,
        taxes=normalize_taxes(item.taxes),
        custom_taxes=normalize_custom_taxes(
            legacy_name=item.custom_tax_name,
            legacy_amount=item.custom_tax_amount,
        ),
    )


def invoice_items_from_lines(
    tenant_id: str, uid_invoice: str, lines: List[LineItemDTO]
) -> List[InvoiceItem]:
    """
    Build the stored items of an invoice

    Taxes are stored comma-joined and only the first custom tax is kept.
    """
    items = []
    for line in lines:
        first_custom_tax = line.custom_taxes[0] if line.custom_taxes else None
        items.append(
            InvoiceItem(
                tenant_id=tenant_id,
                uid_invoice=uid_invoice,
                reference=line.reference,
                description=line.description,
                quantity=line.quantity,
                amount=line.amount,
                discount=line.discount,
                measurement_unit=line.measurement_unit or DEFAULT_MEASUREMENT_UNIT,
                taxes=",".join(line.taxes),
                custom_tax_name=first_custom_tax.name if first_custom_tax else "",
                custom_tax_amount=first_custom_tax.amount if first_custom_tax else Decimal("0"),
            )
        )
    return items
