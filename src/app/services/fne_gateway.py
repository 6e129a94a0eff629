"""FNE Gateway Interface

Defines the contract for talking to the FNE certification authority and the
normalized shapes every caller receives.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FneCertificate:
    """
    Canonical view of a successful authority response

    The authority returns its fields either at the top level or nested under
    "invoice"; this is the only place that knows about both shapes.
    """

    reference: Optional[str] = None
    fne_invoice_id: Optional[str] = None
    token: Optional[str] = None
    items: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Any) -> "FneCertificate":
        if not isinstance(data, dict):
            return cls()

        nested = data.get("invoice")
        if not isinstance(nested, dict):
            nested = {}

        def pick(key: str) -> Any:
            value = data.get(key)
            if value:
                return value
            return nested.get(key) or None

        items = pick("items")
        if not isinstance(items, list):
            items = []

        fne_invoice_id = pick("id")
        return cls(
            reference=pick("reference"),
            fne_invoice_id=str(fne_invoice_id) if fne_invoice_id is not None else None,
            token=pick("token"),
            items=[item for item in items if isinstance(item, dict)],
        )


@dataclass(frozen=True)
class FneResult:
    """
    Normalized outcome of an authority call

    code is the stringified HTTP status, or "500" when the call could not
    complete. data is whatever body could be parsed (possibly None).
    """

    success: bool
    code: str
    message: str
    data: Any = None

    @property
    def certificate(self) -> FneCertificate:
        return FneCertificate.from_payload(self.data)


class FneGateway(ABC):
    """
    Abstract client for the FNE authority

    Implementations never raise for authority rejections or transport
    failures; every outcome is returned as an FneResult.
    """

    @abstractmethod
    async def certify(self, invoice: Dict[str, Any], auth_token: str) -> FneResult:
        """
        Submit an invoice for certification

        Args:
            invoice: Wire invoice payload
            auth_token: Tenant's FNE token

        Returns:
            FneResult, successful only on HTTP 201
        """
        pass

    @abstractmethod
    async def refund(
        self, fne_invoice_id: str, items: List[Dict[str, Any]], auth_token: str
    ) -> FneResult:
        """
        Request a credit note against a certified invoice

        Args:
            fne_invoice_id: Authority identifier of the original invoice
            items: [{"id": <fne item id>, "quantity": <int>}]
            auth_token: Tenant's FNE token

        Returns:
            FneResult, successful only on HTTP 201
        """
        pass
