"""FNE Gateway Implementation

Talks to the FNE authority over HTTP with httpx.
"""

import logging
from typing import Any, Dict, List, Optional
import httpx
from src.app.services.fne_gateway import FneGateway, FneResult

logger = logging.getLogger(__name__)

CERTIFY_SUCCESS_MESSAGE = "Invoice certified successfully"
CERTIFY_FALLBACK_MESSAGE = "FNE certification request failed"
REFUND_SUCCESS_MESSAGE = "Credit note created successfully"
REFUND_FALLBACK_MESSAGE = "FNE refund request failed"


class HttpxFneGateway(FneGateway):
    """
    FNE gateway backed by httpx.AsyncClient

    HTTP 201 is the only success signal. Any other status, and any transport
    error, is folded into an unsuccessful FneResult.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the gateway

        Args:
            base_url: Authority API root (e.g., http://host/ws/external)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used to stub the authority
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def certify(self, invoice: Dict[str, Any], auth_token: str) -> FneResult:
        return await self._post(
            f"{self.base_url}/invoices/sign",
            invoice,
            auth_token,
            success_message=CERTIFY_SUCCESS_MESSAGE,
            fallback_message=CERTIFY_FALLBACK_MESSAGE,
        )

    async def refund(
        self, fne_invoice_id: str, items: List[Dict[str, Any]], auth_token: str
    ) -> FneResult:
        return await self._post(
            f"{self.base_url}/invoices/{fne_invoice_id}/refund",
            {"items": items},
            auth_token,
            success_message=REFUND_SUCCESS_MESSAGE,
            fallback_message=REFUND_FALLBACK_MESSAGE,
        )

    async def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        auth_token: str,
        success_message: str,
        fallback_message: str,
    ) -> FneResult:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": auth_token,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            logger.error(f"FNE call to {url} failed: {e!r}")
            return FneResult(
                success=False,
                code="500",
                message=f"FNE connection error: {str(e) or type(e).__name__}",
                data=None,
            )

        data = self._parse_body(response)

        if response.status_code == 201:
            logger.info(f"FNE call to {url} succeeded")
            return FneResult(success=True, code="201", message=success_message, data=data)

        message = fallback_message
        if isinstance(data, dict):
            message = data.get("message") or data.get("error") or fallback_message

        logger.warning(f"FNE call to {url} rejected with status {response.status_code}: {message}")
        return FneResult(
            success=False,
            code=str(response.status_code),
            message=str(message),
            data=data,
        )

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None
