"""Invoice Log Repository Interface

Defines the contract for the append-only FNE audit trail.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from src.domain.invoice_log import InvoiceLog


class InvoiceLogRepository(ABC):
    """
    Repository interface for InvoiceLog persistence

    Append-only: there is no update or delete operation.
    """

    @abstractmethod
    async def create(self, log: InvoiceLog) -> InvoiceLog:
        """
        Append a log entry

        Args:
            log: InvoiceLog entity to persist

        Returns:
            Created InvoiceLog with generated ID
        """
        pass

    @abstractmethod
    async def get_by_invoice_id(self, tenant_id: str, invoice_id: int) -> List[InvoiceLog]:
        """
        Retrieve the log entries of an invoice, newest first

        Args:
            tenant_id: Tenant identifier
            invoice_id: Invoice ID

        Returns:
            List of InvoiceLog
        """
        pass

    @abstractmethod
    async def get_latest(
        self, tenant_id: str, invoice_id: int, response_code: Optional[str] = None
    ) -> Optional[InvoiceLog]:
        """
        Retrieve the newest log entry of an invoice

        Args:
            tenant_id: Tenant identifier
            invoice_id: Invoice ID
            response_code: Optional filter on the authority response code

        Returns:
            InvoiceLog if found, None otherwise
        """
        pass
