"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from src.domain.invoice import Invoice, InvoiceStatus


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Every lookup is scoped by tenant_id; a numeric id alone is never trusted.
    """

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(
        self, tenant_id: str, invoice_id: int, for_update: bool = False
    ) -> Optional[Invoice]:
        """
        Retrieve a tenant's invoice by ID

        Args:
            tenant_id: Tenant identifier
            invoice_id: Invoice ID
            for_update: If True, locks the row with SELECT FOR UPDATE and
                reloads it from the database

        Returns:
            Invoice if found for this tenant, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_status(
        self, tenant_id: str, status: InvoiceStatus, limit: int = 100, offset: int = 0
    ) -> List[Invoice]:
        """
        Retrieve a tenant's invoices in a given status

        Args:
            tenant_id: Tenant identifier
            status: Status filter
            limit: Maximum number of invoices to return
            offset: Offset for pagination

        Returns:
            List of invoices ordered by ID
        """
        pass

    @abstractmethod
    async def get_successful_refund(
        self, tenant_id: str, original_invoice_id: int
    ) -> Optional[Invoice]:
        """
        Retrieve the successful refund invoice pointing to an invoice

        Only refund invoices with status=refunded count.

        Args:
            tenant_id: Tenant identifier
            original_invoice_id: ID of the credited invoice

        Returns:
            Refund Invoice if one exists, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        """
        Update an existing invoice

        Args:
            invoice: Invoice entity with updated values

        Returns:
            Updated Invoice
        """
        pass
