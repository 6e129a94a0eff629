"""Invoice Item Repository Interface

Defines the contract for invoice item persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.invoice_item import InvoiceItem


class InvoiceItemRepository(ABC):
    """
    Repository interface for InvoiceItem persistence

    Items are addressed through the business identifier of their invoice.
    """

    @abstractmethod
    async def get_by_invoice_uid(self, tenant_id: str, uid_invoice: str) -> List[InvoiceItem]:
        """
        Retrieve all items of an invoice, in insertion order

        Args:
            tenant_id: Tenant identifier
            uid_invoice: Business identifier of the invoice

        Returns:
            List of InvoiceItem
        """
        pass

    @abstractmethod
    async def create_many(self, items: List[InvoiceItem]) -> List[InvoiceItem]:
        """
        Create several invoice items

        Args:
            items: InvoiceItem entities to persist

        Returns:
            Created items with generated IDs
        """
        pass

    @abstractmethod
    async def delete_by_invoice_uid(self, tenant_id: str, uid_invoice: str) -> int:
        """
        Delete all items of an invoice

        Args:
            tenant_id: Tenant identifier
            uid_invoice: Business identifier of the invoice

        Returns:
            Number of deleted items
        """
        pass

    @abstractmethod
    async def update(self, item: InvoiceItem) -> InvoiceItem:
        """
        Update an existing invoice item

        Args:
            item: InvoiceItem with updated values

        Returns:
            Updated InvoiceItem
        """
        pass
