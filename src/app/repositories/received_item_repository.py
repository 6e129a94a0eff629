"""Received Item Repository Interface

Defines the contract for persisting the authority-confirmed item snapshot.
"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.received_item import ReceivedItem


class ReceivedItemRepository(ABC):
    """Repository interface for ReceivedItem snapshots"""

    @abstractmethod
    async def get_by_invoice_id(self, tenant_id: str, invoice_id: int) -> List[ReceivedItem]:
        """
        Retrieve the snapshot of an invoice

        Args:
            tenant_id: Tenant identifier
            invoice_id: Invoice ID

        Returns:
            List of ReceivedItem
        """
        pass

    @abstractmethod
    async def delete_by_invoice_id(self, tenant_id: str, invoice_id: int) -> int:
        """
        Delete the snapshot of an invoice

        Args:
            tenant_id: Tenant identifier
            invoice_id: Invoice ID

        Returns:
            Number of deleted rows
        """
        pass

    @abstractmethod
    async def create_many(self, items: List[ReceivedItem]) -> List[ReceivedItem]:
        """
        Bulk insert snapshot rows

        Args:
            items: ReceivedItem entities to persist

        Returns:
            Created rows
        """
        pass
