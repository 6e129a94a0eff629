"""Tenant Collaborator Repository Interfaces

Read-only access to companies, clients and points of sale. These entities
are provisioned outside of the certification core.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from src.domain.company import Company
from src.domain.client import Client
from src.domain.point_of_sale import PointOfSale


class CompanyRepository(ABC):
    """Repository interface for Company lookups"""

    @abstractmethod
    async def get_by_tenant_id(self, tenant_id: str) -> Optional[Company]:
        """Retrieve a company by its tenant identifier"""
        pass

    @abstractmethod
    async def get_by_api_key(self, api_key: str) -> Optional[Company]:
        """
        Retrieve an active company by API key

        Args:
            api_key: Key sent by a machine client

        Returns:
            Company if the key matches an active company, None otherwise
        """
        pass

    @abstractmethod
    async def get_active(self) -> List[Company]:
        """Retrieve all active companies"""
        pass


class ClientRepository(ABC):
    """Repository interface for Client lookups"""

    @abstractmethod
    async def get_by_id(self, tenant_id: str, client_id: int) -> Optional[Client]:
        """Retrieve a tenant's client by ID"""
        pass


class PointOfSaleRepository(ABC):
    """Repository interface for PointOfSale lookups"""

    @abstractmethod
    async def get_by_id(self, tenant_id: str, point_of_sale_id: int) -> Optional[PointOfSale]:
        """Retrieve a tenant's point of sale by ID"""
        pass
