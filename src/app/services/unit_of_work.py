"""Unit Of Work Interface

Groups the writes of a use case into one database transaction.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class UnitOfWork(ABC):
    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass

    @abstractmethod
    def savepoint(self) -> AsyncContextManager:
        """
        Open a nested transaction

        Changes made inside the block are rolled back on their own if the
        block raises; the outer transaction is left intact.
        """
        pass
