"""Unit of Work Interface

Session-scoped atomic unit: every write made through the repositories sharing
the unit's session becomes visible on commit, or none does.
"""

from abc import ABC, abstractmethod


class UnitOfWork(ABC):

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
