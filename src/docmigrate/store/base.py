"""
Abstract document store capability used by the reconciler.
"""

from abc import ABC, abstractmethod


class DocumentStore(ABC):
    """Store operations the reconciler depends on.

    Every method is idempotent and raises ``StoreError`` (or a subclass) on
    failure. Implementations must be safe to call from concurrent tasks.
    """

    @abstractmethod
    async def unset_field(self, collection: str, field: str) -> None:
        """Remove ``field`` from every document in ``collection``."""

    @abstractmethod
    async def create_index(self, collection: str, field: str, ascending: bool = True) -> None:
        """Create a single-field index; existing identical indexes are kept."""

    @abstractmethod
    async def drop_index(self, collection: str, field: str) -> None:
        """Drop the single-field ascending index on ``field``; missing is fine."""

    @abstractmethod
    async def delete_all_documents(self, collection: str) -> int:
        """Delete every document in ``collection`` and return how many went."""

    @abstractmethod
    async def drop_all_indexes(self, collection: str) -> None:
        """Drop every droppable index on ``collection``."""

    async def close(self) -> None:
        """Release any resources held by the store."""

    @staticmethod
    def index_name(field: str, ascending: bool = True) -> str:
        """Name the store derives for a single-field index, e.g. ``level_1``."""
        return f"{field}_{1 if ascending else -1}"

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
