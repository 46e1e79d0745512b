"""
MongoDB document store for docmigrate.

Wraps a motor ``AsyncIOMotorClient``. Every call is bounded by the configured
operation timeout and driver errors are translated into ``StoreError`` so the
reconciler can record them per operation.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import (
    ConfigurationError as MongoConfigurationError,
    ConnectionFailure,
    InvalidName,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
)

from .base import DocumentStore
from ..config import StoreConnection
from ..exceptions import StoreConnectionError, StoreError, StoreTimeoutError


logger = logging.getLogger(__name__)

# Server error codes that mean "already in the requested state".
NAMESPACE_NOT_FOUND = 26
INDEX_NOT_FOUND = 27


class MongoDocumentStore(DocumentStore):
    """``DocumentStore`` backed by a MongoDB database."""

    def __init__(
        self,
        connection: StoreConnection,
        client: Optional[AsyncIOMotorClient] = None,
    ):
        self.connection = connection
        self.timeout_seconds = connection.operation_timeout_seconds
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> AsyncIOMotorClient:
        if self._client is None:
            logger.info(
                f"Connecting to MongoDB database '{self.connection.database}' "
                f"(timeout={self.connection.server_selection_timeout_ms}ms)"
            )
            self._client = AsyncIOMotorClient(
                self.connection.uri,
                serverSelectionTimeoutMS=self.connection.server_selection_timeout_ms,
                appname="docmigrate",
            )
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase:
        return self.client[self.connection.database]

    async def _call(
        self,
        operation: str,
        collection: str,
        request: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Run ``request()`` under the operation timeout.

        ``request`` builds the driver coroutine lazily so that errors raised
        while resolving the client or the collection are mapped as well.
        """
        try:
            return await asyncio.wait_for(request(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise StoreTimeoutError(
                timeout_duration=self.timeout_seconds,
                collection=collection,
                operation=operation,
            ) from e
        except ServerSelectionTimeoutError as e:
            raise StoreTimeoutError(
                f"No MongoDB server available: {e}",
                collection=collection,
                operation=operation,
            ) from e
        except ConnectionFailure as e:
            raise StoreConnectionError(
                f"Lost connection to MongoDB: {e}",
                collection=collection,
                operation=operation,
                cause=e,
            ) from e
        except (InvalidName, MongoConfigurationError) as e:
            raise StoreError(
                f"Invalid MongoDB target for {operation}: {e}",
                collection=collection,
                operation=operation,
                cause=e,
            ) from e
        except PyMongoError as e:
            raise StoreError(
                f"MongoDB {operation} failed: {e}",
                collection=collection,
                operation=operation,
                cause=e,
            ) from e

    async def unset_field(self, collection: str, field: str) -> None:
        result = await self._call(
            "unset_field",
            collection,
            lambda: self.database[collection].update_many({}, {"$unset": {field: ""}}),
        )
        logger.debug(f"Unset {collection}.{field} on {result.modified_count} documents")

    async def create_index(self, collection: str, field: str, ascending: bool = True) -> None:
        await self._call(
            "create_index",
            collection,
            lambda: self.database[collection].create_index([(field, ASCENDING if ascending else DESCENDING)]),
        )

    async def drop_index(self, collection: str, field: str) -> None:
        try:
            await self._call(
                "drop_index",
                collection,
                lambda: self.database[collection].drop_index(self.index_name(field)),
            )
        except StoreError as e:
            if _error_code(e) in (INDEX_NOT_FOUND, NAMESPACE_NOT_FOUND):
                logger.debug(f"Index {self.index_name(field)} not present on {collection}")
                return
            raise

    async def delete_all_documents(self, collection: str) -> int:
        result = await self._call(
            "delete_all_documents",
            collection,
            lambda: self.database[collection].delete_many({}),
        )
        return result.deleted_count

    async def drop_all_indexes(self, collection: str) -> None:
        try:
            await self._call(
                "drop_all_indexes",
                collection,
                lambda: self.database[collection].drop_indexes(),
            )
        except StoreError as e:
            if _error_code(e) == NAMESPACE_NOT_FOUND:
                logger.debug(f"Collection {collection} does not exist, no indexes to drop")
                return
            raise

    async def test_connection(self) -> Dict[str, Any]:
        """Ping the server and report basic connection info."""
        try:
            await self._call("ping", "admin", lambda: self.client.admin.command("ping"))
            info = await self._call("server_info", "admin", lambda: self.client.server_info())
            return {
                "status": "connected",
                "database": self.connection.database,
                "version": info.get("version"),
            }
        except StoreError as e:
            logger.error(f"MongoDB connection test failed: {e}")
            return {
                "status": "failed",
                "error": str(e),
            }

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            logger.info("Closing MongoDB client")
            self._client.close()
            self._client = None


def _error_code(error: StoreError) -> Optional[int]:
    if isinstance(error.cause, OperationFailure):
        return error.cause.code
    return None
