"""
Factory for creating document stores from configuration.
"""

import logging

from .base import DocumentStore
from .memory import InMemoryDocumentStore
from .mongo import MongoDocumentStore
from ..config import StoreConnection
from ..exceptions import ConfigurationError


logger = logging.getLogger(__name__)


def create_store(connection: StoreConnection) -> DocumentStore:
    """Create the store adapter selected by ``connection.backend``."""
    if connection.backend == "mongodb":
        return MongoDocumentStore(connection)
    if connection.backend == "memory":
        logger.warning("Using the in-memory store; changes are discarded on exit")
        return InMemoryDocumentStore()
    raise ConfigurationError(f"Unsupported store backend: {connection.backend}")
