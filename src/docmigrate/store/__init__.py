"""
Document store adapters for docmigrate.
"""

from .base import DocumentStore
from .memory import InMemoryDocumentStore
from .mongo import MongoDocumentStore
from .factory import create_store

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "MongoDocumentStore",
    "create_store",
]
