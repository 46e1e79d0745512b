"""
docmigrate: schema reconciliation for document stores.

docmigrate compares an old and a new schema snapshot and brings a live
document store's collections and indexes in line with the new schema,
keeping existing data wherever it is safe to do so.
"""

__version__ = "0.1.0"
__author__ = "docmigrate Contributors"
__email__ = "contributors@docmigrate.dev"

from .config import DocMigrateConfig
from .exceptions import DocMigrateError, ConfigurationError, StoreError, DiffInconsistencyError

__all__ = [
    "__version__",
    "DocMigrateConfig",
    "DocMigrateError",
    "ConfigurationError",
    "StoreError",
    "DiffInconsistencyError",
]
