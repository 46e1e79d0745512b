"""
Exception classes for docmigrate.
"""

from typing import Any, Dict, Optional


class DocMigrateError(Exception):
    """Base exception for all docmigrate errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            result += f" [{details_str}]"
        if self.cause:
            result += f" (caused by: {self.cause})"
        return result


class ConfigurationError(DocMigrateError):
    """Raised when there's an error in configuration or snapshot input."""

    pass


class SnapshotError(ConfigurationError):
    """Raised when a schema snapshot document cannot be read or is invalid."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        details = {"source": source} if source else None
        super().__init__(message, details, cause)
        self.source = source


class StoreError(DocMigrateError):
    """Raised when a document store operation fails."""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        details = {}
        if collection:
            details["collection"] = collection
        if operation:
            details["operation"] = operation

        super().__init__(message, details, cause)
        self.collection = collection
        self.operation = operation


class StoreConnectionError(StoreError):
    """Raised when the document store cannot be reached."""

    pass


class StoreTimeoutError(StoreError):
    """Raised when a store operation exceeds its time budget."""

    def __init__(
        self,
        message: str = "Store operation timed out",
        timeout_duration: Optional[float] = None,
        collection: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        if timeout_duration:
            message += f" (timeout: {timeout_duration}s)"

        super().__init__(message, collection=collection, operation=operation)
        self.timeout_duration = timeout_duration


class DiffInconsistencyError(DocMigrateError):
    """Raised when a diff violates its own partitioning invariants."""

    def __init__(self, owner: str, names: Any) -> None:
        super().__init__(
            f"Inconsistent diff for '{owner}': "
            f"{sorted(names)} classified as both mutual and changed",
        )
        self.owner = owner
        self.names = set(names)


class MigrationError(DocMigrateError):
    """Raised when a migration run cannot proceed."""

    pass
