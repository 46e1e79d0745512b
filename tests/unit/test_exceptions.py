"""
Tests for docmigrate.exceptions module.
"""

from docmigrate.exceptions import (
    ConfigurationError,
    DiffInconsistencyError,
    DocMigrateError,
    SnapshotError,
    StoreConnectionError,
    StoreError,
    StoreTimeoutError,
)


class TestDocMigrateError:
    """Test base exception formatting."""

    def test_plain_message(self):
        assert str(DocMigrateError("something broke")) == "something broke"

    def test_details_and_cause(self):
        error = DocMigrateError("failed", {"collection": "Player"}, cause=ValueError("bad"))

        assert str(error) == "failed [collection=Player] (caused by: bad)"


class TestStoreErrors:
    """Test store exception hierarchy."""

    def test_store_error_details(self):
        error = StoreError("write failed", collection="Player", operation="unset_field")

        assert error.collection == "Player"
        assert error.details == {"collection": "Player", "operation": "unset_field"}

    def test_subclasses(self):
        assert issubclass(StoreConnectionError, StoreError)
        assert issubclass(StoreTimeoutError, StoreError)

    def test_timeout_message(self):
        error = StoreTimeoutError(timeout_duration=2.5, collection="Log")

        assert str(error) == "Store operation timed out (timeout: 2.5s) [collection=Log]"


class TestInputErrors:
    """Test configuration and diff exceptions."""

    def test_snapshot_error_is_configuration_error(self):
        error = SnapshotError("Snapshot file not found", source="old.yaml")

        assert isinstance(error, ConfigurationError)
        assert error.source == "old.yaml"
        assert str(error) == "Snapshot file not found [source=old.yaml]"

    def test_diff_inconsistency(self):
        error = DiffInconsistencyError("Player", {"score", "level"})

        assert error.owner == "Player"
        assert "['level', 'score']" in str(error)
