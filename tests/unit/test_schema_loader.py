"""
Tests for docmigrate.schema.loader module.
"""

import os
import tempfile

import pytest
import yaml

from docmigrate.schema.loader import load_snapshot, snapshot_from_dict, snapshot_to_dict
from docmigrate.schema.model import SnapshotRole
from docmigrate.exceptions import ConfigurationError, SnapshotError
from tests.conftest import snapshot_document


class TestSnapshotFromDict:
    """Test building snapshots from mappings."""

    def test_basic_document(self):
        document = snapshot_document(
            "new",
            {
                "Player": [
                    {"name": "name", "type": "str", "index": True},
                    {"name": "level", "type": "int", "default": 1},
                ]
            },
            version="2",
        )

        snapshot = snapshot_from_dict(document, source="new.yaml")

        assert snapshot.role == SnapshotRole.NEW
        assert snapshot.version == "2"
        assert snapshot.source == "new.yaml"
        player = snapshot.get_type("Player")
        assert player.field_names == ["name", "level"]
        assert player.get_field("name").has_index
        assert not player.get_field("name").has_default
        assert player.get_field("level").has_default
        assert player.get_field("level").default_value == 1

    def test_explicit_null_default_counts_as_default(self):
        document = snapshot_document("old", {"T": [{"name": "note", "type": "str", "default": None}]})

        field = snapshot_from_dict(document).get_type("T").get_field("note")

        assert field.has_default
        assert field.default_value is None

    def test_numeric_version_becomes_string(self):
        snapshot = snapshot_from_dict({"role": "old", "version": 3, "models": []})

        assert snapshot.version == "3"
        assert snapshot.label == "old@3"

    def test_models_default_to_empty(self):
        snapshot = snapshot_from_dict({"role": "old"})

        assert len(snapshot) == 0

    def test_unknown_role_rejected(self):
        with pytest.raises(SnapshotError) as exc_info:
            snapshot_from_dict({"role": "current", "models": []}, source="x.yaml")

        assert "Invalid snapshot document" in str(exc_info.value)
        assert exc_info.value.details["source"] == "x.yaml"

    def test_unknown_keys_rejected(self):
        document = snapshot_document("old", {"T": [{"name": "a", "type": "str", "unique": True}]})

        with pytest.raises(SnapshotError):
            snapshot_from_dict(document)

    def test_missing_field_type_rejected(self):
        with pytest.raises(SnapshotError):
            snapshot_from_dict(snapshot_document("old", {"T": [{"name": "a"}]}))

    def test_non_mapping_rejected(self):
        with pytest.raises(SnapshotError, match="must be a mapping"):
            snapshot_from_dict(["role", "old"])

    def test_duplicate_fields_rejected(self):
        document = snapshot_document(
            "old",
            {"T": [{"name": "a", "type": "str"}, {"name": "a", "type": "int"}]},
        )

        with pytest.raises(ConfigurationError, match="duplicate fields"):
            snapshot_from_dict(document)

    def test_duplicate_models_rejected(self):
        document = {
            "role": "old",
            "models": [{"name": "T", "fields": []}, {"name": "T", "fields": []}],
        }

        with pytest.raises(ConfigurationError):
            snapshot_from_dict(document)


class TestLoadSnapshot:
    """Test loading snapshot files."""

    def test_load_from_file(self, config_dir):
        snapshot = load_snapshot(os.path.join(config_dir, "schema", "old.yaml"))

        assert snapshot.role == SnapshotRole.OLD
        assert snapshot.version == "1"
        assert snapshot.get_type("Player").field_names == ["name", "level", "gold", "jinwoo"]
        assert snapshot.source.endswith("old.yaml")

    def test_missing_file(self):
        with pytest.raises(SnapshotError, match="not found"):
            load_snapshot("/nonexistent/snapshot.yaml")

    def test_invalid_yaml(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("role: old\nmodels: [\n")
            path = f.name

        try:
            with pytest.raises(SnapshotError, match="Invalid YAML"):
                load_snapshot(path)
        finally:
            os.unlink(path)

    def test_duplicate_fields_report_source(self):
        document = snapshot_document(
            "old",
            {"T": [{"name": "a", "type": "str"}, {"name": "a", "type": "str"}]},
        )
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(document, f)
            path = f.name

        try:
            with pytest.raises(ConfigurationError) as exc_info:
                load_snapshot(path)
            assert exc_info.value.details["source"] == path
        finally:
            os.unlink(path)


class TestSnapshotToDict:
    """Test rendering snapshots back to documents."""

    def test_render_matches_source_document(self):
        document = snapshot_document(
            "new",
            {
                "Player": [
                    {"name": "name", "type": "str", "index": True},
                    {"name": "gold", "type": "int", "default": 0},
                ]
            },
            version="2",
        )

        assert snapshot_to_dict(snapshot_from_dict(document)) == document
