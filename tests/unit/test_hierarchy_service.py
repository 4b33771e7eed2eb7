"""
Unit tests for hierarchy_service module.
"""

import sqlite3
from unittest.mock import Mock

import pytest

from record_hierarchy.database.record_store import RecordStore
from record_hierarchy.orchestration.hierarchy_service import (
    ERROR_PREFIX,
    HierarchyService,
    get_hierarchy_data,
)
from record_hierarchy.processing.hierarchy_builder import HierarchyConfig
from record_hierarchy.utils.error_handlers import (
    HierarchyRequestError,
    InvalidRequestError,
    RecordNotFoundError,
    RecordStoreError,
)


@pytest.fixture
def service(sample_store):
    """Service over the sample records."""
    return HierarchyService(sample_store)


class TestHierarchyService:
    def test_returns_grouped_tree(self, service):
        tree = service.get_hierarchy_data("001A", "Account", 2)
        assert tree.id == "001A"
        assert tree.label == "Acme Corporation"
        assert all(group.is_group for group in tree.children)

    def test_default_depth_from_config(self, sample_store):
        service = HierarchyService(
            sample_store, config=HierarchyConfig(default_max_depth=1)
        )
        tree = service.get_hierarchy_data("001A", "Account")
        assert service.builder.tree_depth(tree) == 1

    def test_flat_tree(self, service):
        tree = service.get_flat_hierarchy_data("001A", "Account", 1)
        assert [node.id for node in tree.children] == [
            "003B",
            "003A",
            "006A",
            "500A",
            "001B",
        ]

    def test_missing_root_wrapped(self, service):
        with pytest.raises(HierarchyRequestError) as exc_info:
            service.get_hierarchy_data("NOPE", "Account", 2)

        error = exc_info.value
        assert error.message == f"{ERROR_PREFIX}: Record not found: Account NOPE"
        assert isinstance(error.original_error, RecordNotFoundError)
        assert error.record_id == "NOPE"
        assert error.recoverable is False

    def test_invalid_depth_wrapped(self, service):
        with pytest.raises(HierarchyRequestError) as exc_info:
            service.get_hierarchy_data("001A", "Account", 0)

        assert "Invalid parameters provided" in exc_info.value.message
        assert isinstance(exc_info.value.original_error, InvalidRequestError)

    def test_non_string_id_wrapped(self, service):
        with pytest.raises(HierarchyRequestError) as exc_info:
            service.get_hierarchy_data(None, "Account", 2)
        assert exc_info.value.record_id is None

    def test_error_to_dict(self, service):
        with pytest.raises(HierarchyRequestError) as exc_info:
            service.get_hierarchy_data("NOPE", "Account", 2)

        error_dict = exc_info.value.to_dict()
        assert error_dict["error_type"] == "HierarchyRequestError"
        assert error_dict["stage"] == "request"
        assert error_dict["record_id"] == "NOPE"
        assert error_dict["original_error_type"] == "RecordNotFoundError"

    def test_transient_root_failure_is_retriable(self):
        store = Mock(spec=RecordStore)
        store.fetch_by_id.side_effect = RecordStoreError(
            "Failed to fetch Account 001A",
            operation="fetch_by_id",
            original_error=sqlite3.OperationalError("database is locked"),
        )
        service = HierarchyService(store)

        with pytest.raises(HierarchyRequestError) as exc_info:
            service.get_hierarchy_data("001A", "Account", 2)

        assert exc_info.value.recoverable is True
        store.fetch_children.assert_not_called()

    def test_relationship_failures_do_not_surface(self, sample_store):
        store = Mock(wraps=sample_store)
        store.fetch_children.side_effect = RecordStoreError("boom")
        service = HierarchyService(store)

        tree = service.get_hierarchy_data("001A", "Account", 2)
        assert tree.id == "001A"
        assert tree.children == []


class TestGetHierarchyData:
    def test_entry_point(self, memory_store):
        tree = get_hierarchy_data("A1", "Account", 2, store=memory_store)
        assert [group.id for group in tree.children] == ["A1_Contact"]

    def test_entry_point_error(self, memory_store):
        with pytest.raises(HierarchyRequestError) as exc_info:
            get_hierarchy_data("A1", "Account", -3, store=memory_store)
        assert exc_info.value.message.startswith(ERROR_PREFIX)
