"""
Pytest configuration and fixtures.
"""

import pytest
import tempfile
import shutil
from pathlib import Path

import yaml

from record_hierarchy.database.database_manager import DatabaseManager
from record_hierarchy.database.memory_store import InMemoryRecordStore
from record_hierarchy.models.data_structures import Record
from record_hierarchy.registry.relationship_registry import RelationshipRegistry


PROJECT_ROOT = Path(__file__).parent.parent
SAMPLE_RECORDS_PATH = PROJECT_ROOT / "config" / "sample_records.yaml"
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "hierarchy_config.yaml"


@pytest.fixture(scope="function")
def temp_dir():
    """Create temporary directory for test."""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(scope="function")
def test_db(temp_dir):
    """Create test database."""
    db_path = Path(temp_dir) / "test.db"
    db = DatabaseManager(str(db_path))
    yield db
    db.close()


@pytest.fixture(scope="function")
def registry():
    """Default relationship registry."""
    return RelationshipRegistry.default()


@pytest.fixture(scope="function")
def memory_store():
    """In-memory store with self-referencing Account and Case records.

    A1 is its own parent account and has contacts C1 (newer) and C2.
    CS1 is its own parent case and has one comment, CC1.
    """
    store = InMemoryRecordStore()
    store.register_type("Opportunity", ["Name", "AccountId", "CreatedDate"])
    store.register_type(
        "OpportunityLineItem", ["Name", "OpportunityId", "CreatedDate"]
    )

    store.add(
        Record(
            "A1",
            "Account",
            {"Name": "Acme", "ParentId": "A1", "CreatedDate": "2024-01-01T00:00:00"},
        )
    )
    store.add(
        Record(
            "C1",
            "Contact",
            {
                "Name": "Jane Doe",
                "AccountId": "A1",
                "CreatedDate": "2024-01-03T00:00:00",
            },
        )
    )
    store.add(
        Record(
            "C2",
            "Contact",
            {
                "Name": "John Roe",
                "AccountId": "A1",
                "CreatedDate": "2024-01-02T00:00:00",
            },
        )
    )
    store.add(
        Record(
            "CS1",
            "Case",
            {
                "Subject": "Broken widget",
                "ParentId": "CS1",
                "AccountId": None,
                "ContactId": None,
                "CreatedDate": "2024-02-01T00:00:00",
            },
        )
    )
    store.add(
        Record(
            "CC1",
            "CaseComment",
            {
                "ParentId": "CS1",
                "CommentBody": "Investigating",
                "CreatedDate": "2024-02-02T00:00:00",
            },
        )
    )
    return store


@pytest.fixture(scope="session")
def sample_fixture():
    """Records from config/sample_records.yaml, keyed by entity type."""
    with open(SAMPLE_RECORDS_PATH, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture(scope="function")
def sample_store(sample_fixture):
    """In-memory store loaded with the sample records."""
    store = InMemoryRecordStore()
    store.load_fixture(sample_fixture)
    return store


@pytest.fixture(scope="function")
def sample_db(test_db, sample_fixture):
    """SQLite store loaded with the sample records."""
    test_db.load_fixture(sample_fixture)
    return test_db


@pytest.fixture(scope="function")
def cli_config(tmp_path):
    """Copy of the default configuration pointing at a temporary database."""
    with open(DEFAULT_CONFIG_PATH, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f)
    config_dict["database"]["path"] = str(tmp_path / "records.db")

    config_path = tmp_path / "hierarchy_config.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_dict, f, sort_keys=False)
    return config_path


# Markers for different test categories
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line(
        "markers", "integration: Integration tests for multiple components"
    )
