"""
Unit tests for database_manager module.
"""

import pytest

from record_hierarchy.database.database_manager import DatabaseManager
from record_hierarchy.utils.error_handlers import RecordStoreError


class TestDatabaseManager:
    def test_schema_created(self, test_db):
        assert {"Id", "Name", "ParentId", "CreatedDate"} <= test_db.get_columns(
            "Account"
        )
        assert "Subject" in test_db.get_columns("Case")

    def test_unknown_table(self, test_db):
        with pytest.raises(RecordStoreError) as exc_info:
            test_db.get_columns("Widget")
        assert "No such entity type" in exc_info.value.message

    def test_invalid_identifier(self, test_db):
        with pytest.raises(RecordStoreError) as exc_info:
            test_db.fetch_by_id("Account; DROP TABLE Account", "A1")
        assert exc_info.value.recoverable is False

    def test_insert_and_fetch(self, test_db):
        test_db.insert_record("Account", {"Id": "A1", "Name": "Acme"})
        record = test_db.fetch_by_id("Account", "A1")

        assert record.id == "A1"
        assert record.entity_type == "Account"
        assert record.get("Name") == "Acme"
        assert record.get("CreatedDate") is not None

    def test_fetch_missing(self, test_db):
        assert test_db.fetch_by_id("Account", "NOPE") is None

    def test_case_table_keyword(self, test_db):
        test_db.insert_record("Case", {"id": "CS1", "Subject": "Broken"})
        assert test_db.fetch_by_id("Case", "CS1").get("Subject") == "Broken"

    def test_insert_requires_id(self, test_db):
        with pytest.raises(ValueError):
            test_db.insert_record("Account", {"Name": "No id"})

    def test_insert_duplicate(self, test_db):
        test_db.insert_record("Account", {"Id": "A1"})
        with pytest.raises(RecordStoreError) as exc_info:
            test_db.insert_record("Account", {"Id": "A1"})
        assert "already exists" in exc_info.value.message

    def test_insert_unknown_column(self, test_db):
        with pytest.raises(RecordStoreError) as exc_info:
            test_db.insert_record("Account", {"Id": "A1", "Color": "red"})
        assert exc_info.value.message == "No such field Account.Color"

    def test_fetch_children_selects_requested_fields(self, sample_db):
        children = sample_db.fetch_children("Contact", "AccountId", "001A", ["Name"])
        assert [record.id for record in children] == ["003B", "003A"]
        assert children[0].fields == {"Name": "John Smith"}

    def test_fetch_children_ties_by_insertion(self, test_db):
        test_db.insert_record("Contact", {"Id": "C1", "AccountId": "A1"})
        test_db.insert_record("Contact", {"Id": "C2", "AccountId": "A1"})
        children = test_db.fetch_children("Contact", "AccountId", "A1")
        assert [record.id for record in children] == ["C2", "C1"]

    def test_fetch_children_unknown_field(self, sample_db):
        with pytest.raises(RecordStoreError) as exc_info:
            sample_db.fetch_children("Contact", "NoSuchField", "001A")
        assert exc_info.value.recoverable is False

    def test_fetch_children_unknown_label_field(self, sample_db):
        with pytest.raises(RecordStoreError):
            sample_db.fetch_children("Contact", "AccountId", "001A", ["Subject"])

    def test_load_fixture(self, test_db, sample_fixture):
        assert test_db.load_fixture(sample_fixture) == 10
        assert test_db.fetch_by_id("CaseComment", "00aA").get("ParentId") == "500A"

    def test_load_fixture_rolls_back_on_bad_row(self, test_db):
        fixture = {
            "Account": [
                {"Id": "X1", "Name": "Kept only if all rows load"},
                {"Id": "X2", "Bogus": "bad"},
            ]
        }
        with pytest.raises(RecordStoreError):
            test_db.load_fixture(fixture)

        assert test_db.fetch_by_id("Account", "X1") is None
        assert test_db.load_fixture({"Account": [{"Id": "X1", "Name": "Acme"}]}) == 1
        assert test_db.fetch_by_id("Account", "X1").get("Name") == "Acme"

    def test_load_fixture_rolls_back_on_duplicate(self, test_db):
        test_db.insert_record("Account", {"Id": "X1", "Name": "Acme"})
        fixture = {
            "Account": [{"Id": "X2", "Name": "Globex"}],
            "Contact": [{"Id": "Y1", "AccountId": "X2"}],
            "Opportunity": [{"Id": "X1", "AccountId": "X2"}, {"Id": "X1"}],
        }
        with pytest.raises(RecordStoreError):
            test_db.load_fixture(fixture)

        assert test_db.fetch_by_id("Account", "X2") is None
        assert test_db.fetch_by_id("Contact", "Y1") is None
        assert test_db.fetch_by_id("Account", "X1") is not None

    def test_reopen_keeps_data(self, temp_dir):
        db_path = f"{temp_dir}/records.db"
        with DatabaseManager(db_path) as db:
            db.insert_record("Account", {"Id": "A1", "Name": "Acme"})

        with DatabaseManager(db_path) as db:
            assert db.fetch_by_id("Account", "A1").get("Name") == "Acme"

    def test_missing_schema_file(self, temp_dir):
        with pytest.raises(RecordStoreError) as exc_info:
            DatabaseManager(f"{temp_dir}/records.db", schema_path="/no/schema.sql")
        assert exc_info.value.operation == "initialize"
