"""
Unit tests for data_structures module.
"""

import dataclasses

import pytest

from record_hierarchy.models.data_structures import (
    HierarchyNode,
    Record,
    RelationshipFetchResult,
    RelationshipRule,
)


class TestRecord:
    def test_get_resolves_id(self):
        record = Record("A1", "Account", {"Name": "Acme"})
        assert record.get("Id") == "A1"
        assert record.get("id") == "A1"
        assert record.get("Name") == "Acme"
        assert record.get("Missing", "n/a") == "n/a"


class TestRelationshipRule:
    def test_frozen(self):
        rule = RelationshipRule("Account", "Contact", "AccountId")
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.child_type = "Case"

    def test_str(self):
        assert str(RelationshipRule("Case", "CaseComment", "ParentId")) == (
            "Case -> CaseComment.ParentId"
        )


class TestRelationshipFetchResult:
    def test_success(self):
        rule = RelationshipRule("Account", "Contact", "AccountId")
        records = [Record("C1", "Contact")]
        result = RelationshipFetchResult.success(rule, records)

        assert not result.skipped
        assert result.records == records
        assert result.records is not records

    def test_skip(self):
        rule = RelationshipRule("Account", "Contact", "Bogus")
        result = RelationshipFetchResult.skip(rule, "No such field Contact.Bogus")

        assert result.skipped
        assert result.records == []
        assert result.skipped_reason == "No such field Contact.Bogus"


class TestHierarchyNode:
    def test_group_node(self):
        group = HierarchyNode.group("A1", "Contact")
        assert group.id == "A1_Contact"
        assert group.label == "Contact"
        assert group.is_group
        assert HierarchyNode.group("A1", "Contact", separator="/").id == "A1/Contact"

    def test_to_dict(self):
        root = HierarchyNode.record("A1", "Acme", "Account")
        group = HierarchyNode.group("A1", "Contact")
        group.children.append(HierarchyNode.record("C1", None, "Contact"))
        root.children.append(group)

        data = root.to_dict()
        assert data["is_group"] is False
        assert data["children"][0]["id"] == "A1_Contact"
        assert data["children"][0]["children"][0] == {
            "id": "C1",
            "label": None,
            "entity_type": "Contact",
            "is_group": False,
            "children": [],
        }
