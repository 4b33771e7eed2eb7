"""Core data structures for the record hierarchy system.

This module defines the records handed out by a record store, the declarative
relationship rules that connect entity types, the per-relationship fetch
result, and the node tree returned to the rendering layer.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ID_FIELD_NAMES = ("Id", "id")


@dataclass
class Record:
    """A single typed entity instance.

    Attributes:
        id: Record identifier, unique within its store.
        entity_type: Entity type the record belongs to (e.g., 'Account').
        fields: Field values keyed by field name.
    """

    id: str
    entity_type: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def get(self, field_name: str, default: Any = None) -> Any:
        """Returns a field value, resolving 'Id'/'id' to the identifier."""
        if field_name in ID_FIELD_NAMES:
            return self.id
        return self.fields.get(field_name, default)


@dataclass(frozen=True)
class RelationshipRule:
    """Declares that child_type records whose linking_field equals a
    parent's id are children of that parent.

    Attributes:
        parent_type: Entity type of the parent.
        child_type: Entity type of the children.
        linking_field: Field on the child type holding the parent id.
    """

    parent_type: str
    child_type: str
    linking_field: str

    def __str__(self) -> str:
        return f"{self.parent_type} -> {self.child_type}.{self.linking_field}"


@dataclass
class RelationshipFetchResult:
    """Outcome of fetching the children for one relationship rule.

    A fetch either succeeds with (possibly zero) records or is skipped with a
    reason. Skipped results never carry records.

    Attributes:
        rule: The relationship rule that was evaluated.
        records: Records returned by the store, newest first.
        skipped_reason: Why the rule was skipped, None on success.
    """

    rule: RelationshipRule
    records: List[Record] = field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None

    @classmethod
    def success(
        cls, rule: RelationshipRule, records: List[Record]
    ) -> "RelationshipFetchResult":
        return cls(rule=rule, records=list(records))

    @classmethod
    def skip(cls, rule: RelationshipRule, reason: str) -> "RelationshipFetchResult":
        return cls(rule=rule, records=[], skipped_reason=reason)


@dataclass
class HierarchyNode:
    """Node of the hierarchy tree.

    Record nodes carry a record; their children are group nodes. Group nodes
    bucket same-typed records under a parent; their children are record
    nodes and are never empty in a built tree.

    Attributes:
        id: Record id, or '<parent_id>_<entity_type>' for group nodes.
        label: Display label; the entity type name for group nodes.
        entity_type: Entity type of the record or of the grouped records.
        is_group: True for group nodes.
        children: Ordered child nodes.
    """

    id: str
    label: Optional[str]
    entity_type: str
    is_group: bool = False
    children: List["HierarchyNode"] = field(default_factory=list)

    @classmethod
    def record(
        cls, record_id: str, label: Optional[str], entity_type: str
    ) -> "HierarchyNode":
        return cls(id=record_id, label=label, entity_type=entity_type)

    @classmethod
    def group(
        cls, parent_id: str, entity_type: str, separator: str = "_"
    ) -> "HierarchyNode":
        return cls(
            id=f"{parent_id}{separator}{entity_type}",
            label=entity_type,
            entity_type=entity_type,
            is_group=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Converts the node and its subtree to plain dictionaries."""
        return {
            "id": self.id,
            "label": self.label,
            "entity_type": self.entity_type,
            "is_group": self.is_group,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class BuildStats:
    """Counters gathered during a single hierarchy build."""

    records_emitted: int = 0
    groups_emitted: int = 0
    cycles_pruned: int = 0
    relationships_skipped: int = 0
    fetch_count: int = 0
