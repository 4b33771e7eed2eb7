"""Relationship registry for the record hierarchy system.

The registry holds two static tables: the ordered child relationships of each
entity type, and the field used as display label for each entity type. Both
are read-only lookups during a build; supporting a new entity type means
adding entries here, nothing in the builder changes.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..models.data_structures import RelationshipRule
from ..utils.error_handlers import ConfigurationError


logger = logging.getLogger(__name__)


# Extend these tables when adding support for new entity types.
DEFAULT_RELATIONSHIPS: Dict[str, List[Tuple[str, str]]] = {
    "Account": [
        ("Contact", "AccountId"),
        ("Opportunity", "AccountId"),
        ("Case", "AccountId"),
        ("Account", "ParentId"),
    ],
    "Contact": [
        ("Case", "ContactId"),
    ],
    "Opportunity": [
        ("OpportunityLineItem", "OpportunityId"),
    ],
    "Case": [
        ("Case", "ParentId"),
        ("CaseComment", "ParentId"),
    ],
}

DEFAULT_LABEL_FIELDS: Dict[str, str] = {
    "Account": "Name",
    "Contact": "Name",
    "Opportunity": "Name",
    "Case": "Subject",
    "CaseComment": "ParentId",
}


class RelationshipRegistry:
    """Static lookup of child relationships and label fields per entity type.

    Attributes:
        relationships: Read-only mapping of parent type to ordered rules.
        label_fields: Read-only mapping of entity type to label field.

    Example:
        >>> registry = RelationshipRegistry.default()
        >>> [r.child_type for r in registry.child_rules_for("Case")]
        ['Case', 'CaseComment']
        >>> registry.label_field_for("Case")
        'Subject'
    """

    def __init__(
        self,
        relationships: Mapping[str, Sequence[Tuple[str, str]]],
        label_fields: Mapping[str, str],
    ) -> None:
        rules: Dict[str, Tuple[RelationshipRule, ...]] = {}
        for parent_type, children in relationships.items():
            rules[parent_type] = tuple(
                RelationshipRule(parent_type, child_type, linking_field)
                for child_type, linking_field in children
            )

        self.relationships: Mapping[str, Tuple[RelationshipRule, ...]] = (
            MappingProxyType(rules)
        )
        self.label_fields: Mapping[str, str] = MappingProxyType(dict(label_fields))

    @classmethod
    def default(cls) -> "RelationshipRegistry":
        """Creates a registry from the built-in relationship tables."""
        return cls(DEFAULT_RELATIONSHIPS, DEFAULT_LABEL_FIELDS)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "RelationshipRegistry":
        """Creates a registry from the 'relationships' and 'label_fields'
        sections of a configuration mapping.

        Expected shape::

            relationships:
              Account:
                - {child_type: Contact, linking_field: AccountId}
            label_fields:
              Account: Name

        Args:
            config: Mapping holding the two sections. Either may be omitted.

        Returns:
            RelationshipRegistry built from the configuration.

        Raises:
            ConfigurationError: If a section or entry is malformed.
        """
        raw_relationships = config.get("relationships") or {}
        raw_labels = config.get("label_fields") or {}

        if not isinstance(raw_relationships, Mapping):
            raise ConfigurationError(
                "relationships must be a mapping of parent type to rule list",
                config_key="relationships",
            )
        if not isinstance(raw_labels, Mapping):
            raise ConfigurationError(
                "label_fields must be a mapping of entity type to field name",
                config_key="label_fields",
            )

        relationships: Dict[str, List[Tuple[str, str]]] = {}
        for parent_type, entries in raw_relationships.items():
            key = f"relationships.{parent_type}"
            _require_name(parent_type, key)
            if not isinstance(entries, list):
                raise ConfigurationError(
                    f"{key} must be a list of rules", config_key=key
                )

            pairs: List[Tuple[str, str]] = []
            for index, entry in enumerate(entries):
                entry_key = f"{key}[{index}]"
                if not isinstance(entry, Mapping):
                    raise ConfigurationError(
                        f"{entry_key} must be a mapping with child_type and "
                        f"linking_field",
                        config_key=entry_key,
                    )
                child_type = entry.get("child_type")
                linking_field = entry.get("linking_field")
                _require_name(child_type, f"{entry_key}.child_type")
                _require_name(linking_field, f"{entry_key}.linking_field")
                pairs.append((child_type, linking_field))
            relationships[parent_type] = pairs

        label_fields: Dict[str, str] = {}
        for entity_type, field_name in raw_labels.items():
            _require_name(entity_type, "label_fields")
            _require_name(field_name, f"label_fields.{entity_type}")
            label_fields[entity_type] = field_name

        registry = cls(relationships, label_fields)
        logger.debug(
            f"Loaded registry: {len(relationships)} parent types, "
            f"{len(label_fields)} label rules"
        )
        return registry

    def child_rules_for(self, entity_type: str) -> Tuple[RelationshipRule, ...]:
        """Returns the child rules of an entity type in declaration order.

        Unknown types yield an empty tuple.
        """
        return self.relationships.get(entity_type, ())

    def label_field_for(self, entity_type: str) -> Optional[str]:
        """Returns the label field of an entity type, or None."""
        return self.label_fields.get(entity_type)

    def entity_types(self) -> List[str]:
        """Returns every entity type named in either table, sorted."""
        types = set(self.relationships) | set(self.label_fields)
        for rules in self.relationships.values():
            types.update(rule.child_type for rule in rules)
        return sorted(types)

    def validate(self) -> List[str]:
        """Checks the tables for gaps that degrade the rendered tree.

        Returns:
            List of warning messages. Empty if nothing looks off.
        """
        warnings: List[str] = []

        for entity_type in self.entity_types():
            if entity_type not in self.label_fields:
                warnings.append(
                    f"No label field for {entity_type}; its nodes will have no label"
                )

        for parent_type, rules in self.relationships.items():
            seen = set()
            for rule in rules:
                pair = (rule.child_type, rule.linking_field)
                if pair in seen:
                    warnings.append(f"Duplicate relationship rule: {rule}")
                seen.add(pair)

        return warnings

    def __repr__(self) -> str:
        return (
            f"RelationshipRegistry(parent_types={len(self.relationships)}, "
            f"label_fields={len(self.label_fields)})"
        )


def _require_name(value: Any, config_key: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(
            f"{config_key} must be a non-empty string, got {value!r}",
            config_key=config_key,
        )
