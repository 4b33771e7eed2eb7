"""Relationship and label tables."""

from .relationship_registry import (
    DEFAULT_LABEL_FIELDS,
    DEFAULT_RELATIONSHIPS,
    RelationshipRegistry,
)

__all__ = ["DEFAULT_LABEL_FIELDS", "DEFAULT_RELATIONSHIPS", "RelationshipRegistry"]
