"""Data models for the record hierarchy system."""

from .data_structures import (
    BuildStats,
    HierarchyNode,
    Record,
    RelationshipFetchResult,
    RelationshipRule,
)

__all__ = [
    "BuildStats",
    "HierarchyNode",
    "Record",
    "RelationshipFetchResult",
    "RelationshipRule",
]
