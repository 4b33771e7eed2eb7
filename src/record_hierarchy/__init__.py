"""
Record Hierarchy

Builds bounded, cycle-safe trees of related records for hierarchy diagrams.
"""

__version__ = "1.0.0"
__author__ = "Record Hierarchy Team"

# Core exports
from .orchestration import HierarchyService, get_hierarchy_data
from .processing import HierarchyBuilder, HierarchyConfig
from .registry import RelationshipRegistry
from .database import DatabaseManager, InMemoryRecordStore, RecordStore
from .models import HierarchyNode, Record

__all__ = [
    "HierarchyService",
    "get_hierarchy_data",
    "HierarchyBuilder",
    "HierarchyConfig",
    "RelationshipRegistry",
    "DatabaseManager",
    "InMemoryRecordStore",
    "RecordStore",
    "HierarchyNode",
    "Record",
    "__version__",
]
