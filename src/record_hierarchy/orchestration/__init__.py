"""
Orchestration module for hierarchy requests.
"""

from .hierarchy_service import HierarchyService, get_hierarchy_data


__all__ = ["HierarchyService", "get_hierarchy_data"]
