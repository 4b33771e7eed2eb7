"""
Processing module for hierarchy construction.
"""

from .hierarchy_builder import HierarchyBuilder, HierarchyConfig


__all__ = ["HierarchyBuilder", "HierarchyConfig"]
