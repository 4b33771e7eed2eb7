"""
Export module for hierarchy trees.
"""

from .json_exporter import JSONExporter, JSONExportError, SchemaValidationError
from .tree_renderer import TreeRenderer


__all__ = [
    "JSONExporter",
    "JSONExportError",
    "SchemaValidationError",
    "TreeRenderer",
]
