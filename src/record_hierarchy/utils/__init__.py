"""Utility functions for the record hierarchy system."""

from .error_handlers import (
    ConfigurationError,
    HierarchyError,
    HierarchyRequestError,
    InvalidRequestError,
    RecordNotFoundError,
    RecordStoreError,
)

__all__ = [
    "ConfigurationError",
    "HierarchyError",
    "HierarchyRequestError",
    "InvalidRequestError",
    "RecordNotFoundError",
    "RecordStoreError",
]
