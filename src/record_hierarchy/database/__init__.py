"""Record store layer for the record hierarchy system."""

from .record_store import RecordStore
from .memory_store import InMemoryRecordStore
from .database_manager import DatabaseManager

__all__ = ["RecordStore", "InMemoryRecordStore", "DatabaseManager"]
