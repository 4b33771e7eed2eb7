"""In-memory record store.

Holds records in plain dictionaries and answers the two record store queries
the builder needs. Used for fixtures, tests, and small data sets loaded from
YAML or JSON files.
"""

import itertools
import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ..models.data_structures import ID_FIELD_NAMES, Record
from ..utils.error_handlers import RecordStoreError
from .record_store import RecordStore, validate_identifier


logger = logging.getLogger(__name__)

CREATED_DATE_FIELD = "CreatedDate"


class InMemoryRecordStore(RecordStore):
    """Record store backed by dictionaries.

    The schema of an entity type is the union of the field names of its
    records plus 'Id'. Querying an unknown type or field raises
    RecordStoreError, the same way a database rejects a bad column.

    Example:
        >>> store = InMemoryRecordStore()
        >>> store.add(Record("A1", "Account", {"Name": "Acme"}))
        >>> store.add(Record("C1", "Contact", {"AccountId": "A1"}))
        >>> [r.id for r in store.fetch_children("Contact", "AccountId", "A1")]
        ['C1']
    """

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, Tuple[Record, Any, int]]] = {}
        self._schema: Dict[str, Set[str]] = {}
        self._sequence = itertools.count()

    def add(self, record: Record, created_at: Optional[Any] = None) -> None:
        """Registers a record.

        Args:
            record: Record to store. Replaces a record with the same id.
            created_at: Recency key used for ordering. Defaults to the
                record's CreatedDate field; records without one sort by
                insertion order.
        """
        validate_identifier(record.entity_type, "entity type", "add")
        if created_at is None:
            created_at = record.fields.get(CREATED_DATE_FIELD)
        if isinstance(created_at, date):
            created_at = created_at.isoformat()

        table = self._records.setdefault(record.entity_type, {})
        table[record.id] = (record, created_at, next(self._sequence))

        schema = self._schema.setdefault(record.entity_type, {"Id"})
        schema.update(record.fields)

    def register_type(self, entity_type: str, fields: Sequence[str] = ()) -> None:
        """Declares an entity type and its fields without adding records."""
        validate_identifier(entity_type, "entity type", "register_type")
        self._records.setdefault(entity_type, {})
        schema = self._schema.setdefault(entity_type, {"Id"})
        schema.update(fields)

    def load_fixture(self, fixture: Mapping[str, List[Mapping[str, Any]]]) -> int:
        """Loads records from a mapping of entity type to field dictionaries.

        Each dictionary must hold an 'Id' (or 'id') key.

        Returns:
            Number of records loaded.

        Raises:
            RecordStoreError: If a record has no identifier.
        """
        count = 0
        for entity_type, rows in fixture.items():
            self.register_type(entity_type)
            for row in rows or []:
                record_id = next(
                    (row[key] for key in ID_FIELD_NAMES if key in row), None
                )
                if record_id is None:
                    raise RecordStoreError(
                        message=f"Fixture record of type {entity_type} has no Id",
                        operation="load_fixture",
                        recoverable=False,
                    )
                fields = {k: v for k, v in row.items() if k not in ID_FIELD_NAMES}
                self.add(Record(str(record_id), entity_type, fields))
                count += 1

        logger.info(f"Loaded {count} records into memory store")
        return count

    def fetch_by_id(self, entity_type: str, record_id: str) -> Optional[Record]:
        table = self._table(entity_type, "fetch_by_id")
        entry = table.get(record_id)
        return entry[0] if entry else None

    def fetch_children(
        self,
        child_type: str,
        linking_field: str,
        parent_id: str,
        fields: Optional[Sequence[str]] = None,
    ) -> List[Record]:
        table = self._table(child_type, "fetch_children")
        validate_identifier(linking_field, "field", "fetch_children")

        schema = self._schema[child_type]
        for name in [linking_field, *(fields or [])]:
            if name not in schema:
                raise RecordStoreError(
                    message=f"No such field {child_type}.{name}",
                    record_id=parent_id,
                    operation="fetch_children",
                    recoverable=False,
                )

        matches = [
            entry
            for entry in table.values()
            if entry[0].get(linking_field) == parent_id
        ]
        # Newest first; records without a date sort after dated ones.
        matches.sort(key=lambda entry: entry[2], reverse=True)
        matches.sort(
            key=lambda entry: (entry[1] is not None, entry[1] or ""), reverse=True
        )
        return [entry[0] for entry in matches]

    def _table(
        self, entity_type: str, operation: str
    ) -> Dict[str, Tuple[Record, Any, int]]:
        validate_identifier(entity_type, "entity type", operation)
        table = self._records.get(entity_type)
        if table is None:
            raise RecordStoreError(
                message=f"No such entity type: {entity_type}",
                operation=operation,
                recoverable=False,
            )
        return table

    def __len__(self) -> int:
        return sum(len(table) for table in self._records.values())
