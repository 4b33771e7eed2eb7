"""Record store interface used by the hierarchy builder.

The builder never talks to a concrete backend. It needs exactly two
capabilities: fetch one record by type and id, and fetch the records of a type
whose field equals a value. Type and field names are only known at runtime,
so both operations take them as plain strings.
"""

import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..models.data_structures import Record
from ..utils.error_handlers import RecordStoreError

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class RecordStore(ABC):
    """Abstract record store.

    Implementations raise RecordStoreError for unreachable stores, malformed
    type names, or fields that do not exist on a type. An empty result is
    never an error.
    """

    @abstractmethod
    def fetch_by_id(self, entity_type: str, record_id: str) -> Optional[Record]:
        """Fetches a record by type and id.

        Args:
            entity_type: Entity type to query.
            record_id: Identifier of the record.

        Returns:
            The record with at least its id and label field, or None if no
            such record exists.
        """

    @abstractmethod
    def fetch_children(
        self,
        child_type: str,
        linking_field: str,
        parent_id: str,
        fields: Optional[Sequence[str]] = None,
    ) -> List[Record]:
        """Fetches records of child_type whose linking_field equals parent_id.

        Args:
            child_type: Entity type to query.
            linking_field: Field on child_type holding the parent id.
            parent_id: Parent record identifier.
            fields: Extra fields to load besides the id.

        Returns:
            Matching records, most recently created first.
        """

    def close(self) -> None:
        """Releases store resources. No-op by default."""


def validate_identifier(name: str, kind: str, operation: str) -> str:
    """Checks that a type or field name is a plain identifier.

    Args:
        name: Type or field name to check.
        kind: What the name denotes, used in the error message.
        operation: Store operation, recorded on the error.

    Returns:
        The name unchanged.

    Raises:
        RecordStoreError: If the name is not a plain identifier.
    """
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
        raise RecordStoreError(
            message=f"Invalid {kind} name: {name!r}",
            operation=operation,
            recoverable=False,
        )
    return name
