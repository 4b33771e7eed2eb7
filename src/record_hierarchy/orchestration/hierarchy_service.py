"""
Hierarchy service: the caller-facing entry point.

Validates a hierarchy request, runs the builder, and turns any failure into a
single HierarchyRequestError. Relationship fetches that fail inside the build
are absorbed by the builder and never surface here.
"""

import logging
from typing import Optional

from ..database.record_store import RecordStore
from ..models.data_structures import HierarchyNode
from ..processing.hierarchy_builder import HierarchyBuilder, HierarchyConfig
from ..registry.relationship_registry import RelationshipRegistry
from ..utils.error_handlers import HierarchyRequestError, log_error_with_context


logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error retrieving hierarchy data"


class HierarchyService:
    """
    Serves hierarchy requests against a record store.

    Attributes:
        builder: HierarchyBuilder used for every request.

    Example:
        >>> service = HierarchyService(store)
        >>> tree = service.get_hierarchy_data("001A", "Account", 3)
    """

    def __init__(
        self,
        store: RecordStore,
        registry: Optional[RelationshipRegistry] = None,
        config: Optional[HierarchyConfig] = None,
    ) -> None:
        self.builder = HierarchyBuilder(store, registry, config)

    def get_hierarchy_data(
        self, record_id: str, root_type: str, max_depth: Optional[int] = None
    ) -> HierarchyNode:
        """
        Fetch the grouped hierarchy for a record.

        Args:
            record_id: Identifier of the root record.
            root_type: Entity type of the root record.
            max_depth: Levels to expand below the root. Defaults to the
                configured default_max_depth.

        Returns:
            Root record node with the grouped subtree attached.

        Raises:
            HierarchyRequestError: For invalid input, a missing root record,
                or a failed root fetch.
        """
        return self._serve(record_id, root_type, max_depth, grouped=True)

    def get_flat_hierarchy_data(
        self, record_id: str, root_type: str, max_depth: Optional[int] = None
    ) -> HierarchyNode:
        """Same as get_hierarchy_data, without group nodes."""
        return self._serve(record_id, root_type, max_depth, grouped=False)

    def _serve(
        self,
        record_id: str,
        root_type: str,
        max_depth: Optional[int],
        grouped: bool,
    ) -> HierarchyNode:
        if max_depth is None:
            max_depth = self.builder.config.default_max_depth

        try:
            if grouped:
                return self.builder.build(record_id, root_type, max_depth)
            return self.builder.build_flat(record_id, root_type, max_depth)
        except Exception as e:
            log_error_with_context(
                e,
                logger,
                {"record_id": record_id, "stage": "request", "root_type": root_type},
            )
            raise HierarchyRequestError(
                f"{ERROR_PREFIX}: {getattr(e, 'message', None) or e}",
                record_id=record_id if isinstance(record_id, str) else None,
                original_error=e,
            ) from e


def get_hierarchy_data(
    record_id: str,
    root_type: str,
    max_depth: int,
    *,
    store: RecordStore,
    registry: Optional[RelationshipRegistry] = None,
    config: Optional[HierarchyConfig] = None,
) -> HierarchyNode:
    """
    Fetch the grouped hierarchy for a record.

    Convenience wrapper around HierarchyService for one-off requests.

    Args:
        record_id: Identifier of the root record.
        root_type: Entity type of the root record.
        max_depth: Levels to expand below the root (>= 1).
        store: Record store to query.
        registry: Relationship tables. Defaults to the built-in tables.
        config: Builder configuration.

    Returns:
        Root record node with the grouped subtree attached.

    Raises:
        HierarchyRequestError: If the request fails.
    """
    service = HierarchyService(store, registry, config)
    return service.get_hierarchy_data(record_id, root_type, max_depth)
