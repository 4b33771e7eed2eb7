"""Hierarchy builder module for the record hierarchy system.

This module builds a bounded-depth, cycle-safe tree of a record and its
related records. Children are looked up through the relationship registry,
fetched through a record store, and bucketed into one group node per related
entity type.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from ..database.record_store import RecordStore
from ..models.data_structures import (
    BuildStats,
    HierarchyNode,
    Record,
    RelationshipFetchResult,
    RelationshipRule,
)
from ..registry.relationship_registry import RelationshipRegistry
from ..utils.error_handlers import (
    InvalidRequestError,
    RecordNotFoundError,
    log_error_with_context,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HierarchyConfig:
    """Configuration for hierarchy building.

    Attributes:
        default_max_depth: Depth used when the caller gives none.
        max_depth_limit: Largest depth a caller may request, or None for no
            cap.
        group_id_separator: Separator between parent id and entity type in
            group node ids.
        log_skipped_relationships: Log relationship fetches that fail.
    """

    default_max_depth: int = 3
    max_depth_limit: Optional[int] = None
    group_id_separator: str = "_"
    log_skipped_relationships: bool = True

    def __post_init__(self) -> None:
        """Validates configuration parameters."""
        if self.default_max_depth <= 0:
            raise ValueError("default_max_depth must be positive")
        if self.max_depth_limit is not None:
            if self.max_depth_limit <= 0:
                raise ValueError("max_depth_limit must be positive")
            if self.default_max_depth > self.max_depth_limit:
                raise ValueError(
                    f"default_max_depth ({self.default_max_depth}) exceeds "
                    f"max_depth_limit ({self.max_depth_limit})"
                )
        if not self.group_id_separator:
            raise ValueError("group_id_separator cannot be empty")


class HierarchyBuilder:
    """Builds record hierarchies grouped by related entity type.

    A single build is synchronous and depth-first. The visited set is created
    per build and threaded through every recursive call, so a record is
    emitted at most once in the whole tree, whichever path reaches it first.

    Attributes:
        store: Record store answering id and child lookups.
        registry: Relationship and label tables.
        config: Configuration parameters for hierarchy building.

    Example:
        >>> builder = HierarchyBuilder(store, RelationshipRegistry.default())
        >>> tree = builder.build("001A", "Account", max_depth=2)
        >>> [group.id for group in tree.children]
        ['001A_Contact', '001A_Case']
    """

    def __init__(
        self,
        store: RecordStore,
        registry: Optional[RelationshipRegistry] = None,
        config: Optional[HierarchyConfig] = None,
    ) -> None:
        self.store = store
        self.registry = registry or RelationshipRegistry.default()
        self.config = config or HierarchyConfig()

    def build(self, root_id: str, root_type: str, max_depth: int) -> HierarchyNode:
        """Builds the grouped hierarchy below a root record.

        Args:
            root_id: Identifier of the root record.
            root_type: Entity type of the root record.
            max_depth: Number of levels to expand below the root (>= 1).

        Returns:
            Root record node with the grouped subtree attached.

        Raises:
            InvalidRequestError: If the arguments are invalid.
            RecordNotFoundError: If the root record does not exist.
            RecordStoreError: If the root record cannot be fetched.
        """
        tree, _ = self.build_with_stats(root_id, root_type, max_depth)
        return tree

    def build_with_stats(
        self, root_id: str, root_type: str, max_depth: int
    ) -> Tuple[HierarchyNode, BuildStats]:
        """Builds the grouped hierarchy and returns it with build counters."""
        return self._run(root_id, root_type, max_depth, grouped=True)

    def build_flat(
        self, root_id: str, root_type: str, max_depth: int
    ) -> HierarchyNode:
        """Builds the hierarchy without intermediate group nodes.

        Related records hang directly under their parent, concatenated in
        rule order. Validation, depth bound, and cycle suppression are the
        same as build().
        """
        tree, _ = self._run(root_id, root_type, max_depth, grouped=False)
        return tree

    def _run(
        self, root_id: str, root_type: str, max_depth: int, grouped: bool
    ) -> Tuple[HierarchyNode, BuildStats]:
        self._validate_request(root_id, root_type, max_depth)

        root_record = self.store.fetch_by_id(root_type, root_id)
        if root_record is None:
            raise RecordNotFoundError(
                f"Record not found: {root_type} {root_id}",
                record_id=root_id,
                entity_type=root_type,
            )

        logger.info(
            f"Building {'grouped' if grouped else 'flat'} hierarchy for "
            f"{root_type} {root_id} (max_depth={max_depth})"
        )

        visited: Set[str] = set()
        stats = BuildStats()
        tree = self._build_node(
            root_record, root_type, 0, max_depth, visited, stats, grouped
        )
        logger.info(
            f"Built hierarchy for {root_id}: {stats.records_emitted} records, "
            f"{stats.groups_emitted} groups, {stats.cycles_pruned} cycles pruned, "
            f"{stats.relationships_skipped} relationships skipped"
        )
        return tree, stats

    def _validate_request(self, root_id: str, root_type: str, max_depth: int) -> None:
        if not isinstance(root_id, str) or not root_id.strip():
            raise InvalidRequestError(
                "Invalid parameters provided: record id is blank",
                field_name="record_id",
            )
        if not isinstance(root_type, str) or not root_type.strip():
            raise InvalidRequestError(
                "Invalid parameters provided: root type is blank",
                record_id=root_id,
                field_name="root_type",
            )
        if (
            isinstance(max_depth, bool)
            or not isinstance(max_depth, int)
            or max_depth <= 0
        ):
            raise InvalidRequestError(
                f"Invalid parameters provided: max_depth must be a positive "
                f"integer, got {max_depth!r}",
                record_id=root_id,
                field_name="max_depth",
            )
        limit = self.config.max_depth_limit
        if limit is not None and max_depth > limit:
            raise InvalidRequestError(
                f"Invalid parameters provided: max_depth {max_depth} exceeds "
                f"limit {limit}",
                record_id=root_id,
                field_name="max_depth",
            )

    def _build_node(
        self,
        record: Record,
        entity_type: str,
        depth: int,
        max_depth: int,
        visited: Set[str],
        stats: BuildStats,
        grouped: bool,
    ) -> Optional[HierarchyNode]:
        """Recursively builds the node for a record.

        Args:
            record: Record to emit.
            entity_type: Entity type of the record.
            depth: Depth of this record; the root is 0.
            max_depth: Depth at which expansion stops.
            visited: Ids emitted so far in this build. Mutated.
            stats: Build counters. Mutated.
            grouped: Whether children are bucketed into group nodes.

        Returns:
            The record node, or None if the record was already emitted.
        """
        if record.id in visited:
            stats.cycles_pruned += 1
            logger.debug(f"Cycle detected at record {record.id}, pruning branch")
            return None
        visited.add(record.id)

        node = HierarchyNode.record(
            record.id, self._label_for(record, entity_type), entity_type
        )
        stats.records_emitted += 1

        if depth < max_depth:
            if grouped:
                node.children.extend(
                    self._grouped_children(
                        record.id, entity_type, depth + 1, max_depth, visited, stats
                    )
                )
            else:
                node.children.extend(
                    self._flat_children(
                        record.id, entity_type, depth + 1, max_depth, visited, stats
                    )
                )

        return node

    def _grouped_children(
        self,
        parent_id: str,
        parent_type: str,
        next_depth: int,
        max_depth: int,
        visited: Set[str],
        stats: BuildStats,
    ) -> List[HierarchyNode]:
        """Fetches children of a record and buckets them by entity type.

        Group nodes come out in the order their type is first seen while
        iterating the parent's rules; a group left without children is
        dropped.
        """
        records_by_type: Dict[str, List[Record]] = {}
        for result in self._fetch_relationships(parent_id, parent_type, stats):
            if result.records:
                records_by_type.setdefault(result.rule.child_type, []).extend(
                    result.records
                )

        group_nodes: List[HierarchyNode] = []
        for child_type, records in records_by_type.items():
            group = HierarchyNode.group(
                parent_id, child_type, self.config.group_id_separator
            )

            for child_record in records:
                if child_record.id in visited:
                    stats.cycles_pruned += 1
                    continue
                child_node = self._build_node(
                    child_record,
                    child_type,
                    next_depth,
                    max_depth,
                    visited,
                    stats,
                    grouped=True,
                )
                if child_node is not None:
                    group.children.append(child_node)

            if group.children:
                group_nodes.append(group)
                stats.groups_emitted += 1

        return group_nodes

    def _flat_children(
        self,
        parent_id: str,
        parent_type: str,
        next_depth: int,
        max_depth: int,
        visited: Set[str],
        stats: BuildStats,
    ) -> List[HierarchyNode]:
        children: List[HierarchyNode] = []
        for result in self._fetch_relationships(parent_id, parent_type, stats):
            for child_record in result.records:
                if child_record.id in visited:
                    stats.cycles_pruned += 1
                    continue
                child_node = self._build_node(
                    child_record,
                    result.rule.child_type,
                    next_depth,
                    max_depth,
                    visited,
                    stats,
                    grouped=False,
                )
                if child_node is not None:
                    children.append(child_node)
        return children

    def _fetch_relationships(
        self, parent_id: str, parent_type: str, stats: BuildStats
    ) -> List[RelationshipFetchResult]:
        """Runs every child rule of a parent type, in registry order."""
        return [
            self._fetch_relationship(rule, parent_id, stats)
            for rule in self.registry.child_rules_for(parent_type)
        ]

    def _fetch_relationship(
        self, rule: RelationshipRule, parent_id: str, stats: BuildStats
    ) -> RelationshipFetchResult:
        """Fetches the children for one rule.

        Any failure turns into a skipped result so sibling rules and the rest
        of the traversal continue.
        """
        label_field = self.registry.label_field_for(rule.child_type)
        fields = [label_field] if label_field else []

        stats.fetch_count += 1
        try:
            records = self.store.fetch_children(
                rule.child_type, rule.linking_field, parent_id, fields
            )
        except Exception as e:
            stats.relationships_skipped += 1
            if self.config.log_skipped_relationships:
                log_error_with_context(
                    e,
                    logger,
                    {
                        "record_id": parent_id,
                        "stage": "relationship_fetch",
                        "relationship": str(rule),
                    },
                    level=logging.WARNING,
                )
            return RelationshipFetchResult.skip(rule, f"{type(e).__name__}: {e}")

        logger.debug(f"{rule}: {len(records)} records for {parent_id}")
        return RelationshipFetchResult.success(rule, records)

    def _label_for(self, record: Record, entity_type: str) -> Optional[str]:
        label_field = self.registry.label_field_for(entity_type)
        if label_field is None:
            return None
        value = record.get(label_field)
        return None if value is None else str(value)

    # Tree traversal utility methods

    def find_node(self, tree: HierarchyNode, node_id: str) -> Optional[HierarchyNode]:
        """Finds a record or group node by id.

        Args:
            tree: Root of a built hierarchy.
            node_id: Record id or group node id.

        Returns:
            The matching node, or None if not found.
        """

        def search_node(node: HierarchyNode) -> Optional[HierarchyNode]:
            if node.id == node_id:
                return node
            for child in node.children:
                result = search_node(child)
                if result is not None:
                    return result
            return None

        return search_node(tree)

    def get_path_to_root(self, tree: HierarchyNode, node_id: str) -> List[str]:
        """Gets the node ids from the root down to a node, inclusive.

        Group node ids are part of the path. Returns an empty list if the
        node is not in the tree.
        """

        def search_path(
            node: HierarchyNode, current_path: List[str]
        ) -> Optional[List[str]]:
            current_path = current_path + [node.id]
            if node.id == node_id:
                return current_path
            for child in node.children:
                result = search_path(child, current_path)
                if result is not None:
                    return result
            return None

        return search_path(tree, []) or []

    def get_all_record_ids(self, tree: HierarchyNode) -> List[str]:
        """Gets all record ids in the tree in depth-first order."""
        record_ids: List[str] = []

        def traverse(node: HierarchyNode) -> None:
            if not node.is_group:
                record_ids.append(node.id)
            for child in node.children:
                traverse(child)

        traverse(tree)
        return record_ids

    def get_records_by_type(
        self, tree: HierarchyNode, entity_type: str
    ) -> List[HierarchyNode]:
        """Gets all record nodes of an entity type in depth-first order."""
        matches: List[HierarchyNode] = []

        def traverse(node: HierarchyNode) -> None:
            if not node.is_group and node.entity_type == entity_type:
                matches.append(node)
            for child in node.children:
                traverse(child)

        traverse(tree)
        return matches

    def tree_depth(self, tree: HierarchyNode) -> int:
        """Counts record-node levels below the root (the root alone is 0)."""

        def depth_of(node: HierarchyNode) -> int:
            child_depths = [depth_of(child) for child in node.children]
            deepest = max(child_depths, default=0)
            return deepest if node.is_group else deepest + 1

        return depth_of(tree) - 1
