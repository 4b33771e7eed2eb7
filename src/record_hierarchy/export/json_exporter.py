"""JSON Exporter Module.

This module serializes hierarchy trees to JSON for the rendering layer, with
structural validation of the tree before export.

Example:
    >>> exporter = JSONExporter(json_format="pretty")
    >>> exporter.export_to_file(tree, Path("hierarchy.json"))
"""

import json
import logging
import tempfile
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Set, Tuple, Union

from ..models.data_structures import HierarchyNode


logger = logging.getLogger(__name__)

# Version for schema tracking
SCHEMA_VERSION = "1.0.0"


class JSONExportError(Exception):
    """Base exception for JSON export operations."""

    def __init__(self, message: str, record_id: Optional[str] = None):
        self.record_id = record_id
        super().__init__(message)


class SchemaValidationError(JSONExportError):
    """Exception raised when tree validation fails."""

    def __init__(self, message: str, errors: List[str], record_id: Optional[str] = None):
        self.errors = errors
        super().__init__(message, record_id)


class HierarchyJSONEncoder(json.JSONEncoder):
    """JSON encoder for hierarchy data.

    Handles serialization of:
    - HierarchyNode objects -> nested dictionaries
    - datetime objects -> ISO 8601 strings
    - Enum objects -> their values
    - Path objects -> strings
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, HierarchyNode):
            return obj.to_dict()
        elif isinstance(obj, datetime):
            return obj.isoformat()
        elif isinstance(obj, Enum):
            return obj.value
        elif isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


class JSONExporter:
    """Exports hierarchy trees to JSON.

    Every document wraps the tree with schema version and export timestamp
    metadata::

        {"schema_version": "1.0.0", "exported_at": "...", "tree": {...}}

    Attributes:
        json_format: "pretty" (indented) or "compact".
        validate_tree: Validate tree structure before export.
        grouped: Whether exported trees use group nodes (see
            HierarchyBuilder.build_flat for the ungrouped form).
    """

    def __init__(
        self,
        json_format: Literal["pretty", "compact"] = "pretty",
        validate_tree: bool = True,
        grouped: bool = True,
    ) -> None:
        if json_format not in ("pretty", "compact"):
            raise ValueError(
                f"json_format must be 'pretty' or 'compact', got {json_format!r}"
            )
        self.json_format = json_format
        self.validate_tree = validate_tree
        self.grouped = grouped

    def to_dict(self, tree: HierarchyNode) -> Dict[str, Any]:
        """Wraps the tree dictionary with export metadata."""
        return {
            "schema_version": SCHEMA_VERSION,
            "exported_at": datetime.now(timezone.utc),
            "tree": tree.to_dict(),
        }

    def export_to_string(self, tree: HierarchyNode) -> str:
        """Export a tree to a JSON string.

        Raises:
            SchemaValidationError: If validation is enabled and fails.
        """
        if self.validate_tree:
            self._validate_or_raise(tree)
        return json.dumps(
            self.to_dict(tree),
            indent=self._indent(),
            cls=HierarchyJSONEncoder,
            ensure_ascii=False,
        )

    def export_to_file(self, tree: HierarchyNode, output_path: Union[str, Path]) -> None:
        """Export a tree to a JSON file, written atomically.

        Args:
            tree: Root of the hierarchy to export.
            output_path: Destination file. Parent directories are created.

        Raises:
            SchemaValidationError: If validation is enabled and fails.
            JSONExportError: If the file cannot be written.
        """
        output_path = Path(output_path)
        if self.validate_tree:
            self._validate_or_raise(tree)

        try:
            self._write_json_file_atomic(self.to_dict(tree), output_path)
        except (IOError, OSError) as e:
            error_msg = f"Failed to export hierarchy {tree.id}: {e}"
            logger.error(error_msg)
            raise JSONExportError(error_msg, tree.id) from e

        logger.info(f"Exported hierarchy {tree.id} to {output_path}")

    def _indent(self) -> Optional[int]:
        return 2 if self.json_format == "pretty" else None

    def _write_json_file_atomic(self, data: Dict[str, Any], output_path: Path) -> None:
        """Write JSON data through a temporary file, then replace the target."""
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=output_path.parent,
            delete=False,
            suffix=".tmp",
        ) as tmp_file:
            tmp_path = Path(tmp_file.name)

            try:
                json.dump(
                    data,
                    tmp_file,
                    indent=self._indent(),
                    cls=HierarchyJSONEncoder,
                    ensure_ascii=False,
                )
                tmp_file.flush()
            except Exception:
                tmp_file.close()
                tmp_path.unlink(missing_ok=True)
                raise

        tmp_path.replace(output_path)

    def _validate_or_raise(self, tree: HierarchyNode) -> None:
        is_valid, errors = self.validate_structure(tree)
        if not is_valid:
            error_msg = (
                f"Tree validation failed for {tree.id}: {len(errors)} error(s)"
            )
            logger.error(f"{error_msg}: {errors}")
            raise SchemaValidationError(error_msg, errors, tree.id)

    def validate_structure(self, tree: HierarchyNode) -> Tuple[bool, List[str]]:
        """Validate the structural rules of a hierarchy tree.

        Checks that the root is a record node, that record and group nodes
        alternate (or, for flat trees, that there are no groups), that no
        group is empty, and that no record id appears twice.

        Returns:
            Tuple of (is_valid, error messages).
        """
        errors: List[str] = []
        seen: Set[str] = set()

        if tree.is_group:
            errors.append(f"Root {tree.id} is a group node")

        def check(node: HierarchyNode) -> None:
            if node.is_group:
                if not self.grouped:
                    errors.append(f"Flat tree contains group {node.id}")
                if not node.children:
                    errors.append(f"Group {node.id} has no children")
                for child in node.children:
                    if child.is_group:
                        errors.append(f"Group {node.id} contains group {child.id}")
            else:
                if node.id in seen:
                    errors.append(f"Record {node.id} appears more than once")
                seen.add(node.id)
                for child in node.children:
                    if self.grouped and not child.is_group:
                        errors.append(
                            f"Record {node.id} contains record {child.id} directly"
                        )
            for child in node.children:
                check(child)

        check(tree)
        return len(errors) == 0, errors
