"""Configuration loading and validation for the record hierarchy system.

This module loads system configuration from YAML files, resolves relative
paths against the project root, and validates the hierarchy settings and the
relationship tables.

Typical usage example:
    config = Config.load()
    errors = Config.validate(config)
    if errors:
        raise ConfigurationError(f"Configuration invalid: {errors}")
"""

import yaml
from pathlib import Path
from typing import List, Dict, Any, Optional

from ..processing.hierarchy_builder import HierarchyConfig
from ..registry.relationship_registry import RelationshipRegistry
from .error_handlers import ConfigurationError


DEFAULT_CONFIG_PATH = "config/hierarchy_config.yaml"


class SystemConfig:
    """Container for system configuration parameters.

    Attributes:
        database: Dictionary containing database configuration (path).
        hierarchy: Dictionary of HierarchyConfig keyword arguments.
        relationships: Parent type to list of {child_type, linking_field}.
        label_fields: Entity type to label field name.
        logging: Dictionary containing logging configuration (level).
    """

    REQUIRED_KEYS = [
        "database",
        "hierarchy",
        "relationships",
        "label_fields",
        "logging",
    ]

    def __init__(self, **config_dict: Dict[str, Any]) -> None:
        """Initialize SystemConfig from configuration dictionary.

        Raises:
            KeyError: If any required configuration section is missing.
        """
        missing_keys = [key for key in self.REQUIRED_KEYS if key not in config_dict]
        if missing_keys:
            raise KeyError(f"Missing required configuration sections: {missing_keys}")

        self.database: Dict[str, Any] = config_dict["database"] or {}
        self.hierarchy: Dict[str, Any] = config_dict["hierarchy"] or {}
        self.relationships: Dict[str, Any] = config_dict["relationships"] or {}
        self.label_fields: Dict[str, str] = config_dict["label_fields"] or {}
        self.logging: Dict[str, Any] = config_dict["logging"] or {}

    def build_registry(self) -> RelationshipRegistry:
        """Creates the relationship registry from the configured tables.

        Raises:
            ConfigurationError: If the tables are malformed.
        """
        return RelationshipRegistry.from_config(
            {"relationships": self.relationships, "label_fields": self.label_fields}
        )

    def build_hierarchy_config(self) -> HierarchyConfig:
        """Creates the builder configuration from the 'hierarchy' section.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid.
        """
        try:
            return HierarchyConfig(**self.hierarchy)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid hierarchy configuration: {e}",
                config_key="hierarchy",
                original_error=e,
            ) from e


class Config:
    """Static utility class for loading and validating configuration files."""

    # Configuration keys that contain relative paths, resolved during loading
    _RELATIVE_PATH_KEYS = [
        "database.path",
    ]

    @staticmethod
    def project_root() -> Path:
        """Returns the project root, the directory holding src/."""
        return Path(__file__).parent.parent.parent.parent

    @staticmethod
    def _resolve_nested_path(
        config_dict: Dict[str, Any], key_path: str, project_root: Path
    ) -> None:
        """Resolve a nested config path to absolute path in-place.

        Args:
            config_dict: Configuration dictionary to modify in-place.
            key_path: Dot-separated path to the key (e.g., "database.path").
            project_root: Project root directory for resolving relative paths.

        Raises:
            KeyError: If any key in the path doesn't exist in config_dict.
        """
        keys = key_path.split(".")
        current = config_dict

        for key in keys[:-1]:
            current = current[key]

        final_key = keys[-1]
        current[final_key] = str(project_root / current[final_key])

    @staticmethod
    def load(config_path: Optional[str] = DEFAULT_CONFIG_PATH) -> SystemConfig:
        """Load system configuration from a YAML file.

        Args:
            config_path: Path to the configuration YAML file. Relative paths
                are resolved from the project root. Defaults to
                "config/hierarchy_config.yaml".

        Returns:
            SystemConfig object containing the loaded and resolved configuration.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            yaml.YAMLError: If the configuration file is not valid YAML.
            KeyError: If required configuration keys are missing.
            ValueError: If the configuration file doesn't contain a dictionary.
        """
        project_root = Config.project_root()
        config_file_path = Path(config_path or DEFAULT_CONFIG_PATH)
        if not config_file_path.is_absolute():
            config_file_path = project_root / config_file_path

        if not config_file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file_path}")

        try:
            with open(config_file_path, "r", encoding="utf-8") as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(
                f"Failed to parse configuration file: {config_file_path}"
            ) from e

        if not isinstance(config_dict, dict):
            raise ValueError("Configuration file must contain a YAML dictionary")

        for path_key in Config._RELATIVE_PATH_KEYS:
            try:
                Config._resolve_nested_path(config_dict, path_key, project_root)
            except (KeyError, TypeError) as e:
                raise KeyError(
                    f"Missing required configuration path: {path_key}"
                ) from e

        return SystemConfig(**config_dict)

    @staticmethod
    def validate(config: SystemConfig) -> List[str]:
        """Validate a loaded configuration.

        Checks the hierarchy settings, the relationship tables, the logging
        level, and that the database path does not point at a directory.

        Args:
            config: SystemConfig object to validate.

        Returns:
            List of error messages. Empty list if the configuration is valid.
        """
        errors: List[str] = []

        try:
            config.build_hierarchy_config()
        except ConfigurationError as e:
            errors.append(e.message)

        try:
            config.build_registry()
        except ConfigurationError as e:
            errors.append(e.message)

        level = str(config.logging.get("level", "INFO")).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"Invalid logging.level: {level}")

        db_path = Path(config.database["path"])
        if db_path.is_dir():
            errors.append(
                f"Expected file for database.path, but found directory: {db_path}"
            )

        return errors
