"""
Unit tests for config_loader module.
"""

import pytest
import yaml

from record_hierarchy.processing.hierarchy_builder import HierarchyConfig
from record_hierarchy.registry.relationship_registry import RelationshipRegistry
from record_hierarchy.utils.config_loader import Config, SystemConfig
from record_hierarchy.utils.error_handlers import ConfigurationError


def write_config(path, config_dict):
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_dict, f)
    return path


@pytest.fixture
def config_dict(tmp_path):
    """Minimal valid configuration dictionary."""
    return {
        "database": {"path": str(tmp_path / "records.db")},
        "hierarchy": {"default_max_depth": 2, "max_depth_limit": 4},
        "relationships": {
            "Account": [{"child_type": "Contact", "linking_field": "AccountId"}]
        },
        "label_fields": {"Account": "Name", "Contact": "Name"},
        "logging": {"level": "DEBUG"},
    }


class TestConfigLoad:
    def test_load_default_config(self):
        config = Config.load()

        assert config.database["path"] == str(
            Config.project_root() / "data" / "records.db"
        )
        assert config.hierarchy["default_max_depth"] == 3
        assert Config.validate(config) == []

        registry = config.build_registry()
        default = RelationshipRegistry.default()
        assert dict(registry.relationships) == dict(default.relationships)
        assert dict(registry.label_fields) == dict(default.label_fields)

    def test_load_absolute_path(self, tmp_path, config_dict):
        config_path = write_config(tmp_path / "config.yaml", config_dict)
        config = Config.load(str(config_path))

        assert isinstance(config, SystemConfig)
        assert config.database["path"] == str(tmp_path / "records.db")
        assert config.build_hierarchy_config() == HierarchyConfig(
            default_max_depth=2, max_depth_limit=4
        )
        assert config.logging["level"] == "DEBUG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.load(str(tmp_path / "missing.yaml"))

    def test_malformed_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("database: [unclosed", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            Config.load(str(config_path))

    def test_non_mapping(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValueError):
            Config.load(str(config_path))

    def test_missing_section(self, tmp_path, config_dict):
        del config_dict["logging"]
        config_path = write_config(tmp_path / "config.yaml", config_dict)
        with pytest.raises(KeyError):
            Config.load(str(config_path))

    def test_missing_database_path(self, tmp_path, config_dict):
        config_dict["database"] = {}
        config_path = write_config(tmp_path / "config.yaml", config_dict)
        with pytest.raises(KeyError):
            Config.load(str(config_path))


class TestConfigValidate:
    def test_valid(self, tmp_path, config_dict):
        config = Config.load(str(write_config(tmp_path / "c.yaml", config_dict)))
        assert Config.validate(config) == []

    def test_invalid_hierarchy_values(self, config_dict):
        config_dict["hierarchy"] = {"default_max_depth": 0}
        errors = Config.validate(SystemConfig(**config_dict))
        assert len(errors) == 1
        assert errors[0].startswith("Invalid hierarchy configuration")

    def test_unknown_hierarchy_key(self, config_dict):
        config_dict["hierarchy"] = {"max_width": 5}
        config = SystemConfig(**config_dict)
        with pytest.raises(ConfigurationError) as exc_info:
            config.build_hierarchy_config()
        assert exc_info.value.config_key == "hierarchy"

    def test_invalid_relationships(self, config_dict):
        config_dict["relationships"] = {"Account": [{"child_type": "Contact"}]}
        errors = Config.validate(SystemConfig(**config_dict))
        assert errors == [
            "relationships.Account[0].linking_field must be a non-empty "
            "string, got None"
        ]

    def test_invalid_logging_level(self, config_dict):
        config_dict["logging"] = {"level": "loud"}
        assert Config.validate(SystemConfig(**config_dict)) == [
            "Invalid logging.level: LOUD"
        ]

    def test_database_path_is_directory(self, tmp_path, config_dict):
        config_dict["database"]["path"] = str(tmp_path)
        errors = Config.validate(SystemConfig(**config_dict))
        assert errors == [
            f"Expected file for database.path, but found directory: {tmp_path}"
        ]

    def test_empty_sections_default(self, config_dict):
        config_dict["hierarchy"] = None
        config_dict["logging"] = None
        config = SystemConfig(**config_dict)
        assert config.build_hierarchy_config() == HierarchyConfig()
        assert Config.validate(config) == []
