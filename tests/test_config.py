"""
Tests for configuration loading and the specification loader.
"""

from argparse import Namespace
from pathlib import Path
from unittest import TestCase

import pytest
import yaml

from domain_scaffold.config_validation import (
    ToolConfigSchema,
    is_valid_package_name,
    load_config,
    validate_and_parse_config,
)
from domain_scaffold.constants import MAX_DEPTH
from domain_scaffold.exceptions import ConfigurationError, SpecificationError
from domain_scaffold.loader import load_raw_specification, load_specification


class TestToolConfigSchema(TestCase):
    """Test cases for ToolConfigSchema"""

    def test_defaults(self):
        config = ToolConfigSchema()

        assert config.spec_path == "domain.yaml"
        assert config.package_name == ""
        assert config.max_depth == MAX_DEPTH
        assert config.warnings_as_errors is False
        assert config.format_code is True
        assert config.templates == ["entity", "value_object", "enum", "dtos"]

    def test_dictionary_access(self):
        config = ToolConfigSchema(package_name="shop")

        assert config["package_name"] == "shop"
        assert config.get("missing", "fallback") == "fallback"

    def test_templates_from_comma_string(self):
        config = ToolConfigSchema(templates="entity, enum")

        assert config.templates == ["entity", "enum"]

    def test_package_name_is_normalized(self):
        assert ToolConfigSchema(package_name=" shop.orders. ").package_name == "shop.orders"

    def test_package_names(self):
        assert is_valid_package_name("")
        assert is_valid_package_name("shop.orders")
        assert not is_valid_package_name("shop.class")
        assert not is_valid_package_name("my-shop")


class TestValidateAndParseConfig(TestCase):
    """Test cases for validate_and_parse_config"""

    def test_unknown_template(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_and_parse_config({"templates": ["entity", "serializers"]}, "tool.yaml")

        error = exc_info.value
        assert error.context["config_file"] == "tool.yaml"
        assert any("serializers" in s for s in error.suggestions)

    def test_max_depth_bounds(self):
        with pytest.raises(ConfigurationError):
            validate_and_parse_config({"max_depth": MAX_DEPTH + 1})
        with pytest.raises(ConfigurationError):
            validate_and_parse_config({"max_depth": 0})

    def test_every_problem_is_listed(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_and_parse_config({"max_depth": 0, "package_name": "my-shop"})

        assert len(exc_info.value.suggestions) == 2

    def test_extra_keys_are_ignored(self):
        config = validate_and_parse_config({"database": "postgres"})

        assert not hasattr(config, "database")


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_load_config_from_file(tmp_path):
    config_file = write_yaml(tmp_path / "tool.yaml", {"package_name": "shop", "max_depth": 3})

    config = load_config(str(config_file))

    assert config.package_name == "shop"
    assert config.max_depth == 3
    assert Path(config.output_dir).is_absolute()


def test_cli_arguments_override_file(tmp_path):
    config_file = write_yaml(tmp_path / "tool.yaml", {"package_name": "shop", "max_depth": 3})
    cli_args = Namespace(package_name="store", max_depth=None, verbose=True)

    config = load_config(str(config_file), cli_args)

    assert config.package_name == "store"
    assert config.max_depth == 3


def test_load_config_without_file():
    config = load_config(None, Namespace(output_dir="out"))

    assert config.output_dir == str(Path("out").resolve())


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path / "missing.yaml"))


def test_invalid_config_yaml(tmp_path):
    config_file = tmp_path / "tool.yaml"
    config_file.write_text("package_name: [unclosed", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_config(str(config_file))


def test_load_specification(spec_file):
    document = load_specification(spec_file)

    assert document.module == "shop"
    assert document.aggregates[0].name == "Order"


def test_missing_specification(tmp_path):
    with pytest.raises(SpecificationError) as exc_info:
        load_raw_specification(tmp_path / "missing.yaml")

    assert "missing.yaml" in exc_info.value.context["spec_file"]


def test_invalid_specification_yaml(tmp_path):
    spec = tmp_path / "domain.yaml"
    spec.write_text("aggregates: [unclosed", encoding="utf-8")

    with pytest.raises(SpecificationError):
        load_raw_specification(spec)
