"""Tests for docconfig.json loading and validation."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from blueprint_docs.config import DEFAULT_EXCLUDES, DocConfig, ExampleDefaults, parse_config, validate_config
from blueprint_docs.exceptions import ConfigError


class TestValidateConfig:
    def test_minimal_config_defaults(self):
        config = validate_config({"output": "docs/api.apib"})
        assert config.output == "docs/api.apib"
        assert config.host is None
        assert config.title is None
        assert config.description is None
        assert config.after_hook is None
        assert config.defaults == ExampleDefaults()
        assert (config.defaults.string, config.defaults.number, config.defaults.boolean, config.defaults.json_key) == ("abcd", 0, True, "key")
        assert config.examples.response == {}
        assert config.examples.param == {}
        assert config.router_types == ("Router",)
        assert config.exclude == DEFAULT_EXCLUDES

    def test_full_config(self):
        config = validate_config({
            "output": "api.apib",
            "host": "https://api.example.com",
            "title": "Greeter",
            "description": "Says hello.",
            "afterHook": "aglio -i api.apib -o api.html",
            "routerTypes": ["Router", "APIRouter"],
            "exclude": ["generated"],
        })
        assert config.host == "https://api.example.com"
        assert config.after_hook == "aglio -i api.apib -o api.html"
        assert config.router_types == ("Router", "APIRouter")
        assert config.exclude == ("generated",)

    def test_missing_output(self):
        with pytest.raises(ValueError, match="Property output is not defined"):
            validate_config({"title": "x"})

    def test_non_string_output(self):
        with pytest.raises(ValueError, match="Property output is not defined"):
            validate_config({"output": 5})

    def test_not_an_object(self):
        with pytest.raises(ValueError, match="Config must be a JSON object"):
            validate_config(["output"])

    def test_non_string_metadata_ignored(self):
        config = validate_config({"output": "a", "host": 80, "title": ["x"], "afterHook": True})
        assert config.host is None
        assert config.title is None
        assert config.after_hook is None

    def test_mistyped_defaults_fall_back(self):
        config = validate_config({"output": "a", "defaults": {"string": 5, "number": True, "boolean": "yes", "jsonKey": "id"}})
        assert config.defaults.string == "abcd"
        assert config.defaults.number == 0
        assert config.defaults.boolean is True
        assert config.defaults.json_key == "id"

    def test_defaults_not_an_object(self):
        config = validate_config({"output": "a", "defaults": "nope", "examples": 3})
        assert config.defaults == ExampleDefaults()
        assert config.examples.response == {}

    def test_all_bucket_merged_into_both_tables(self):
        config = validate_config({
            "output": "a",
            "examples": {"response": {"id": 1}, "param": {"name": "ryan"}, "all": {"email": "a@b.c"}},
        })
        assert config.examples.response == {"id": 1, "email": "a@b.c"}
        assert config.examples.param == {"name": "ryan", "email": "a@b.c"}

    def test_config_is_frozen(self):
        config = DocConfig(output="a")
        with pytest.raises(ValidationError):
            config.output = "b"  # type: ignore[misc]


class TestParseConfig:
    def test_valid_file(self, tmp_path: Path):
        file = tmp_path / "docconfig.json"
        file.write_text(json.dumps({"output": "api.apib", "title": "T"}))
        assert parse_config(file).title == "T"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="was not found"):
            parse_config(tmp_path / "docconfig.json")

    def test_invalid_json(self, tmp_path: Path):
        file = tmp_path / "docconfig.json"
        file.write_text("{ not json")
        with pytest.raises(ConfigError, match="Could not parse config file"):
            parse_config(file)

    def test_invalid_config(self, tmp_path: Path):
        file = tmp_path / "docconfig.json"
        file.write_text(json.dumps({"title": "T"}))
        with pytest.raises(ConfigError) as exc_info:
            parse_config(file)
        assert "is invalid" in str(exc_info.value)
        assert "Property output is not defined" in str(exc_info.value)
