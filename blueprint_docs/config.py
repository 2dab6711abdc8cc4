"""Documentation config file (docconfig.json) loading and validation.

Example docconfig.json:
    {
        "output": "docs/api.apib",
        "host": "https://api.example.com",
        "title": "Greeter API",
        "defaults": {"string": "abcd", "number": 0, "boolean": true, "jsonKey": "key"},
        "examples": {"response": {"id": 7}, "param": {"name": "ryan"}, "all": {"email": "a@b.c"}},
        "afterHook": "aglio -i docs/api.apib -o docs/api.html"
    }

Only ``output`` is required. Entries of ``examples.all`` are copied into both
the response and param tables when the config is loaded.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from blueprint_docs.exceptions import ConfigError

DEFAULT_EXCLUDES: tuple[str, ...] = ("node_modules", ".venv", "site-packages")


class ExampleDefaults(BaseModel):
    """Values used for primitives that have no named example override."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    string: str = "abcd"
    number: int | float = 0
    boolean: bool = True
    json_key: str = Field(default="key", alias="jsonKey")

    @model_validator(mode="before")
    @classmethod
    def _drop_mistyped(cls, data: Any) -> Any:
        """Ignore entries of the wrong JSON type so they fall back to the default."""
        if not isinstance(data, dict):
            return {}
        kept: dict[str, Any] = {}
        for key, value in data.items():
            if key == "string" or key in ("jsonKey", "json_key"):
                ok = isinstance(value, str)
            elif key == "number":
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
            elif key == "boolean":
                ok = isinstance(value, bool)
            else:
                ok = False
            if ok:
                kept[key] = value
        return kept


class ExampleTables(BaseModel):
    """Named literal example overrides, one table per context."""

    model_config = ConfigDict(frozen=True)

    response: dict[str, Any] = Field(default_factory=dict)
    param: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _merge_all_bucket(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        response = dict(data["response"]) if isinstance(data.get("response"), dict) else {}
        param = dict(data["param"]) if isinstance(data.get("param"), dict) else {}
        shared = data.get("all")
        if isinstance(shared, dict):
            for name, value in shared.items():
                response[name] = value
                param[name] = value
        return {"response": response, "param": param}


class DocConfig(BaseModel):
    """Validated documentation config, read-only during a pass."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    output: str
    host: str | None = None
    title: str | None = None
    description: str | None = None
    defaults: ExampleDefaults = Field(default_factory=ExampleDefaults)
    examples: ExampleTables = Field(default_factory=ExampleTables)
    after_hook: str | None = Field(default=None, alias="afterHook")
    router_types: tuple[str, ...] = Field(default=("Router",), alias="routerTypes")
    exclude: tuple[str, ...] = DEFAULT_EXCLUDES

    @field_validator("output", mode="before")
    @classmethod
    def _require_output(cls, v: Any) -> Any:
        if not isinstance(v, str):
            raise ValueError("Property output is not defined")
        return v

    @field_validator("host", "title", "description", "after_hook", mode="before")
    @classmethod
    def _optional_string(cls, v: Any) -> str | None:
        """Non-string optional values are ignored rather than rejected."""
        return v if isinstance(v, str) else None

    @field_validator("defaults", "examples", mode="before")
    @classmethod
    def _object_or_empty(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}


def validate_config(raw: Any) -> DocConfig:
    """Validate a decoded config object.

    Raises:
        ValueError: If the object is not a mapping or lacks ``output``.
    """
    if not isinstance(raw, dict):
        raise ValueError("Config must be a JSON object")
    if not isinstance(raw.get("output"), str):
        raise ValueError("Property output is not defined")
    try:
        return DocConfig.model_validate(raw)
    except ValidationError as e:
        messages = "; ".join(str(err["msg"]).removeprefix("Value error, ") for err in e.errors())
        raise ValueError(messages) from e


def parse_config(file: str | Path) -> DocConfig:
    """Locate, decode and validate a config file.

    Raises:
        ConfigError: With a message meant to be displayed to the user.
    """
    try:
        raw_config = Path(file).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            f"Error: Config file {file} was not found.\n  {e}"
            "\nA docconfig.json file needs to be created with parameters such as where the api"
            "\ndocumentation should be created. If you've named the file something else, use"
            "\nthe --project option."
        ) from e
    try:
        data = json.loads(raw_config)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Error: Could not parse config file {file} as JSON.\n  {e}") from e
    try:
        return validate_config(data)
    except ValueError as e:
        raise ConfigError(f"Error: Config file {file} is invalid.\n  {e}\nSee README.md for docconfig.json format.") from e
