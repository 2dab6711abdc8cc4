"""Example value synthesis from structural schemas.

``create_schema_example`` is a pure function: the defaults and the named
override table of the current context are passed in explicitly. Response
and request bodies use the config's response table, parameters use the
param table, so the two contexts never see each other's overrides.
"""

import json
from collections.abc import Mapping
from typing import Any

from blueprint_docs.config import DocConfig, ExampleDefaults
from blueprint_docs.exceptions import UnsupportedSchemaError
from blueprint_docs.generator.models import Schema


def create_schema_example(
    schema: Schema,
    defaults: ExampleDefaults,
    examples: Mapping[str, Any],
    name: str | None = None,
) -> Any:
    """Create an example value for a schema.

    Args:
        schema: Structural schema (object, array, string, number or boolean).
        defaults: Values used for primitives without a named override.
        examples: Named literal overrides for the current context.
        name: Property name of the value, used to look up overrides.

    Raises:
        UnsupportedSchemaError: For any other schema kind.
    """
    kind = schema.get("type")
    if isinstance(kind, list) and kind:
        kind = kind[0]

    match kind:
        case "object":
            result = {prop: create_schema_example(sub, defaults, examples, prop) for prop, sub in (schema.get("properties") or {}).items()}
            additional = schema.get("additionalProperties")
            if isinstance(additional, dict):
                result[defaults.json_key] = create_schema_example(additional, defaults, examples)
            return result
        case "array":
            if name is not None and name in examples:
                return examples[name]
            items = schema.get("items")
            if isinstance(items, list):
                return [create_schema_example(item, defaults, examples) for item in items]
            return [create_schema_example(items or {}, defaults, examples)]
        case "number" | "string" | "boolean":
            if name is not None and name in examples:
                return examples[name]
            return getattr(defaults, kind)
        case _:
            raise UnsupportedSchemaError(f"Unexpected type {kind} in schema {json.dumps(schema)}")


def response_example(schema: Schema, config: DocConfig) -> Any:
    """Example for a response or request body."""
    return create_schema_example(schema, config.defaults, config.examples.response)


def param_example(name: str, config: DocConfig) -> str:
    """Example text for a URL or query parameter."""
    examples = config.examples.param
    if name in examples:
        value = examples[name]
        return value if isinstance(value, str) else json.dumps(value)
    return config.defaults.string
