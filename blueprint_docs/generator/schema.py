"""Static type-name to JSON-Schema resolution.

Collects the class definitions and type aliases of every analysed file into
a TypeTable, then turns type names (or type expressions such as
``list[User]``) into JSON-Schema-like dicts limited to the object, array,
string, number and boolean kinds. Nothing is imported or executed.
"""

import ast
from dataclasses import dataclass, field
from typing import Any

from blueprint_docs.exceptions import GeneratorError, SchemaResolutionError
from blueprint_docs.generator.models import Schema
from blueprint_docs.generator.program import Program

JSON_SCHEMA_DRAFT = "http://json-schema.org/draft-07/schema#"

PRIMITIVE_SCHEMAS: dict[str, Schema] = {
    "str": {"type": "string"},
    "bytes": {"type": "string"},
    "Path": {"type": "string"},
    "datetime": {"type": "string", "format": "date-time"},
    "date": {"type": "string", "format": "date"},
    "time": {"type": "string", "format": "time"},
    "UUID": {"type": "string", "format": "uuid"},
    "EmailStr": {"type": "string", "format": "email"},
    "int": {"type": "number"},
    "float": {"type": "number"},
    "Decimal": {"type": "number"},
    "bool": {"type": "boolean"},
}

ARRAY_TYPES: frozenset[str] = frozenset({
    "list", "List", "set", "Set", "frozenset", "FrozenSet", "Sequence", "MutableSequence",
    "Iterable", "Collection", "AbstractSet", "deque", "Deque",
})
TUPLE_TYPES: frozenset[str] = frozenset({"tuple", "Tuple"})
MAPPING_TYPES: frozenset[str] = frozenset({"dict", "Dict", "Mapping", "MutableMapping", "defaultdict", "OrderedDict"})
ANY_TYPES: frozenset[str] = frozenset({"Any", "object"})
UNWRAP_TYPES: frozenset[str] = frozenset({"Annotated", "Required", "NotRequired", "ReadOnly", "Final"})
ENUM_BASES: frozenset[str] = frozenset({"Enum", "StrEnum", "IntEnum", "Flag", "IntFlag"})
NAMED_TUPLE_BASES: frozenset[str] = frozenset({"NamedTuple"})
TYPED_DICT_BASES: frozenset[str] = frozenset({"TypedDict"})

_PRIMITIVE_KINDS: frozenset[str] = frozenset({"string", "number", "boolean", "null"})


@dataclass
class TypeTable:
    """Mutable during construction, used read-only after building.

    Maps type names to their class definitions and alias targets. The first
    definition of a name wins.
    """

    classes: dict[str, ast.ClassDef] = field(default_factory=dict)
    aliases: dict[str, ast.expr] = field(default_factory=dict)


def build_type_table(program: Program) -> TypeTable:
    """Collect classes and type aliases from every file of the program."""
    table = TypeTable()
    for source in program.files:
        for node in ast.walk(source.tree):
            if isinstance(node, ast.ClassDef):
                table.classes.setdefault(node.name, node)
        for node in source.tree.body:
            if alias := _extract_alias(node):
                table.aliases.setdefault(*alias)
    return table


def build_schema_generator(program: Program) -> "SchemaGenerator":
    """Create the program-wide schema generator.

    Raises:
        GeneratorError: If the program has no files to reflect on.
    """
    if not program.files:
        raise GeneratorError("Program has no valid input to generate schemas from")
    return SchemaGenerator(build_type_table(program))


class SchemaGenerator:
    """Resolves type names against a TypeTable."""

    def __init__(self, table: TypeTable):
        self.table = table

    def get_schema_for_symbol(self, name: str) -> Schema:
        """Return the top-level schema of a type name or type expression.

        Raises:
            SchemaResolutionError: If the name is unknown, recursive, or not a type.
        """
        try:
            expr = ast.parse(name.strip(), mode="eval").body
        except SyntaxError as e:
            raise SchemaResolutionError(f"'{name}' is not a type expression") from e
        schema = self._resolve(expr, ())
        return {"$schema": JSON_SCHEMA_DRAFT, **schema}

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _resolve(self, expr: ast.expr, stack: tuple[str, ...]) -> Schema:
        if isinstance(expr, ast.Constant):
            if expr.value is None:
                return {"type": "null"}
            if isinstance(expr.value, str):
                return self._forward_ref(expr.value, stack)
            raise SchemaResolutionError(f"{expr.value!r} is not a type")
        if isinstance(expr, (ast.Name, ast.Attribute)):
            return self._resolve_name(_simple_name(expr), stack)
        if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
            return self._union(_flatten_union(expr), stack)
        if isinstance(expr, ast.Subscript):
            return self._resolve_subscript(expr, stack)
        raise SchemaResolutionError(f"unsupported type expression {ast.unparse(expr)}")

    def _forward_ref(self, text: str, stack: tuple[str, ...]) -> Schema:
        try:
            inner = ast.parse(text, mode="eval").body
        except SyntaxError as e:
            raise SchemaResolutionError(f"invalid forward reference '{text}'") from e
        return self._resolve(inner, stack)

    def _resolve_name(self, name: str, stack: tuple[str, ...]) -> Schema:
        if name in PRIMITIVE_SCHEMAS:
            return dict(PRIMITIVE_SCHEMAS[name])
        if name in ANY_TYPES:
            return {}
        if name in ARRAY_TYPES or name in TUPLE_TYPES:
            return {"type": "array", "items": {}}
        if name in MAPPING_TYPES:
            return {"type": "object", "properties": {}, "additionalProperties": True}
        if name in stack:
            raise SchemaResolutionError(f"type {name} is recursive")
        if name in self.table.classes:
            return self._class_schema(self.table.classes[name], (*stack, name))
        if name in self.table.aliases:
            return self._resolve(self.table.aliases[name], (*stack, name))
        raise SchemaResolutionError(f"type {name} not found")

    def _resolve_subscript(self, expr: ast.Subscript, stack: tuple[str, ...]) -> Schema:
        base = _simple_name(expr.value)
        args = _subscript_args(expr)

        if base == "Optional":
            return self._resolve(args[0], stack)
        if base == "Union":
            return self._union(args, stack)
        if base in UNWRAP_TYPES:
            return self._resolve(args[0], stack)
        if base == "Literal":
            return _literal_schema(args)
        if base in ARRAY_TYPES:
            return {"type": "array", "items": self._resolve(args[0], stack)}
        if base in TUPLE_TYPES:
            if len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis:
                return {"type": "array", "items": self._resolve(args[0], stack)}
            items = [self._resolve(arg, stack) for arg in args]
            return {"type": "array", "items": items, "minItems": len(items), "maxItems": len(items)}
        if base in MAPPING_TYPES:
            value = self._resolve(args[-1], stack)
            return {"type": "object", "properties": {}, "additionalProperties": value}
        # Parameterised user generics resolve to their base class.
        return self._resolve_name(base, stack)

    def _union(self, members: list[ast.expr], stack: tuple[str, ...]) -> Schema:
        schemas = [self._resolve(m, stack) for m in members if not _is_none(m)]
        if not schemas:
            return {"type": "null"}
        if len(schemas) == 1:
            return schemas[0]
        if all(set(s) == {"type"} and s["type"] in _PRIMITIVE_KINDS for s in schemas):
            kinds: list[str] = []
            for s in schemas:
                if s["type"] not in kinds:
                    kinds.append(s["type"])
            return {"type": kinds[0] if len(kinds) == 1 else kinds}
        return {"anyOf": schemas}

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _class_schema(self, node: ast.ClassDef, stack: tuple[str, ...]) -> Schema:
        base_names = {_simple_name(b.value if isinstance(b, ast.Subscript) else b) for b in node.bases}
        if base_names & ENUM_BASES:
            return _enum_schema(node, base_names)
        if base_names & NAMED_TUPLE_BASES:
            items = [self._resolve(ann, stack) for _, ann, _, _ in _class_fields(node)]
            return {"type": "array", "items": items, "minItems": len(items), "maxItems": len(items)}

        properties: dict[str, Schema] = {}
        required: list[str] = []
        additional: Any = False

        for base in node.bases:
            base_name = _simple_name(base.value if isinstance(base, ast.Subscript) else base)
            if base_name in MAPPING_TYPES and isinstance(base, ast.Subscript):
                additional = self._resolve(_subscript_args(base)[-1], stack)
            elif base_name in self.table.classes and base_name not in stack:
                inherited = self._class_schema(self.table.classes[base_name], (*stack, base_name))
                properties.update(inherited.get("properties", {}))
                required.extend(r for r in inherited.get("required", []) if r not in required)
                if inherited.get("additionalProperties") not in (None, False):
                    additional = inherited["additionalProperties"]

        total = _class_keyword(node, "total") is not False
        is_typed_dict = bool(base_names & TYPED_DICT_BASES)
        extra_items = _class_keyword_expr(node, "extra_items")
        if extra_items is not None:
            additional = self._resolve(extra_items, stack)
        if _allows_extra(node):
            additional = True

        for name, annotation, has_default, doc in _class_fields(node):
            prop = self._resolve(annotation, stack)
            if doc:
                prop = {**prop, "description": doc}
            properties[name] = prop
            if _is_required(annotation, has_default, total if is_typed_dict else True) and name not in required:
                required.append(name)

        schema: Schema = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        schema["additionalProperties"] = additional
        docstring = ast.get_docstring(node)
        if docstring:
            schema["description"] = docstring
        return schema


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _extract_alias(node: ast.stmt) -> tuple[str, ast.expr] | None:
    """Return (name, target) for module-level type aliases and NewTypes."""
    if isinstance(node, ast.TypeAlias) and isinstance(node.name, ast.Name):
        return node.name.id, node.value
    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name) and node.value is not None:
        if "TypeAlias" in ast.unparse(node.annotation):
            return node.target.id, node.value
        return None
    if isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
        name = node.targets[0].id
        value = node.value
        if isinstance(value, ast.Call) and _simple_name(value.func) == "NewType" and len(value.args) == 2:
            return name, value.args[1]
        if isinstance(value, ast.Subscript) or (isinstance(value, ast.BinOp) and isinstance(value.op, ast.BitOr)):
            return name, value
        if isinstance(value, (ast.Name, ast.Attribute)) and name[:1].isupper():
            return name, value
    return None


def _simple_name(expr: ast.expr) -> str:
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        return expr.attr
    return ast.unparse(expr)


def _subscript_args(expr: ast.Subscript) -> list[ast.expr]:
    if isinstance(expr.slice, ast.Tuple):
        return list(expr.slice.elts)
    return [expr.slice]


def _flatten_union(expr: ast.expr) -> list[ast.expr]:
    if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
        return _flatten_union(expr.left) + _flatten_union(expr.right)
    return [expr]


def _is_none(expr: ast.expr) -> bool:
    return (isinstance(expr, ast.Constant) and expr.value is None) or (isinstance(expr, ast.Name) and expr.id == "None")


def _is_optional(expr: ast.expr) -> bool:
    if isinstance(expr, ast.Subscript):
        base = _simple_name(expr.value)
        if base == "Optional":
            return True
        if base == "Union":
            return any(_is_none(arg) for arg in _subscript_args(expr))
        if base == "Annotated":
            return _is_optional(_subscript_args(expr)[0])
    if isinstance(expr, ast.BinOp):
        return any(_is_none(m) for m in _flatten_union(expr))
    return False


def _is_required(annotation: ast.expr, has_default: bool, total: bool) -> bool:
    if isinstance(annotation, ast.Subscript):
        base = _simple_name(annotation.value)
        if base == "NotRequired":
            return False
        if base == "Required":
            return True
    return total and not has_default and not _is_optional(annotation)


def _literal_schema(args: list[ast.expr]) -> Schema:
    values: list[Any] = []
    kinds: list[str] = []
    for arg in args:
        if not isinstance(arg, ast.Constant):
            raise SchemaResolutionError(f"unsupported Literal value {ast.unparse(arg)}")
        values.append(arg.value)
        kind = _json_kind(arg.value)
        if kind not in kinds:
            kinds.append(kind)
    return {"type": kinds[0] if len(kinds) == 1 else kinds, "enum": values}


def _json_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if value is None:
        return "null"
    return "string"


def _enum_schema(node: ast.ClassDef, base_names: set[str]) -> Schema:
    values: list[Any] = []
    for item in node.body:
        if isinstance(item, ast.Assign) and len(item.targets) == 1 and isinstance(item.targets[0], ast.Name):
            member = item.targets[0].id
            if member.startswith("_"):
                continue
            values.append(item.value.value if isinstance(item.value, ast.Constant) else member)
    if base_names & {"IntEnum", "IntFlag"}:
        return {"type": "number", "enum": values}
    kinds = {_json_kind(v) for v in values}
    return {"type": kinds.pop() if len(kinds) == 1 else "string", "enum": values}


def _class_fields(node: ast.ClassDef) -> list[tuple[str, ast.expr, bool, str]]:
    """Return (name, annotation, has_default, attribute docstring) per annotated field."""
    fields: list[tuple[str, ast.expr, bool, str]] = []
    body = node.body
    for index, item in enumerate(body):
        if not isinstance(item, ast.AnnAssign) or not isinstance(item.target, ast.Name):
            continue
        name = item.target.id
        if name.startswith("_") or name == "model_config":
            continue
        if _simple_name(item.annotation.value if isinstance(item.annotation, ast.Subscript) else item.annotation) == "ClassVar":
            continue
        doc = ""
        if index + 1 < len(body):
            following = body[index + 1]
            if isinstance(following, ast.Expr) and isinstance(following.value, ast.Constant) and isinstance(following.value.value, str):
                doc = following.value.value.strip()
        fields.append((name, item.annotation, item.value is not None, doc))
    return fields


def _class_keyword_expr(node: ast.ClassDef, name: str) -> ast.expr | None:
    for keyword in node.keywords:
        if keyword.arg == name:
            return keyword.value
    return None


def _class_keyword(node: ast.ClassDef, name: str) -> Any:
    value = _class_keyword_expr(node, name)
    return value.value if isinstance(value, ast.Constant) else None


def _allows_extra(node: ast.ClassDef) -> bool:
    """Detect pydantic ``extra="allow"`` from class keywords or ``model_config``."""
    if _class_keyword(node, "extra") == "allow":
        return True
    for item in node.body:
        if isinstance(item, ast.Assign) and any(isinstance(t, ast.Name) and t.id == "model_config" for t in item.targets):
            value = item.value
            if isinstance(value, ast.Call):
                for keyword in value.keywords:
                    if keyword.arg == "extra" and isinstance(keyword.value, ast.Constant) and keyword.value.value == "allow":
                        return True
            if isinstance(value, ast.Dict):
                for key, val in zip(value.keys, value.values, strict=True):
                    if isinstance(key, ast.Constant) and key.value == "extra" and isinstance(val, ast.Constant) and val.value == "allow":
                        return True
    return False
