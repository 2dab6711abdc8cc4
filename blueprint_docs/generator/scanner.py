"""Route discovery and documentation block construction.

Finds route registrations such as::

    # Say hello
    #
    # @response {text/plain} 200
    #   Hello world!
    @router.get("/")
    async def hello(): ...

    # Say hello again
    router.post("/", hello_again)

on routing objects (variables created by ``Router(...)``, annotated as
``Router``, or aliases of those), parses their leading comments and builds
one Router per routing object, grouped by path in discovery order.
"""

import ast
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from blueprint_docs.config import DocConfig
from blueprint_docs.exceptions import (
    CommentParseError,
    DocumentationFatalError,
    RouteDocumentationError,
    RouterDocumentationError,
    SchemaResolutionError,
    UnsupportedSchemaError,
)
from blueprint_docs.generator.comments import ParsedComment, Tag, parse_comment
from blueprint_docs.generator.diagnostics import DiagnosticReporter, Severity
from blueprint_docs.generator.emitter import DocumentationEmitter
from blueprint_docs.generator.examples import param_example, response_example
from blueprint_docs.generator.models import Block, Group, Param, Position, RequestBody, Response, Router, Schema
from blueprint_docs.generator.program import Program, SourceFile
from blueprint_docs.generator.schema import SchemaGenerator
from blueprint_docs.logging import get_docs_logger

logger = get_docs_logger(__name__)

ROUTER_METHODS: tuple[str, ...] = ("get", "post", "put", "patch", "delete")

_BRACED = re.compile(r"^\{(.*)\}$", re.DOTALL)


@dataclass(eq=False)
class RouterBinding:
    """Identity of one routing object.

    Bindings compare by identity: aliases share the binding object, a new
    ``Router()`` assignment creates a new one even under the same name.
    """

    name: str
    declaration: ast.stmt | None


@dataclass(frozen=True)
class ScanContext:
    """Collaborators shared by every route of one source file."""

    source: SourceFile
    generator: SchemaGenerator
    config: DocConfig
    reporter: DiagnosticReporter

    def report_line(self, severity: Severity, line: int, message: str) -> None:
        self.reporter.report(severity, self.source.path, line, message)

    def report_node(self, severity: Severity, node: ast.expr | ast.stmt, message: str) -> None:
        self.reporter.report(severity, self.source.path, node.lineno - 1, message)


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


@dataclass
class _Scope:
    names: dict[str, RouterBinding | None] = field(default_factory=dict)
    is_class: bool = False


class _RouteCollector(ast.NodeVisitor):
    """Pre-order traversal tracking router bindings per lexical scope."""

    def __init__(self, context: ScanContext):
        self.context = context
        self.router_types = frozenset(context.config.router_types)
        self.scopes: list[_Scope] = [_Scope()]
        self.routes: dict[RouterBinding, list[Block]] = {}

    # -- bindings ------------------------------------------------------

    def lookup(self, name: str) -> RouterBinding | None:
        innermost = self.scopes[-1]
        if name in innermost.names:
            return innermost.names[name]
        for scope in reversed(self.scopes[:-1]):
            if scope.is_class:
                continue
            if name in scope.names:
                return scope.names[name]
        return None

    def bind(self, name: str, binding: RouterBinding | None) -> None:
        self.scopes[-1].names[name] = binding

    def _binding_for(self, name: str, value: ast.expr | None, annotation: ast.expr | None, declaration: ast.stmt | None) -> RouterBinding | None:
        if isinstance(value, ast.Name):
            aliased = self.lookup(value.id)
            if aliased is not None:
                return aliased
        if isinstance(value, ast.Call) and _simple_name(value.func) in self.router_types:
            return RouterBinding(name=name, declaration=declaration)
        if annotation is not None and _simple_name(annotation) in self.router_types:
            return RouterBinding(name=name, declaration=declaration)
        return None

    def _unbind_targets(self, target: ast.expr) -> None:
        for node in ast.walk(target):
            if isinstance(node, ast.Name):
                self.bind(node.id, None)

    # -- statements ----------------------------------------------------

    def visit_Assign(self, node: ast.Assign) -> None:
        self.visit(node.value)
        # Chained targets (a = b = Router()) share one routing object
        names = [t.id for t in node.targets if isinstance(t, ast.Name)]
        binding = self._binding_for(names[0], node.value, None, node) if names else None
        for target in node.targets:
            if isinstance(target, ast.Name):
                self.bind(target.id, binding)
            else:
                self.visit(target)
                self._unbind_targets(target)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        if node.value is not None:
            self.visit(node.value)
        if isinstance(node.target, ast.Name):
            self.bind(node.target.id, self._binding_for(node.target.id, node.value, node.annotation, node))
        else:
            self.visit(node.target)

    def visit_NamedExpr(self, node: ast.NamedExpr) -> None:
        self.visit(node.value)
        self.bind(node.target.id, self._binding_for(node.target.id, node.value, None, None))

    def visit_For(self, node: ast.For | ast.AsyncFor) -> None:
        self.visit(node.iter)
        self._unbind_targets(node.target)
        for stmt in [*node.body, *node.orelse]:
            self.visit(stmt)

    visit_AsyncFor = visit_For

    def visit_FunctionDef(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        for decorator in node.decorator_list:
            self.visit(decorator)
        self.visit(node.args)
        if node.returns is not None:
            self.visit(node.returns)

        declaration = node
        scope = _Scope()
        arguments = [*node.args.posonlyargs, *node.args.args, *node.args.kwonlyargs]
        for extra in (node.args.vararg, node.args.kwarg):
            if extra is not None:
                arguments.append(extra)
        for arg in arguments:
            binding = None
            if arg.annotation is not None and _simple_name(arg.annotation) in self.router_types:
                binding = RouterBinding(name=arg.arg, declaration=declaration)
            scope.names[arg.arg] = binding

        self.scopes.append(scope)
        for stmt in node.body:
            self.visit(stmt)
        self.scopes.pop()
        self.bind(node.name, None)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node: ast.Lambda) -> None:
        self.visit(node.args)
        scope = _Scope()
        for arg in [*node.args.posonlyargs, *node.args.args, *node.args.kwonlyargs]:
            scope.names[arg.arg] = None
        self.scopes.append(scope)
        self.visit(node.body)
        self.scopes.pop()

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        for decorator in node.decorator_list:
            self.visit(decorator)
        for base in [*node.bases, *node.keywords]:
            self.visit(base)
        self.scopes.append(_Scope(is_class=True))
        for stmt in node.body:
            self.visit(stmt)
        self.scopes.pop()
        self.bind(node.name, None)

    # -- calls ---------------------------------------------------------

    def visit_Call(self, node: ast.Call) -> None:
        binding = self._qualifying_binding(node)
        if binding is not None:
            block = self._document(node)
            if block is not None:
                self.routes.setdefault(binding, []).append(block)
        self.generic_visit(node)

    def _qualifying_binding(self, node: ast.Call) -> RouterBinding | None:
        func = node.func
        if not isinstance(func, ast.Attribute) or not isinstance(func.value, ast.Name):
            return None
        binding = self.lookup(func.value.id)
        if binding is None:
            return None
        if func.attr not in ROUTER_METHODS:
            return None
        if not node.args or not _is_string_literal(node.args[0]):
            self.context.report_node(Severity.WARNING, node, "Skipping router using something other than a string literal for defining the path")
            return None
        return binding

    def _document(self, node: ast.Call) -> Block | None:
        func, first = node.func, node.args[0]
        if not isinstance(func, ast.Attribute) or not isinstance(first, ast.Constant):
            return None
        method, path = func.attr, str(first.value)
        source = self.context.source

        comment = source.leading_comment(node)
        parsed: ParsedComment | None = None
        if comment is not None:
            try:
                parsed = parse_comment(comment.text)
            except CommentParseError:
                parsed = None
        if comment is None or parsed is None:
            self.context.report_node(Severity.WARNING, node, f"Ignoring undocumented route {method.upper()} {path}")
            return None

        position = Position(line=comment.line, source_file=source.path)
        try:
            return build_block(method, path, parsed, position, self.context)
        except RouteDocumentationError:
            return None


def scan_source_file(context: ScanContext) -> list[Router]:
    """Document every routing object of one file, in first-encountered order.

    Raises:
        DocumentationFatalError: On errors that invalidate the whole pass.
    """
    collector = _RouteCollector(context)
    collector.visit(context.source.tree)
    routers: list[Router] = []
    for binding, blocks in collector.routes.items():
        routers.append(parse_router_doc(binding, group_by_route(blocks), context))
    logger.debug("%s: %d routers, %d routes", context.source.path, len(routers), sum(len(b) for b in collector.routes.values()))
    return routers


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def build_block(method: str, path: str, comment: ParsedComment, position: Position, context: ScanContext) -> Block:
    """Build the documentation block of one route from its parsed comment.

    Raises:
        RouteDocumentationError: If a tag is malformed (already reported).
        DocumentationFatalError: If the comment has several ``@body`` tags.
    """
    url_params = [parse_param(tag, False, context.config) for tag in comment.tags_named("param")]
    query_params = [parse_param(tag, True, context.config) for tag in comment.tags_named("query")]

    responses: list[Response] = []
    for tag in comment.tags_named("response"):
        response = parse_response(tag, position, context)
        if response is not None:
            responses.append(response)

    bodies = comment.tags_named("body")
    if len(bodies) > 1:
        context.report_line(Severity.ERROR, position.line + bodies[1].line, "Error: Too many @body tags.")
        raise DocumentationFatalError(f"Too many @body tags for {method.upper()} {path} in {position.source_file}")
    body = parse_body(bodies[0], position, context) if bodies else None

    return Block(
        method=method,
        path=path,
        title=comment.title,
        description=comment.description,
        params=tuple(url_params + query_params),
        responses=tuple(responses),
        body=body,
    )


def parse_param(tag: Tag, query: bool, config: DocConfig) -> Param:
    """Build a Param from a ``@param`` or ``@query`` tag."""
    return Param(
        query=query,
        name=tag.name,
        type=tag.type or "string",
        description=tag.description,
        example=param_example(tag.name, config),
    )


def parse_response(tag: Tag, position: Position, context: ScanContext) -> Response | None:
    """Build a Response from a ``@response`` tag.

    Returns None when the tag's type cannot be resolved (the tag is dropped).

    Raises:
        RouteDocumentationError: If the status code is not a number.
    """
    line = position.line + tag.line
    if not tag.name.isdigit():
        context.report_line(Severity.ERROR, line, f"Error: Response code '{tag.name}' should be a number.")
        raise RouteDocumentationError(tag.name)
    code = int(tag.name)

    schema: Schema | None = None
    body: Any = None
    if tag.type and "/" not in tag.type:
        resolved = _schema_and_example(tag.type, line, context)
        if resolved is None:
            return None
        schema, body = resolved

    when = tag.inline or None
    literal = tag.continuation or None
    return Response(
        code=code,
        when=when,
        type="application/json" if schema is not None else (tag.type or None),
        body=literal if literal is not None else body,
        schema=schema,
    )


def parse_body(tag: Tag, position: Position, context: ScanContext) -> RequestBody | None:
    """Build a RequestBody from the ``@body`` tag.

    The ``{type}`` bracket and an optional second bracket hold the data type
    and the content type; the one containing ``/`` is the content type.

    Raises:
        RouteDocumentationError: If the second bracket is not braced.
    """
    line = position.line + tag.line
    content_type: str | None = None
    data_type: str | None = None

    if tag.type:
        if "/" in tag.type:
            content_type = tag.type
        else:
            data_type = tag.type

    if tag.name:
        match = _BRACED.match(tag.name)
        if not match:
            context.report_line(Severity.ERROR, line, "Error: @body tag should have types surrounded in curly braces.")
            raise RouteDocumentationError(tag.name)
        inner = match.group(1).strip()
        if "/" in inner:
            content_type = inner
        else:
            data_type = inner

    schema: Schema | None = None
    body: Any = None
    if data_type:
        resolved = _schema_and_example(data_type, line, context)
        if resolved is None:
            return None
        schema, body = resolved

    return RequestBody(type=content_type, body=tag.description or body, schema=schema)


def _schema_and_example(type_name: str, line: int, context: ScanContext) -> tuple[Schema, Any] | None:
    """Resolve a type and synthesize its example, reporting failures."""
    try:
        schema = context.generator.get_schema_for_symbol(type_name)
    except SchemaResolutionError as e:
        context.report_line(Severity.ERROR, line, f"Error: In generating schema for type {type_name}, {e}.")
        return None
    try:
        return schema, response_example(schema, context.config)
    except UnsupportedSchemaError as e:
        context.report_line(Severity.ERROR, line, f"Error: {e}.")
        return None


# ---------------------------------------------------------------------------
# Routers and groups
# ---------------------------------------------------------------------------


def parse_router_doc(binding: RouterBinding, routes: tuple[Group, ...], context: ScanContext) -> Router:
    """Read a routing object's declaration comment.

    Raises:
        RouterDocumentationError: If the comment has more than one ``@route`` tag.
    """
    comment = None
    parsed: ParsedComment | None = None
    if binding.declaration is not None:
        anchor = _declaration_anchor(binding.declaration)
        comment = context.source.leading_comment(anchor)
    if comment is not None:
        try:
            parsed = parse_comment(comment.text)
        except CommentParseError:
            parsed = None

    if comment is None or parsed is None:
        return Router(path="/", title="", description=None, routes=routes)

    route_tags = parsed.tags_named("route")
    if len(route_tags) > 1:
        context.report_line(Severity.ERROR, comment.line + route_tags[1].line, "Error: Too many @route tags.")
        raise RouterDocumentationError(f"Too many @route tags for router '{binding.name}' in {context.source.path}")
    path = (route_tags[0].name if route_tags else "") or "/"
    return Router(path=path, title=parsed.title, description=parsed.description or None, routes=routes)


def group_by_route(blocks: Iterable[Block]) -> tuple[Group, ...]:
    """Group blocks by path, keeping first-seen order of paths and blocks."""
    grouped: dict[str, list[Block]] = {}
    for block in blocks:
        grouped.setdefault(block.path, []).append(block)
    return tuple(Group(path=path, methods=tuple(methods)) for path, methods in grouped.items())


def _declaration_anchor(declaration: ast.stmt) -> ast.expr | ast.stmt:
    if isinstance(declaration, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)) and declaration.decorator_list:
        return declaration.decorator_list[0]
    return declaration


def _is_string_literal(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and isinstance(node.value, str)


def _simple_name(expr: ast.expr) -> str:
    if isinstance(expr, ast.Subscript):
        expr = expr.value
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        return expr.attr
    if isinstance(expr, ast.Constant) and isinstance(expr.value, str):
        return expr.value
    return ""


def create_documentation(
    program: Program,
    generator: SchemaGenerator,
    config: DocConfig,
    emitter: DocumentationEmitter,
    reporter: DiagnosticReporter,
) -> int:
    """Scan every file in order and emit its routers. Returns the router count.

    Files whose path contains one of ``config.exclude`` are skipped.
    """
    count = 0
    for source in program.files:
        if any(fragment in str(source.path) for fragment in config.exclude):
            continue
        for router in scan_source_file(ScanContext(source=source, generator=generator, config=config, reporter=reporter)):
            emitter.emit(router)
            count += 1
    return count
