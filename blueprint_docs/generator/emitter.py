"""API Blueprint writer.

The emitter is bound to one text stream for a whole documentation pass and
writes sequentially: the header when it is created, then one section per
router passed to ``emit``. JSON is rendered with sorted keys so identical
input always produces identical output.
"""

import json
import posixpath
import re
from typing import Any, TextIO
from urllib.parse import quote

from blueprint_docs.config import DocConfig
from blueprint_docs.generator.models import Block, Group, Param, RequestBody, Response, Router

PARAM_INDENT = "  "
RES_INDENT = "    "
BODY_INDENT = "        "
JSON_INDENT_LEN = 2
IMPLICIT_CONTENT_TYPE = "text/plain"

# Characters left unescaped by JavaScript's encodeURIComponent / encodeURI
_COMPONENT_SAFE = "-_.!~*'()"
_URI_SAFE = ";,/?:@&=+$#" + _COMPONENT_SAFE


def format_path(path: str) -> str:
    """Rewrite ``/users/:id`` style parameters to ``/users/{id}``."""
    return re.sub(r":([^/]+)", r"{\1}", path)


def join_path(leading: str, path: str) -> str:
    """Join a router base path and a route path, normalising slashes."""
    joined = re.sub(r"/{2,}", "/", f"{leading}/{path}")
    normalized = posixpath.normpath(joined)
    if joined.endswith("/") and normalized != "/":
        normalized += "/"
    return normalized


def encode_param(value: str, query: bool) -> str:
    """Percent-encode an example value for a query or a URL path parameter."""
    return quote(value, safe=_COMPONENT_SAFE if query else _URI_SAFE)


def render_json(value: Any) -> str:
    """Canonical JSON: sorted keys, two-space indent. Strings are returned verbatim."""
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=JSON_INDENT_LEN, sort_keys=True, ensure_ascii=False)


def indent_block(text: str, prefix: str) -> str:
    return "\n".join(prefix + line for line in text.split("\n"))


class DocumentationEmitter:
    """Writes route documentation to a stream in API Blueprint format."""

    def __init__(self, config: DocConfig, stream: TextIO):
        self.config = config
        self._stream = stream
        self._emit_metadata(config.host, config.title, config.description)

    def _write(self, text: str) -> None:
        self._stream.write(text)

    def _emit_metadata(self, host: str | None, title: str | None, description: str | None) -> None:
        self._write("FORMAT: 1A\n")
        if host:
            self._write(f"HOST: {host}\n")
        self._write("\n")
        if title:
            self._write(f"# {title}\n\n")
        if description:
            self._write(description)
        self._write("\n")

    def emit(self, router: Router) -> None:
        """Write one router with all of its groups."""
        self._write(f"\n# Group {router.title}\n{router.description or ''}\n")
        for group in router.routes:
            self._emit_group(group, router.path)

    def _emit_group(self, group: Group, leading_path: str) -> None:
        url = join_path(leading_path, format_path(group.path))
        query_names: list[str] = []
        for block in group.methods:
            for param in block.params:
                if param.query and param.name not in query_names:
                    query_names.append(param.name)
        if query_names:
            url += "{?" + ",".join(query_names) + "}"
        self._write(f"\n## {group.path} [{url}]\n")
        for block in group.methods:
            self._emit_route(block)

    def _emit_route(self, block: Block) -> None:
        self._write(f"\n### {block.title} [{block.method.upper()}]\n")
        self._write(block.description + "\n")

        if block.params:
            self._write("\n+ Parameters\n")
            for param in block.params:
                self._emit_param(param)

        if block.body is not None:
            self._emit_body(block.body, block.title)
        for response in block.responses:
            self._emit_response(response)

    def _emit_param(self, param: Param) -> None:
        example = encode_param(param.example, param.query)
        description = " ".join(param.description.split("\n"))
        self._write(f"{PARAM_INDENT}+ {param.name}: {example} (required, {param.type}) - {description}\n")

    def _emit_body(self, body: RequestBody, name: str) -> None:
        header = f"\n+ Request {name}".rstrip()
        if body.type:
            header += f" ({body.type})"
        self._write(header + "\n")
        if body.body is not None:
            self._write("\n" + indent_block(render_json(body.body), RES_INDENT + BODY_INDENT) + "\n")

    def _emit_response(self, response: Response) -> None:
        self._write(f"\n+ Response {response.code}")
        # text/plain is the implicit type and is left out
        if response.type and response.type != IMPLICIT_CONTENT_TYPE:
            self._write(f" ({response.type})")
        self._write("\n")
        self._emit_payload(response.body, response.schema)

    def _emit_payload(self, body: Any, schema: dict[str, Any] | None) -> None:
        if body is not None:
            self._write("\n" + RES_INDENT + "+ Body\n")
            self._write("\n" + indent_block(render_json(body), RES_INDENT + BODY_INDENT) + "\n")
        if schema is not None:
            self._write("\n" + RES_INDENT + "+ Schema\n")
            self._write("\n" + indent_block(render_json(schema), RES_INDENT + BODY_INDENT) + "\n")

    def flush(self) -> None:
        self._stream.flush()
