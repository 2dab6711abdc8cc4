"""Documentation data model produced by the route scanner.

All entities are built once per documentation pass and are immutable after
construction. List-valued fields are tuples in discovery order.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

Schema = dict[str, Any]


@dataclass(frozen=True)
class Param:
    """A URL parameter (``/users/:id``) or a query parameter (``?name=``)."""

    query: bool
    name: str
    type: str
    description: str
    example: str


@dataclass(frozen=True)
class Response:
    """One possible response of a route, from a ``@response`` tag."""

    code: int
    when: str | None
    type: str | None  # content type, e.g. text/plain
    body: Any | None
    schema: Schema | None


@dataclass(frozen=True)
class RequestBody:
    """The request body of a route, from the ``@body`` tag."""

    type: str | None  # content type, e.g. application/json
    body: Any | None
    schema: Schema | None


@dataclass(frozen=True)
class Block:
    """Documentation of a single route registration (one method, one path).

    ``path`` is relative to the router's base path.
    """

    method: str
    path: str
    title: str
    description: str
    params: tuple[Param, ...]
    responses: tuple[Response, ...]
    body: RequestBody | None


@dataclass(frozen=True)
class Group:
    """All methods registered on the same relative path."""

    path: str
    methods: tuple[Block, ...]


@dataclass(frozen=True)
class Router:
    """Documentation of one routing object and its route groups."""

    path: str
    title: str
    description: str | None
    routes: tuple[Group, ...]


@dataclass(frozen=True)
class Position:
    """Location in a scanned file, used for diagnostics only. ``line`` is 0-based."""

    line: int
    source_file: Path
