"""blueprint-docs - API Blueprint documentation from commented route registrations.

Route registrations on routing objects are documented with ``#`` comments::

    router = Router()

    # Parse a name
    #
    # Splits "FN LN" into first and last name.
    #
    # @query {str} name The name of the person
    # @response {ParsedName} 200 name has only one space
    @router.get("/parse")
    async def parse(name: str) -> ParsedName: ...

and ``blueprint-docs -p docconfig.json app/`` writes them to an API
Blueprint file, with JSON schemas and examples generated from the
dataclasses, TypedDicts and pydantic models named in the tags.
"""

from .config import DocConfig, parse_config
from .exceptions import (
    BlueprintDocsError,
    ConfigError,
    DocumentationFatalError,
    RouteDocumentationError,
)
from .logging import get_docs_logger, setup_logging
from .runner import PassResult, run_pass, watch_sources

__version__ = "0.1.0"

__all__ = [
    "BlueprintDocsError",
    "ConfigError",
    "DocConfig",
    "DocumentationFatalError",
    "PassResult",
    "RouteDocumentationError",
    "get_docs_logger",
    "parse_config",
    "run_pass",
    "setup_logging",
    "watch_sources",
]
