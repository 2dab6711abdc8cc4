"""Exception hierarchy for blueprint-docs.

Two severities exist. Route-local errors skip a single route (or tag) and
scanning continues; run-fatal errors abort the whole documentation pass.
All exceptions inherit from BlueprintDocsError.
"""


class BlueprintDocsError(Exception):
    """Base exception for all blueprint-docs errors."""


class ConfigError(BlueprintDocsError):
    """Raised when the documentation config file cannot be loaded or validated.

    The message is meant to be shown to the user as-is.
    """


class DocumentationFatalError(BlueprintDocsError):
    """Raised when a documentation pass cannot continue. Run-fatal."""


class GeneratorError(DocumentationFatalError):
    """Raised when the program has no valid input to build type schemas from."""


class RouterDocumentationError(DocumentationFatalError):
    """Raised when a router declaration comment is invalid (e.g. several @route tags)."""


class RouteDocumentationError(BlueprintDocsError):
    """Raised when a single route cannot be documented.

    The problem has already been reported as a diagnostic, callers skip the
    route and continue.
    """


class CommentParseError(BlueprintDocsError):
    """Raised when comment text contains no documentation block."""


class SchemaResolutionError(BlueprintDocsError):
    """Raised when a type name cannot be turned into a structural schema."""


class UnsupportedSchemaError(BlueprintDocsError):
    """Raised when an example cannot be synthesized for a schema kind."""
