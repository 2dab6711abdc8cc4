"""Route documentation generator.

Scans Python sources for commented route registrations, resolves the data
types named in their tags into JSON schemas, synthesizes examples and
writes an API Blueprint document.
"""

from blueprint_docs.generator.comments import ParsedComment, Tag, parse_comment
from blueprint_docs.generator.diagnostics import DiagnosticReporter, LoggingReporter, Severity
from blueprint_docs.generator.emitter import DocumentationEmitter, format_path
from blueprint_docs.generator.examples import create_schema_example
from blueprint_docs.generator.models import Block, Group, Param, Position, RequestBody, Response, Router
from blueprint_docs.generator.program import Program, SourceFile, load_program, parse_source
from blueprint_docs.generator.scanner import ScanContext, create_documentation, scan_source_file
from blueprint_docs.generator.schema import SchemaGenerator, build_schema_generator

__all__ = [
    "Block",
    "DiagnosticReporter",
    "DocumentationEmitter",
    "Group",
    "LoggingReporter",
    "Param",
    "ParsedComment",
    "Position",
    "Program",
    "RequestBody",
    "Response",
    "Router",
    "ScanContext",
    "SchemaGenerator",
    "Severity",
    "SourceFile",
    "Tag",
    "build_schema_generator",
    "create_documentation",
    "create_schema_example",
    "format_path",
    "load_program",
    "parse_comment",
    "parse_source",
    "scan_source_file",
]
