"""Test helpers: a recording diagnostic reporter and scan context builders."""

import textwrap
from pathlib import Path

from blueprint_docs.config import DocConfig
from blueprint_docs.generator.diagnostics import Severity
from blueprint_docs.generator.models import Router
from blueprint_docs.generator.program import Program, parse_source
from blueprint_docs.generator.scanner import ScanContext, scan_source_file
from blueprint_docs.generator.schema import build_schema_generator


class RecordingReporter:
    """DiagnosticReporter that keeps every diagnostic in memory."""

    def __init__(self) -> None:
        self.diagnostics: list[tuple[Severity, Path, int, str]] = []

    def report(self, severity: Severity, source_file: Path, line: int, message: str) -> None:
        self.diagnostics.append((severity, source_file, line, message))

    def messages(self, severity: Severity | None = None) -> list[str]:
        return [d[3] for d in self.diagnostics if severity is None or d[0] == severity]


def make_context(
    code: str,
    config: DocConfig | None = None,
    reporter: RecordingReporter | None = None,
    path: Path = Path("routes.py"),
) -> ScanContext:
    """Parse dedented source code into a ScanContext over a one-file program."""
    source = parse_source(path, textwrap.dedent(code))
    generator = build_schema_generator(Program(files=(source,)))
    return ScanContext(
        source=source,
        generator=generator,
        config=config or DocConfig(output="api.apib"),
        reporter=reporter or RecordingReporter(),
    )


def scan(code: str, config: DocConfig | None = None, reporter: RecordingReporter | None = None) -> list[Router]:
    """Scan dedented source code and return its routers."""
    return scan_source_file(make_context(code, config, reporter))


GREETER_APP = '''\
from dataclasses import dataclass
from typing import TypedDict

from koala import Router


# Greetings
#
# There is a lack of people greeters on the web. This is why we built
# **hGreet** - our very own greeter api!
#
# @route /
router = Router()


@dataclass
class ParsedName:
    firstname: str
    lastname: str


class Address(TypedDict):
    street: str
    number: int


class ComplicatedResponse(TypedDict):
    nonsensical: bool
    addresses: list[Address]


@dataclass
class ExampleBody:
    hello: str
    something: int


# Say hello
#
# Give a nice, welcoming, greeting message.
#
# @response {text/plain} 200
#   Hello world!
@router.get("/")
async def hello(ctx):
    ctx.body = "Hello world!"


# Set hello message
#
# This does nothing.
#
# @response {text/plain} 200
#   Hello world!
@router.post("/")
async def set_hello(ctx):
    ctx.body = "Hello world!"


# Greet a human
#
# Say hello to a person with a given name.
#
# @param {string} name The name of the person
#
# @response {text/plain} 200 name is valid
#   Hello human!
# @response 400 name has numbers
@router.get("/greet/:name")
async def greet(ctx):
    ctx.body = f"Hello {ctx.params['name']}!"


# Parse a name
#
# Parses a name given in the format "FN LN" into JSON format
#
# @query {string} name The name of the person
#
# @response {ParsedName} 200 name has only one space
# @response {text/plain} 400 name is not specified
#   Name query parameter not specified
@router.get("/parse")
async def parse(ctx):
    first, last = ctx.query["name"].split(" ")
    ctx.body = ParsedName(first, last)


# @response uh oh
@router.get("/incorrect")
async def incorrect(ctx):
    ctx.throw(500)


# Give a nonsensical response
#
# @response {ComplicatedResponse} 200
@router.get("/random")
async def random(ctx):
    ctx.body = {}


# Take in some data
#
# @body {ExampleBody} {application/json}
#
# @response 500
#   No body
# @response {text/text} 200
#   The hello field of the data I sent
@router.post("/post")
async def post(ctx):
    ctx.body = ctx.request.body["hello"]
'''
