"""Source file loading: syntax trees plus a comment index per file.

Python's ``ast`` drops comments, so each file is also run through
``tokenize`` to record where comments and code tokens are. That lets the
scanner find the comment block written right before a node.
"""

import ast
import io
import tokenize
from bisect import bisect_left
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path

from blueprint_docs.exceptions import GeneratorError

_NON_CODE_TOKENS: frozenset[int] = frozenset({
    tokenize.COMMENT,
    tokenize.NL,
    tokenize.NEWLINE,
    tokenize.INDENT,
    tokenize.DEDENT,
    tokenize.ENCODING,
    tokenize.ENDMARKER,
})

_SKIP_DIRS: frozenset[str] = frozenset({".git", "__pycache__", ".mypy_cache", ".pytest_cache", ".tox"})

# (line, column): line is 1-based, column counts characters
Location = tuple[int, int]


@dataclass(frozen=True)
class Comment:
    """A ``#`` comment token."""

    start: Location
    text: str


@dataclass(frozen=True)
class LeadingComment:
    """Comment block found before a node. ``line`` is the 0-based line of its first comment."""

    line: int
    text: str


@dataclass
class SourceFile:
    """A parsed source file with its comment index."""

    path: Path
    text: str
    tree: ast.Module
    comments: tuple[Comment, ...]
    _code_starts: list[Location] = field(default_factory=list, repr=False)
    _code_ends: list[Location] = field(default_factory=list, repr=False)
    _code_strings: list[str] = field(default_factory=list, repr=False)

    @cached_property
    def lines(self) -> list[str]:
        return self.text.splitlines()

    def node_start(self, node: ast.expr | ast.stmt) -> Location:
        """Start of a node, with the byte offset from ``ast`` converted to characters."""
        line_text = self.lines[node.lineno - 1] if node.lineno - 1 < len(self.lines) else ""
        column = len(line_text.encode("utf-8")[: node.col_offset].decode("utf-8", errors="ignore"))
        return node.lineno, column

    def leading_comment(self, node: ast.expr | ast.stmt) -> LeadingComment | None:
        """Return the comments between the previous code token and ``node``.

        Comments on the same line as the previous token are trailing comments
        of that line and are not included. For decorator expressions the
        ``@`` is skipped so comments above the decorator line are found.
        Gaps between comment lines are kept as empty lines.
        """
        anchor = self.node_start(node)
        index = bisect_left(self._code_starts, anchor)
        if index > 0 and self._code_strings[index - 1] == "@":
            anchor = self._code_starts[index - 1]
            index -= 1
        previous_end: Location | None = self._code_ends[index - 1] if index > 0 else None

        found = [
            c
            for c in self.comments
            if c.start < anchor and (previous_end is None or (c.start > previous_end and c.start[0] > previous_end[0]))
        ]
        if not found:
            return None

        first_line = found[0].start[0]
        by_line = {c.start[0]: c.text for c in found}
        text = "\n".join(by_line.get(line, "") for line in range(first_line, found[-1].start[0] + 1))
        return LeadingComment(line=first_line - 1, text=text)


@dataclass(frozen=True)
class Program:
    """The set of analysed source files, in the order they were given."""

    files: tuple[SourceFile, ...]


def parse_source(path: Path, text: str | None = None) -> SourceFile:
    """Parse one file into a SourceFile.

    Raises:
        SyntaxError: If the file is not valid Python.
    """
    if text is None:
        text = path.read_text(encoding="utf-8")
    tree = ast.parse(text, filename=str(path))

    comments: list[Comment] = []
    starts: list[Location] = []
    ends: list[Location] = []
    strings: list[str] = []
    for token in tokenize.generate_tokens(io.StringIO(text).readline):
        if token.type == tokenize.COMMENT:
            comments.append(Comment(start=token.start, text=token.string))
        elif token.type not in _NON_CODE_TOKENS:
            starts.append(token.start)
            ends.append(token.end)
            strings.append(token.string)

    return SourceFile(
        path=path,
        text=text,
        tree=tree,
        comments=tuple(comments),
        _code_starts=starts,
        _code_ends=ends,
        _code_strings=strings,
    )


def discover_sources(roots: Iterable[Path], exclude: Sequence[str] = ()) -> list[Path]:
    """Expand directories into sorted ``.py`` files, skipping excluded path fragments."""
    found: list[Path] = []
    for root in roots:
        candidates = sorted(root.rglob("*.py")) if root.is_dir() else [root]
        for path in candidates:
            parts = path.parts
            if any(part in _SKIP_DIRS for part in parts):
                continue
            if any(fragment in str(path) for fragment in exclude):
                continue
            if path not in found:
                found.append(path)
    return found


def load_program(paths: Sequence[Path]) -> Program:
    """Parse every file of the program.

    Raises:
        GeneratorError: If there are no files or one of them cannot be parsed;
            type schemas cannot be built from such a program.
    """
    if not paths:
        raise GeneratorError("Program has no source files to document")
    files: list[SourceFile] = []
    for path in paths:
        try:
            files.append(parse_source(path))
        except (SyntaxError, tokenize.TokenError, UnicodeDecodeError, OSError) as e:
            raise GeneratorError(f"Program has errors: cannot parse {path}: {e}") from e
    return Program(files=tuple(files))
