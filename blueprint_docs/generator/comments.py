"""Line-oriented parser for the route documentation comment grammar.

A documentation comment looks like::

    # Greet a human
    #
    # Say hello to a person with a given name.
    #
    # @param {string} name The name of the person
    # @query {string} lang Greeting language
    # @body {GreetRequest} {application/json}
    # @response {text/plain} 200 name is valid
    #   Hello human!
    # @response 400 name has numbers

The first line is the title, the text up to the first tag is the
description. A tag line is ``@tag [{type}] [name] [inline text]``; the
lines after it, up to the next tag, are its continuation. The parser knows
nothing about syntax trees so it can be used on plain strings.
"""

import re
import textwrap
from dataclasses import dataclass

from blueprint_docs.exceptions import CommentParseError

_TAG_LINE = re.compile(r"^@([A-Za-z][\w-]*)(.*)$")


@dataclass(frozen=True)
class Tag:
    """A single ``@tag`` with its fields.

    ``line`` is the 0-based line offset of the tag inside the comment.
    ``inline`` is the text following the name on the tag line,
    ``continuation`` the dedented text of the following lines.
    """

    tag: str
    type: str | None
    name: str
    inline: str
    continuation: str
    line: int
    source: str

    @property
    def description(self) -> str:
        return "\n".join(part for part in (self.inline, self.continuation) if part)


@dataclass(frozen=True)
class ParsedComment:
    """Parsed documentation comment."""

    title: str
    description: str
    tags: tuple[Tag, ...]

    def tags_named(self, name: str) -> list[Tag]:
        """Tags of one kind, in source order."""
        return [t for t in self.tags if t.tag == name]


def split_by_first_newline(text: str) -> tuple[str, str | None]:
    """Split text into the first line and the rest (None if there is one line)."""
    head, sep, rest = text.partition("\n")
    return (head, rest) if sep else (head, None)


def strip_comment_delimiters(text: str) -> list[str]:
    """Remove ``#`` markers (and one following space) from each line."""
    lines: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("#"):
            line = raw.lstrip().lstrip("#")
            if line.startswith(" "):
                line = line[1:]
        lines.append(line.rstrip())
    return lines


def parse_comment(text: str) -> ParsedComment:
    """Parse raw comment text into a title, a description and tags.

    Raises:
        CommentParseError: If the text holds no documentation block.
    """
    lines = strip_comment_delimiters(text)
    if not any(line.strip() for line in lines):
        raise CommentParseError("No documentation block found")

    free_lines: list[str] = []
    tags: list[Tag] = []
    head: tuple[str, str | None, str, str, int, str] | None = None
    continuation: list[str] = []

    for index, line in enumerate(lines):
        match = _TAG_LINE.match(line.strip())
        if match:
            if head is not None:
                tags.append(_build_tag(head, continuation))
            tag_type, name, inline = _split_tag_body(match.group(2))
            head = (match.group(1), tag_type, name, inline, index, line.strip())
            continuation = []
        elif head is None:
            free_lines.append(line)
        else:
            continuation.append(line)
    if head is not None:
        tags.append(_build_tag(head, continuation))

    free_text = textwrap.dedent("\n".join(free_lines)).strip()
    title, rest = split_by_first_newline(free_text)
    return ParsedComment(title=title.strip(), description=(rest or "").strip(), tags=tuple(tags))


def _build_tag(head: tuple[str, str | None, str, str, int, str], continuation: list[str]) -> Tag:
    tag, tag_type, name, inline, line, first_line = head
    body = textwrap.dedent("\n".join(continuation)).strip("\n")
    source = "\n".join([first_line, *continuation]).rstrip()
    return Tag(tag=tag, type=tag_type, name=name, inline=inline, continuation=body, line=line, source=source)


def _split_tag_body(rest: str) -> tuple[str | None, str, str]:
    """Split the text after ``@tag`` into (type, name, inline description)."""
    rest = rest.strip()
    tag_type: str | None = None
    if rest.startswith("{"):
        end = _matching_brace(rest)
        if end != -1:
            tag_type = rest[1:end].strip() or None
            rest = rest[end + 1 :].strip()

    if rest.startswith("{"):
        end = _matching_brace(rest)
        if end != -1:
            return tag_type, rest[: end + 1], rest[end + 1 :].strip()

    parts = rest.split(maxsplit=1)
    name = parts[0] if parts else ""
    inline = parts[1].strip() if len(parts) > 1 else ""
    return tag_type, name, inline


def _matching_brace(text: str) -> int:
    """Index of the brace closing ``text[0]``, or -1 when unbalanced."""
    depth = 0
    for i, char in enumerate(text):
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1
