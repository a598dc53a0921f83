"""Parsers for rtconfig (structured-config) and ReaperTheme (key/value) text.

rtconfig text is line oriented:
    #include "path"                   include another file
    #resource "pattern"               add resources at the theme root
    #resource "prefix": "pattern"     add resources under prefix/
    ; comment                         copied verbatim, never evaluated
    #{expression}                     replaced by the expression's value

ReaperTheme text is INI-like: `[section]` headers and `key=value` lines whose
values may hold inline expressions.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path

from reatheme.errors import ParseError

EXPRESSION_OPEN = "#{"
COMMENT = ";"

_STRING = r'"(?:[^"\\\n]|\\.)*"'
DIRECTIVE = re.compile(r"^(?P<indent>[ \t]*)#(?P<name>[A-Za-z_]\w*)(?P<args>.*)$")
INCLUDE_ARGS = re.compile(rf"^\s*(?P<path>{_STRING})\s*$")
RESOURCE_ARGS = re.compile(
    rf"^\s*(?P<first>{_STRING})(?:\s*:\s*(?P<second>{_STRING}))?\s*$"
)

_OPENERS = "{[("
_CLOSERS = "}])"


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Expression:
    source: str
    line: int
    column: int


Part = Text | Expression


@dataclass
class Chunk:
    """A run of text and expressions between two directive lines."""

    parts: list[Part] = field(default_factory=list)


@dataclass(frozen=True)
class Include:
    path: str
    line: int


@dataclass(frozen=True)
class Resource:
    pattern: str
    prefix: str | None
    line: int


Directive = Include | Resource


@dataclass(frozen=True)
class SectionHeader:
    name: str
    line: int


@dataclass(frozen=True)
class Assignment:
    key: str
    parts: list[Part]
    line: int


@dataclass
class KeyValueSource:
    directives: list[Directive] = field(default_factory=list)
    lines: list[SectionHeader | Assignment] = field(default_factory=list)

    def in_order(self) -> list[Directive | SectionHeader | Assignment]:
        """Directives and section/key lines merged back into file order."""
        return sorted([*self.directives, *self.lines], key=lambda item: item.line)


def _decode_string(raw: str, source: Path | None, line: int) -> str:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"invalid string literal {raw}: {exc.msg}", source=source, line=line
        ) from exc


def parse_directive(
    name: str, args: str, source: Path | None = None, line: int = 1
) -> Directive | None:
    """Parse the arguments of a `#name` line.

    Returns:
        The directive, or None when the name is not a known directive.

    Raises:
        ParseError: Known directive with malformed arguments.
    """
    if name == "include":
        match = INCLUDE_ARGS.match(args)
        if match is None:
            raise ParseError(
                '#include expects a quoted path: #include "file"',
                source=source,
                line=line,
            )
        return Include(_decode_string(match["path"], source, line), line)

    if name == "resource":
        match = RESOURCE_ARGS.match(args)
        if match is None:
            raise ParseError(
                '#resource expects "pattern" or "prefix": "pattern"',
                source=source,
                line=line,
            )
        first = _decode_string(match["first"], source, line)
        if match["second"] is None:
            return Resource(first, None, line)
        return Resource(_decode_string(match["second"], source, line), first, line)

    return None


def _matching_brace(
    text: str, start: int, source: Path | None, line: int, column_offset: int = 0
) -> int:
    """Index of the `}` closing an expression whose body starts at `start`."""
    stack: list[str] = []
    quote: str | None = None
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "\n":
            break
        if quote is not None:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch in _OPENERS:
            stack.append(_CLOSERS[_OPENERS.index(ch)])
        elif ch in _CLOSERS:
            if not stack:
                if ch == "}":
                    return i
                raise ParseError(
                    f"unbalanced `{ch}` in inline expression",
                    source=source,
                    line=line,
                    column=column_offset + i + 1,
                )
            expected = stack.pop()
            if ch != expected:
                raise ParseError(
                    f"expected `{expected}` but found `{ch}` in inline expression",
                    source=source,
                    line=line,
                    column=column_offset + i + 1,
                )
        i += 1
    raise ParseError(
        "unterminated inline expression, missing `}`",
        source=source,
        line=line,
        column=column_offset + start - 1,
    )


def scan_parts(
    text: str,
    line: int,
    source: Path | None = None,
    comments: bool = True,
    column_offset: int = 0,
) -> list[Part]:
    """Split one line into literal text and `#{...}` expressions.

    With `comments`, everything from a `;` outside an expression to the end
    of the line is literal text and is never evaluated.
    """
    parts: list[Part] = []
    start = 0
    i = 0
    while i < len(text):
        if comments and text[i] == COMMENT:
            break
        if text.startswith(EXPRESSION_OPEN, i):
            if i > start:
                parts.append(Text(text[start:i]))
            body = i + len(EXPRESSION_OPEN)
            end = _matching_brace(text, body, source, line, column_offset)
            expr = text[body:end].strip()
            column = column_offset + i + 1
            if not expr:
                raise ParseError(
                    "empty inline expression", source=source, line=line, column=column
                )
            parts.append(Expression(expr, line, column))
            i = start = end + 1
            continue
        i += 1
    if start < len(text):
        parts.append(Text(text[start:]))
    return parts


def parse_rtconfig(text: str, source: Path | None = None) -> list[Chunk | Directive]:
    """Parse rtconfig text into chunks of output and directives, in order.

    Directive lines are dropped from the output, newline included. Unknown
    `#name` lines are kept as `; #name ...` comments.
    """
    items: list[Chunk | Directive] = []
    chunk = Chunk()

    for lineno, raw in enumerate(text.splitlines(keepends=True), start=1):
        body = raw.rstrip("\r\n")
        newline = raw[len(body):]
        match = DIRECTIVE.match(body)
        if match is not None:
            directive = parse_directive(match["name"], match["args"], source, lineno)
            if directive is None:
                unknown = body[len(match["indent"]):]
                chunk.parts.append(Text(f"{COMMENT} {unknown}{newline}"))
                continue
            if chunk.parts:
                items.append(chunk)
                chunk = Chunk()
            items.append(directive)
            continue
        chunk.parts.extend(scan_parts(raw, lineno, source))

    if chunk.parts:
        items.append(chunk)
    return items


def parse_key_values(text: str, source: Path | None = None) -> KeyValueSource:
    """Parse ReaperTheme text into directives and section/key lines."""
    result = KeyValueSource()

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(COMMENT):
            continue

        match = DIRECTIVE.match(line)
        if match is not None:
            directive = parse_directive(match["name"], match["args"], source, lineno)
            if directive is not None:
                result.directives.append(directive)
            continue
        if line.startswith("#"):
            continue

        if line.startswith("["):
            if not line.endswith("]"):
                raise ParseError(
                    "unterminated section header", source=source, line=lineno
                )
            name = line[1:-1].strip()
            if not name:
                raise ParseError("empty section name", source=source, line=lineno)
            result.lines.append(SectionHeader(name, lineno))
            continue

        key, sep, _ = line.partition("=")
        key = key.strip()
        if not sep:
            raise ParseError(
                f"expected `key=value` or `[section]`, got `{line}`",
                source=source,
                line=lineno,
            )
        if not key:
            raise ParseError("empty key", source=source, line=lineno)
        value_raw = raw[raw.index("=") + 1 :]
        value = value_raw.strip()
        offset = raw.index("=") + 1 + len(value_raw) - len(value_raw.lstrip())
        parts = scan_parts(
            value, lineno, source, comments=False, column_offset=offset
        )
        result.lines.append(Assignment(key, parts, lineno))

    return result
