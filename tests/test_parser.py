"""Tests for rtconfig and ReaperTheme text parsing."""

import pytest

from reatheme.errors import ParseError
from reatheme.parser import (
    Assignment,
    Chunk,
    Expression,
    Include,
    Resource,
    SectionHeader,
    Text,
    parse_directive,
    parse_key_values,
    parse_rtconfig,
    scan_parts,
)


def test_scan_parts_splits_expressions():
    parts = scan_parts("set a #{x + 1} b\n", 3)
    assert parts == [Text("set a "), Expression("x + 1", 3, 7), Text(" b\n")]


def test_scan_parts_nested_braces_and_strings():
    """Braces inside dicts and strings do not close the expression."""
    parts = scan_parts('#{ {"a": "}"}["a"] }', 1)
    assert parts == [Expression('{"a": "}"}["a"]', 1, 1)]


def test_scan_parts_comment_is_verbatim():
    """Expressions after `;` are left alone."""
    parts = scan_parts("front #{a} ; old #{b}\n", 1)
    assert parts == [Text("front "), Expression("a", 1, 7), Text(" ; old #{b}\n")]


def test_scan_parts_errors():
    with pytest.raises(ParseError, match="unterminated"):
        scan_parts("#{rgb(1, 2, 3)\n", 4)
    with pytest.raises(ParseError, match="empty"):
        scan_parts("#{  }", 1)
    with pytest.raises(ParseError) as info:
        scan_parts("ab #{(1]}", 2)
    assert info.value.line == 2
    assert info.value.column == 8


def test_parse_directive():
    assert parse_directive("include", ' "a b.txt"', None, 5) == Include("a b.txt", 5)
    assert parse_directive("resource", ' "*.png"') == Resource("*.png", None, 1)
    assert parse_directive("resource", ' "img" : "*.png"') == Resource(
        "*.png", "img", 1
    )
    assert parse_directive("define", " x 1") is None


def test_parse_directive_bad_arguments():
    with pytest.raises(ParseError):
        parse_directive("include", " file.txt")
    with pytest.raises(ParseError):
        parse_directive("resource", ' "a": ')


def test_parse_rtconfig_splits_chunks_at_directives():
    text = 'a\n#include "x.txt"\n  #resource "*.png"\nb #{v}\n'
    items = parse_rtconfig(text)
    assert items == [
        Chunk([Text("a\n")]),
        Include("x.txt", 2),
        Resource("*.png", None, 3),
        Chunk([Text("b "), Expression("v", 4, 3), Text("\n")]),
    ]


def test_parse_rtconfig_splits_text_around_resource():
    items = parse_rtconfig('a\n#resource "*.png"\nb\n')
    assert items == [
        Chunk([Text("a\n")]),
        Resource("*.png", None, 2),
        Chunk([Text("b\n")]),
    ]


def test_parse_rtconfig_unknown_directive_becomes_comment():
    items = parse_rtconfig("  #define foo 1\nrest\n")
    assert items == [Chunk([Text("; #define foo 1\n"), Text("rest\n")])]


def test_parse_key_values():
    text = (
        "; comment\n"
        "# also a comment\n"
        '#include "colors.py"\n'
        "top=1\n"
        "[color theme]\n"
        "col_main_bg = #{bg}\n"
        "\n"
        "[REAPER]\n"
        "ui_img=a=b\n"
    )
    parsed = parse_key_values(text)
    assert parsed.directives == [Include("colors.py", 3)]
    assert parsed.lines == [
        Assignment("top", [Text("1")], 4),
        SectionHeader("color theme", 5),
        Assignment("col_main_bg", [Expression("bg", 6, 15)], 6),
        SectionHeader("REAPER", 8),
        Assignment("ui_img", [Text("a=b")], 9),
    ]


def test_key_value_items_in_file_order():
    parsed = parse_key_values('[s]\na=1\n#resource "x.png"\nb=2\n')
    assert parsed.in_order() == [
        SectionHeader("s", 1),
        Assignment("a", [Text("1")], 2),
        Resource("x.png", None, 3),
        Assignment("b", [Text("2")], 4),
    ]


def test_parse_key_values_semicolon_in_value_is_kept():
    parsed = parse_key_values("[s]\nk=a;b\n")
    assert parsed.lines[1] == Assignment("k", [Text("a;b")], 2)


@pytest.mark.parametrize(
    "text, message",
    [
        ("[open\n", "unterminated section"),
        ("[ ]\n", "empty section"),
        ("novalue\n", "expected `key=value`"),
        ("=v\n", "empty key"),
    ],
)
def test_parse_key_values_errors(text, message):
    with pytest.raises(ParseError, match=message):
        parse_key_values(text)
