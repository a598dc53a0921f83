"""Sandbox policy for theme scripts.

Theme scripts are Python compiled with RestrictedPython, which rejects
underscore names and attributes at compile time and routes attribute, item
and iteration access through the guards below. The global namespace starts
from the interpreter's default builtins with every binding that reaches the
filesystem, processes, the network, the environment or the import machinery
removed. The table is built once per Sandbox and shared by every compile.
"""

from __future__ import annotations

import builtins
import logging
import math
import operator
from collections.abc import Callable
from typing import Any

from RestrictedPython import safe_builtins
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)
from RestrictedPython.PrintCollector import PrintCollector

log = logging.getLogger(__name__)

UNSAFE_BUILTINS = frozenset(
    {
        # filesystem, terminal and process
        "open",
        "input",
        "breakpoint",
        "help",
        "exit",
        "quit",
        "copyright",
        "credits",
        "license",
        # code loading
        "__import__",
        "__loader__",
        "__spec__",
        "__package__",
        "exec",
        "eval",
        "compile",
        # introspection that bypasses the attribute guard
        "globals",
        "locals",
        "vars",
        "dir",
        "getattr",
        "hasattr",
        "setattr",
        "delattr",
        "memoryview",
        # replaced by the print collector
        "print",
    }
)

_INPLACE_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "<<=": operator.ilshift,
    ">>=": operator.irshift,
    "&=": operator.iand,
    "|=": operator.ior,
    "^=": operator.ixor,
}


def unset(table: dict[str, Any], key: str) -> None:
    table.pop(key, None)


def restricted_builtins() -> dict[str, Any]:
    """Default builtins minus UNSAFE_BUILTINS, plus guarded replacements."""
    table = dict(vars(builtins))
    for name in UNSAFE_BUILTINS:
        unset(table, name)

    table["setattr"] = safe_builtins["setattr"]
    table["delattr"] = safe_builtins["delattr"]
    table["math"] = math
    return table


def guarded_inplacevar(op: str, target: Any, value: Any) -> Any:
    try:
        return _INPLACE_OPERATORS[op](target, value)
    except KeyError:
        raise SyntaxError(f"unsupported augmented assignment `{op}`") from None


def guarded_apply(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    return func(*args, **kwargs)


class LoggingPrintCollector(PrintCollector):
    """Sends script `print()` output to the log, one record per line."""

    def __init__(self, _getattr_=None):
        super().__init__(_getattr_)
        self._pending = ""

    def write(self, text: str) -> None:
        super().write(text)
        self._pending += text
        while "\n" in self._pending:
            line, self._pending = self._pending.split("\n", 1)
            log.info("%s", line)


def guard_globals() -> dict[str, Any]:
    """Hooks RestrictedPython-compiled code calls into."""
    return {
        "_getattr_": safer_getattr,
        "_getitem_": default_guarded_getitem,
        "_getiter_": default_guarded_getiter,
        "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
        "_unpack_sequence_": guarded_unpack_sequence,
        "_write_": full_write_guard,
        "_inplacevar_": guarded_inplacevar,
        "_apply_": guarded_apply,
        "_print_": LoggingPrintCollector,
        "__metaclass__": type,
        "__name__": "theme",
    }


class Sandbox:
    """Restricted global namespace for theme scripts.

    Args:
        functions: Extra bindings (domain functions) added to every namespace.
    """

    def __init__(self, functions: dict[str, Any] | None = None):
        self.builtins = restricted_builtins()
        self.globals: dict[str, Any] = {"__builtins__": self.builtins}
        self.globals.update(guard_globals())
        self.globals.update(functions or {})

    def namespace(self) -> dict[str, Any]:
        """A fresh global namespace for one compile."""
        return dict(self.globals)
