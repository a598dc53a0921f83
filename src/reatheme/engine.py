"""Expression engine - runs theme scripts and inline expressions.

Both entry points work against one EvaluationContext per compile, so
bindings made by a script or an inline assignment are visible to every file
processed afterwards.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from RestrictedPython import compile_restricted_eval, compile_restricted_exec

from reatheme.color import Color, blend, color, rgb, rgba
from reatheme.errors import ScriptEvaluationError, ThemeBuildError
from reatheme.parser import Part, Text
from reatheme.resources import ResourceDirective
from reatheme.sandbox import Sandbox
from reatheme.sources import SourceFile

log = logging.getLogger(__name__)

DOMAIN_FUNCTIONS = {
    "color": color,
    "rgb": rgb,
    "rgba": rgba,
    "blend": blend,
}

_COMPILE_LINE = re.compile(r"^Line (\d+):")


@dataclass
class EvaluationContext:
    """Shared mutable script namespace for one compile.

    Resource directives are kept in slots reserved in encounter order. Text
    that is evaluated after it was reached (inline expressions) fills the slot
    reserved for it through `sink`; anything else gets a new slot.
    """

    namespace: dict[str, Any]
    current_file: Path | None = None
    slots: list[list[ResourceDirective]] = field(default_factory=list)
    sink: list[ResourceDirective] | None = None

    @property
    def resources(self) -> list[ResourceDirective]:
        return [directive for slot in self.slots for directive in slot]

    def reserve(self) -> list[ResourceDirective]:
        slot: list[ResourceDirective] = []
        self.slots.append(slot)
        return slot

    def record(self, directive: ResourceDirective) -> None:
        target = self.sink if self.sink is not None else self.reserve()
        target.append(directive)

    def resource(self, *args: str) -> None:
        """Script-side `resource(pattern)` / `resource(prefix, pattern)`."""
        if len(args) == 1:
            prefix, pattern = None, args[0]
        elif len(args) == 2:
            prefix, pattern = args
        else:
            raise ScriptEvaluationError(
                "resource(...) can only be called with 1 or 2 arguments"
            )
        if not isinstance(pattern, str) or not isinstance(prefix, (str, type(None))):
            raise ScriptEvaluationError("resource(...) arguments must be strings")

        base_dir = self.current_file.parent if self.current_file else Path.cwd()
        self.record(ResourceDirective(pattern, prefix, base_dir, self.current_file))


def serialise(value: Any) -> str:
    """Convert an expression result to the text written into the theme."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, str):
        return value
    if isinstance(value, Color):
        return str(value.value)
    raise ScriptEvaluationError(
        f"cannot write a value of type `{type(value).__name__}` into the theme"
    )


def _traceback_line(exc: BaseException, filename: str) -> int | None:
    """Last line of `filename` in the exception's traceback."""
    line = None
    tb = exc.__traceback__
    while tb is not None:
        if tb.tb_frame.f_code.co_filename == filename:
            line = tb.tb_lineno
        tb = tb.tb_next
    return line


def _compile_error(
    errors: tuple[str, ...] | list[str],
    source: Path | None,
    line: int | None = None,
    column: int | None = None,
) -> ScriptEvaluationError:
    if line is None:
        match = _COMPILE_LINE.match(errors[0])
        if match:
            line = int(match.group(1))
    return ScriptEvaluationError(
        "; ".join(errors), source=source, line=line, column=column
    )


class ExpressionEngine:
    """Sandboxed exec/eval for theme scripts and inline expressions."""

    def __init__(self):
        self.sandbox = Sandbox(DOMAIN_FUNCTIONS)

    def new_context(self) -> EvaluationContext:
        """Create the namespace for a new compile."""
        context = EvaluationContext(self.sandbox.namespace())
        context.namespace["resource"] = context.resource
        return context

    def exec_script(self, context: EvaluationContext, source: SourceFile) -> None:
        """Run a whole script for its side effects on the namespace."""
        filename = str(source.path)
        log.debug("executing script %s", filename)
        result = compile_restricted_exec(source.text, filename=filename)
        if result.errors:
            raise _compile_error(result.errors, source.path)
        for warning in result.warnings:
            log.debug("%s: %s", filename, warning)
        self._run(context, result.code, source.path, filename, evaluate=False)

    def eval_expr(
        self,
        context: EvaluationContext,
        text: str,
        source: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> str:
        """Evaluate one inline expression and return its printed form.

        Text that is a statement rather than an expression (an assignment,
        say) is executed and prints as the empty string.
        """
        filename = f"<expression {text}>"
        result = compile_restricted_eval(text, filename=filename)
        if result.errors:
            statement = compile_restricted_exec(text, filename=filename)
            if statement.errors:
                raise _compile_error(result.errors, source, line, column)
            self._run(
                context, statement.code, source, filename, line, column, evaluate=False
            )
            return ""

        value = self._run(
            context, result.code, source, filename, line, column, evaluate=True
        )
        try:
            return serialise(value)
        except ThemeBuildError as exc:
            exc.with_location(source, line, column)
            raise

    def substitute(
        self,
        context: EvaluationContext,
        parts: list[Part],
        source: Path | None = None,
        sink: list[ResourceDirective] | None = None,
    ) -> str:
        """Join literal text and evaluated expressions, left to right.

        `resource()` calls made by the expressions go to `sink` when given.
        """
        out: list[str] = []
        previous = context.sink
        context.sink = sink
        try:
            for part in parts:
                if isinstance(part, Text):
                    out.append(part.text)
                else:
                    out.append(
                        self.eval_expr(
                            context, part.source, source, part.line, part.column
                        )
                    )
        finally:
            context.sink = previous
        return "".join(out)

    def _run(
        self,
        context: EvaluationContext,
        code: Any,
        source: Path | None,
        filename: str,
        line: int | None = None,
        column: int | None = None,
        evaluate: bool = False,
    ) -> Any:
        previous = context.current_file
        context.current_file = source
        try:
            if evaluate:
                return eval(code, context.namespace)
            exec(code, context.namespace)
            return None
        except ThemeBuildError as exc:
            exc.with_location(source, line or _traceback_line(exc, filename), column)
            raise
        except Exception as exc:
            raise ScriptEvaluationError(
                f"{type(exc).__name__}: {exc}",
                source=source,
                line=line or _traceback_line(exc, filename),
                column=column,
            ) from exc
        finally:
            context.current_file = previous
