"""Directive resolver - walks #include/#resource directives depth first.

The walk uses an explicit stack of frames rather than recursion:
- `visiting` holds the files currently on the stack; meeting one again is a
  cycle.
- `processed` holds finished files; meeting one again is skipped, so a file
  shared by several includers (a diamond) runs and contributes once.

A file's directives are all resolved before its own inline expressions are
evaluated, so values defined by included scripts are visible to it. Its
output is still placed where each include stood: the text is split into
chunks at directive lines and every chunk reserves its slot in the document
when it is reached. Resources work the same way: a chunk or key/value line
reserves a resource slot when reached, and `resource()` calls made by its
expressions fill that slot later, so resources keep their encounter order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from reatheme.document import Fragment, KeyValueFragment, SectionMap
from reatheme.engine import EvaluationContext, ExpressionEngine
from reatheme.errors import CyclicIncludeError, NotFoundError
from reatheme.parser import (
    Assignment,
    Chunk,
    Directive,
    Include,
    Resource,
    SectionHeader,
    parse_key_values,
    parse_rtconfig,
)
from reatheme.resources import ResourceDirective
from reatheme.sources import FilesystemReader, SourceFile, SourceKind

log = logging.getLogger(__name__)

Slot = list[ResourceDirective]


@dataclass
class ResolutionPlan:
    """Everything one compile resolved, in order."""

    files: list[SourceFile] = field(default_factory=list)
    fragments: list[Fragment] = field(default_factory=list)
    key_values: list[KeyValueFragment] = field(default_factory=list)
    resources: list[ResourceDirective] = field(default_factory=list)


@dataclass
class _Frame:
    source: SourceFile
    items: Iterator[Chunk | Directive | SectionHeader | Assignment]
    key_value: bool = False
    chunks: list[tuple[Chunk, Fragment, Slot]] = field(default_factory=list)
    lines: list[tuple[SectionHeader | Assignment, Slot | None]] = field(
        default_factory=list
    )


class DirectiveResolver:
    """Builds a ResolutionPlan from an entry file.

    Args:
        engine: Expression engine used for scripts and inline expressions.
        reader: Filesystem reader; each file is read at most once.
    """

    def __init__(
        self, engine: ExpressionEngine, reader: FilesystemReader | None = None
    ):
        self.engine = engine
        self.reader = reader or FilesystemReader()

    def resolve(self, entry: Path, context: EvaluationContext) -> ResolutionPlan:
        """Resolve the whole include graph below `entry`.

        Raises:
            CyclicIncludeError: A file includes itself, directly or not.
            NotFoundError: An included file does not exist.
            ThemeBuildError: Any parse or evaluation failure.
        """
        plan = ResolutionPlan()
        stack: list[_Frame] = []
        visiting: set[Path] = set()
        processed: set[Path] = set()

        def enter(source: SourceFile) -> None:
            if source.kind is SourceKind.SCRIPT:
                self.engine.exec_script(context, source)
                processed.add(source.path)
                plan.files.append(source)
                return
            if source.kind is SourceKind.KEY_VALUE:
                parsed = parse_key_values(source.text, source.path)
                frame = _Frame(source, iter(parsed.in_order()), key_value=True)
            else:
                frame = _Frame(source, iter(parse_rtconfig(source.text, source.path)))
            visiting.add(source.path)
            stack.append(frame)

        enter(self.reader.load(entry))

        while stack:
            frame = stack[-1]
            item = next(frame.items, None)

            if item is None:
                stack.pop()
                visiting.discard(frame.source.path)
                self._finish(frame, plan, context)
                processed.add(frame.source.path)
                plan.files.append(frame.source)
                continue

            if isinstance(item, Chunk):
                fragment = Fragment(frame.source.path)
                frame.chunks.append((item, fragment, context.reserve()))
                plan.fragments.append(fragment)
            elif isinstance(item, Assignment):
                frame.lines.append((item, context.reserve()))
            elif isinstance(item, SectionHeader):
                frame.lines.append((item, None))
            elif isinstance(item, Resource):
                context.record(
                    ResourceDirective(
                        item.pattern,
                        item.prefix,
                        frame.source.path.parent,
                        frame.source.path,
                        item.line,
                    )
                )
            elif isinstance(item, Include):
                path = (frame.source.path.parent / item.path).resolve()
                if path in processed:
                    log.debug("skipping %s, already included", path)
                    continue
                if path in visiting:
                    chain = [f.source.path for f in stack]
                    cycle = chain[chain.index(path) :] + [path]
                    raise CyclicIncludeError(
                        cycle, source=frame.source.path, line=item.line
                    )
                try:
                    included = self.reader.load(path)
                except NotFoundError as exc:
                    exc.with_location(frame.source.path, item.line)
                    raise
                log.debug("including %s from %s", path, frame.source.path)
                enter(included)

        plan.resources = context.resources
        return plan

    def _finish(
        self, frame: _Frame, plan: ResolutionPlan, context: EvaluationContext
    ) -> None:
        """Substitute a file's expressions once its includes are done."""
        path = frame.source.path
        if not frame.key_value:
            for chunk, fragment, slot in frame.chunks:
                fragment.text = self.engine.substitute(context, chunk.parts, path, slot)
            return

        sections: SectionMap = {}
        current: str | None = None
        for line, slot in frame.lines:
            if isinstance(line, SectionHeader):
                current = line.name
                sections.setdefault(current, {})
            else:
                value = self.engine.substitute(context, line.parts, path, slot)
                sections.setdefault(current, {})[line.key] = value
        plan.key_values.append(KeyValueFragment(path, sections))
