"""Resource planner - expands resource directives into archive file pairs."""

from __future__ import annotations

import glob
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Protocol

from reatheme.errors import ParseError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceDirective:
    """A `#resource` line (or `resource()` call) awaiting expansion."""

    pattern: str
    prefix: str | None
    base_dir: Path
    source: Path | None = None
    line: int | None = None


@dataclass
class ResourcePlanEntry:
    directive: ResourceDirective
    files: list[tuple[Path, PurePosixPath]] = field(default_factory=list)


class GlobMatcher(Protocol):
    def match(self, pattern: str, base_dir: Path) -> list[Path]:
        """Return matching files as absolute paths, in a stable order."""
        ...


class PathGlobMatcher:
    """Glob matcher backed by the standard library, `**` allowed."""

    def match(self, pattern: str, base_dir: Path) -> list[Path]:
        matches = glob.glob(pattern, root_dir=base_dir, recursive=True)
        paths = [(base_dir / m).resolve() for m in sorted(matches)]
        return [p for p in paths if p.is_file()]


def destination_prefix(
    prefix: str | None, source: Path | None = None, line: int | None = None
) -> PurePosixPath | None:
    """Normalise a destination prefix; it must stay inside the archive."""
    if prefix is None:
        return None
    path = PurePosixPath(prefix.replace("\\", "/"))
    parts = [p for p in path.parts if p not in (".", "")]
    if path.is_absolute() or ".." in parts:
        raise ParseError(
            f"resource prefix `{prefix}` must be a relative path inside the theme",
            source=source,
            line=line,
        )
    if not parts:
        return None
    return PurePosixPath(*parts)


def plan_resources(
    directives: list[ResourceDirective],
    matcher: GlobMatcher | None = None,
    reserved: Iterable[PurePosixPath] = (),
) -> list[ResourcePlanEntry]:
    """Expand each directive to (source path, archive path) pairs.

    Destinations flatten to `prefix/basename`. When two resources claim the
    same destination the first one wins and a warning is logged. A resource
    landing on a `reserved` destination is skipped with a warning.
    """
    matcher = matcher or PathGlobMatcher()
    taken = set(reserved)
    claimed: dict[PurePosixPath, Path] = {}
    plan: list[ResourcePlanEntry] = []

    for directive in directives:
        prefix = destination_prefix(directive.prefix, directive.source, directive.line)
        entry = ResourcePlanEntry(directive)
        log.debug(
            "glob pattern `%s` starting from `%s`", directive.pattern, directive.base_dir
        )
        matches = matcher.match(directive.pattern, directive.base_dir)
        if not matches:
            log.warning(
                "resource pattern `%s` matched no files in `%s`",
                directive.pattern,
                directive.base_dir,
            )

        for path in matches:
            dest = prefix / path.name if prefix else PurePosixPath(path.name)
            if dest in taken:
                log.warning(
                    "resource `%s` would replace the theme's own `%s`; skipping",
                    path,
                    dest,
                )
                continue
            if dest in claimed:
                log.warning(
                    "resource `%s` overwrites previous resource at `%s`; keeping `%s`",
                    path,
                    dest,
                    claimed[dest],
                )
                continue
            claimed[dest] = path
            entry.files.append((path, dest))

        plan.append(entry)

    return plan
