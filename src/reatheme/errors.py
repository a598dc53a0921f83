"""Reatheme Exceptions

Every failure aborts the whole compile. Errors carry the source file and the
best known position so the front end can point at the offending text.
"""

from __future__ import annotations

from pathlib import Path


class ThemeBuildError(Exception):
    """Base exception for all theme build errors."""

    def __init__(
        self,
        message: str,
        *,
        source: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ):
        self.message = message
        self.source = source
        self.line = line
        self.column = column
        super().__init__(message)

    @property
    def location(self) -> str | None:
        """`file:line:column`, using only the parts that are known."""
        if self.source is None:
            return None
        parts = [str(self.source)]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column))
        return ":".join(parts)

    def with_location(
        self,
        source: Path | None,
        line: int | None = None,
        column: int | None = None,
    ) -> "ThemeBuildError":
        """Fill in location details that are still unknown and return self."""
        if self.source is None:
            self.source = source
        if self.line is None:
            self.line = line
            if self.column is None:
                self.column = column
        return self

    def __str__(self) -> str:
        location = self.location
        if location is None:
            return self.message
        return f"{location}: {self.message}"


class ParseError(ThemeBuildError):
    """Malformed directive, section or inline-expression syntax."""


class CyclicIncludeError(ThemeBuildError):
    """Raised when a file includes itself, directly or through other files."""

    def __init__(self, cycle: list[Path], **kwargs):
        self.cycle = cycle
        chain = " -> ".join(str(p) for p in cycle)
        super().__init__(f"Cyclic include: {chain}", **kwargs)


class NotFoundError(ThemeBuildError):
    """Raised when an include or resource source file does not exist."""

    def __init__(self, path: Path, **kwargs):
        self.path = path
        super().__init__(f"File not found: {path}", **kwargs)


class ColorError(ThemeBuildError):
    """Base for color value errors."""


class ChannelRangeError(ColorError):
    """A color channel (or packed value) is outside its valid range."""


class ChannelCountError(ColorError):
    """A packed color was requested with an unsupported channel count."""


class TypeMismatchError(ColorError):
    """An RGB-only or RGBA-only operation was applied to the other variant."""


class BlendError(ThemeBuildError):
    """Base for blend encoding errors."""


class FractionRangeError(BlendError):
    """Blend fraction outside [0.0, 1.0]."""


class UnknownBlendModeError(BlendError):
    """Blend mode name not in the recognised table."""


class ScriptEvaluationError(ThemeBuildError):
    """Runtime or compile failure inside the sandboxed interpreter."""


class ArchiveExistsError(ThemeBuildError):
    """Raised when the output archive path is taken and overwriting is off."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"The path already exists: {path}")


class ConfigError(ThemeBuildError):
    """Raised when the build configuration file is invalid."""
