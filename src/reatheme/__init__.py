"""Reatheme - REAPER theme builder"""

from reatheme._version import __version__

# Re-export from color
from reatheme.color import Color, ColorKind, blend, color, rgb, rgba

# Re-export from compiler
from reatheme.compiler import CompiledTheme, ThemeCompiler, build_theme, compile_theme
from reatheme.emitter import BuildOptions, PackageEmitter

# Re-export from errors
from reatheme.errors import (
    ArchiveExistsError,
    BlendError,
    ChannelCountError,
    ChannelRangeError,
    ColorError,
    ConfigError,
    CyclicIncludeError,
    FractionRangeError,
    NotFoundError,
    ParseError,
    ScriptEvaluationError,
    ThemeBuildError,
    TypeMismatchError,
    UnknownBlendModeError,
)

__all__ = [
    "__version__",
    # color
    "Color",
    "ColorKind",
    "blend",
    "color",
    "rgb",
    "rgba",
    # compiler
    "BuildOptions",
    "CompiledTheme",
    "PackageEmitter",
    "ThemeCompiler",
    "build_theme",
    "compile_theme",
    # errors
    "ArchiveExistsError",
    "BlendError",
    "ChannelCountError",
    "ChannelRangeError",
    "ColorError",
    "ConfigError",
    "CyclicIncludeError",
    "FractionRangeError",
    "NotFoundError",
    "ParseError",
    "ScriptEvaluationError",
    "ThemeBuildError",
    "TypeMismatchError",
    "UnknownBlendModeError",
]
