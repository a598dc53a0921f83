"""Compiler - runs one compile from entry file to packaged theme."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from reatheme.document import assemble
from reatheme.emitter import RTCONFIG_NAME, BuildOptions, PackageEmitter
from reatheme.engine import ExpressionEngine
from reatheme.resolver import DirectiveResolver, ResolutionPlan
from reatheme.resources import GlobMatcher, ResourcePlanEntry, plan_resources
from reatheme.sources import FilesystemReader

log = logging.getLogger(__name__)

DEFAULT_THEME_NAME = "theme"


@dataclass
class CompiledTheme:
    """Rendered documents and resource plan for one theme."""

    name: str
    rtconfig: str
    reapertheme: str
    resources: list[ResourcePlanEntry] = field(default_factory=list)
    plan: ResolutionPlan = field(default_factory=ResolutionPlan)


class ThemeCompiler:
    """Compiles an entry file into a CompiledTheme.

    The sandbox is built once per compiler; every `compile()` call gets a
    fresh EvaluationContext, so compiles never see each other's bindings.
    """

    def __init__(
        self,
        engine: ExpressionEngine | None = None,
        reader: FilesystemReader | None = None,
        matcher: GlobMatcher | None = None,
    ):
        self.engine = engine or ExpressionEngine()
        self.reader = reader or FilesystemReader()
        self.matcher = matcher

    def compile(self, entry: Path, name: str = DEFAULT_THEME_NAME) -> CompiledTheme:
        context = self.engine.new_context()
        resolver = DirectiveResolver(self.engine, self.reader)
        plan = resolver.resolve(Path(entry), context)
        log.info("Resolved %d files from %s", len(plan.files), entry)

        rtconfig, reapertheme = assemble(plan.fragments, plan.key_values)
        resources = plan_resources(
            plan.resources, self.matcher, reserved={PurePosixPath(RTCONFIG_NAME)}
        )
        return CompiledTheme(
            name=name,
            rtconfig=rtconfig.render(),
            reapertheme=reapertheme.render(),
            resources=resources,
            plan=plan,
        )


def compile_theme(entry: Path, name: str = DEFAULT_THEME_NAME) -> CompiledTheme:
    """Compile `entry` without writing anything."""
    return ThemeCompiler().compile(entry, name)


def build_theme(
    entry: Path,
    output: Path,
    options: BuildOptions | None = None,
    name: str | None = None,
) -> Path:
    """Compile `entry` and package it at `output`.

    The theme name defaults to the output file's stem. The archive is only
    written once the whole compile has succeeded.
    """
    theme = ThemeCompiler().compile(entry, name or output.stem)
    return PackageEmitter().emit(theme, output, options)
