"""Package emitter - writes the compiled theme into a .ReaperThemeZip.

Archive layout (what REAPER loads):
    <name>.ReaperTheme          key/value document
    <name>/rtconfig.txt         structured-config document
    <name>/<destination>        every planned resource
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from reatheme.archive import DEFAULT_COMPRESSION_LEVEL, ArchiveWriter, ZipArchiveWriter
from reatheme.errors import ArchiveExistsError, NotFoundError
from reatheme.sources import FilesystemReader

if TYPE_CHECKING:
    from reatheme.compiler import CompiledTheme

log = logging.getLogger(__name__)

RTCONFIG_NAME = "rtconfig.txt"
REAPERTHEME_EXTENSION = "ReaperTheme"
ARCHIVE_EXTENSION = ".ReaperThemeZip"


@dataclass
class BuildOptions:
    overwrite: bool = False
    compression_level: int = DEFAULT_COMPRESSION_LEVEL


def archive_entries(
    theme: CompiledTheme, reader: FilesystemReader
) -> list[tuple[str, bytes]]:
    """All (entry name, bytes) pairs, resources read up front."""
    root = PurePosixPath(theme.name)
    entries = [
        (f"{theme.name}.{REAPERTHEME_EXTENSION}", theme.reapertheme.encode("utf-8")),
        (str(root / RTCONFIG_NAME), theme.rtconfig.encode("utf-8")),
    ]
    for plan_entry in theme.resources:
        directive = plan_entry.directive
        for source, dest in plan_entry.files:
            try:
                data = reader.read(source)
            except NotFoundError as exc:
                exc.with_location(directive.source, directive.line)
                raise
            entries.append((str(root / dest), data))
    return entries


class PackageEmitter:
    """Hands the compiled documents and resource bytes to an archive writer.

    Args:
        reader: Reads resource bytes.
        writer_factory: Builds the archive writer for an output path.
    """

    def __init__(
        self,
        reader: FilesystemReader | None = None,
        writer_factory: Callable[[Path, int], ArchiveWriter] = ZipArchiveWriter,
    ):
        self.reader = reader or FilesystemReader()
        self.writer_factory = writer_factory

    def emit(
        self, theme: CompiledTheme, output: Path, options: BuildOptions | None = None
    ) -> Path:
        """Write the archive; nothing is written unless every input is readable."""
        options = options or BuildOptions()
        if output.is_dir() or (output.exists() and not options.overwrite):
            raise ArchiveExistsError(output)

        if output.stem != theme.name:
            log.warning(
                "Output theme file has a different name than the theme; "
                "REAPER may not load the theme correctly!"
            )
        if output.suffix.lower() != ARCHIVE_EXTENSION.lower():
            log.warning(
                "Output theme file does not end with '%s'; "
                "REAPER may not be able to load the theme!",
                ARCHIVE_EXTENSION,
            )

        entries = archive_entries(theme, self.reader)

        output.parent.mkdir(parents=True, exist_ok=True)
        writer = self.writer_factory(output, options.compression_level)
        try:
            for name, data in entries:
                log.debug("writing %s (%d bytes)", name, len(data))
                with writer.create(name) as sink:
                    sink.write(data)
        except BaseException:
            writer.abort()
            raise
        writer.finalize()
        log.info("Wrote %s (%d entries)", output, len(entries))
        return output
