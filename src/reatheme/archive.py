"""Archive writers for the packaged theme."""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import IO, Protocol

DEFAULT_COMPRESSION_LEVEL = 6


class ArchiveWriter(Protocol):
    """Writes named entries, then finalizes (or aborts) the archive."""

    def create(self, name: str) -> IO[bytes]: ...

    def finalize(self) -> None: ...

    def abort(self) -> None: ...


class ZipArchiveWriter:
    """Deflate zip writer.

    Entries go to a hidden sibling file which `finalize()` moves onto the
    target path, so an interrupted build never leaves a half-written archive.
    """

    def __init__(self, path: Path, compression_level: int = DEFAULT_COMPRESSION_LEVEL):
        self.path = path
        self.partial = path.with_name(f".{path.name}.partial")
        self._zip = zipfile.ZipFile(
            self.partial,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=compression_level,
        )

    def create(self, name: str) -> IO[bytes]:
        return self._zip.open(name, mode="w")

    def finalize(self) -> None:
        self._zip.close()
        self.partial.replace(self.path)

    def abort(self) -> None:
        self._zip.close()
        self.partial.unlink(missing_ok=True)
