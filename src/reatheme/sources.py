"""Source files and the filesystem reader."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from reatheme.errors import NotFoundError, ParseError

SCRIPT_EXTENSIONS = frozenset({".py"})
KEY_VALUE_EXTENSIONS = frozenset({".reapertheme", ".ini"})


class SourceKind(Enum):
    SCRIPT = "script"
    STRUCTURED_CONFIG = "structured-config"
    KEY_VALUE = "key-value"

    @classmethod
    def from_path(cls, path: Path | str) -> "SourceKind":
        """Classify a file by extension; unknown extensions are rtconfig text."""
        suffix = Path(path).suffix.lower()
        if suffix in SCRIPT_EXTENSIONS:
            return cls.SCRIPT
        if suffix in KEY_VALUE_EXTENSIONS:
            return cls.KEY_VALUE
        return cls.STRUCTURED_CONFIG


@dataclass(frozen=True)
class SourceFile:
    path: Path
    kind: SourceKind
    text: str


class FilesystemReader:
    """Reads raw bytes from disk."""

    def read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise NotFoundError(path) from exc

    def load(self, path: Path) -> SourceFile:
        """Read and decode a source file, keyed by its canonical path."""
        canonical = path.resolve()
        data = self.read(canonical)
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(
                f"file is not valid UTF-8: {exc.reason}", source=canonical
            ) from exc
        return SourceFile(canonical, SourceKind.from_path(canonical), text)
