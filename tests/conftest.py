import logging
import textwrap
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo the CLI's logging setup so caplog sees reatheme records."""
    logger = logging.getLogger("reatheme")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers, logger.level, logger.propagate = handlers, level, propagate


@pytest.fixture
def root(tmp_path):
    """tmp_path with symlinks resolved, matching the compiler's canonical paths."""
    return tmp_path.resolve()


@pytest.fixture
def write(root):
    """Write dedented files below root and return the first path."""

    def _write(files: dict[str, str | bytes]) -> Path:
        first = None
        for name, content in files.items():
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(textwrap.dedent(content))
            first = first or path
        return first

    return _write
