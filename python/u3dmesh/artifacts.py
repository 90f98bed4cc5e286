"""
Scoped ownership of files generated during an export.

Exporters track every intermediate file they write in an ExportArtifacts
guard. Calling cleanup() deletes the tracked files when the guard was
created with delete=True and forgets them either way, so the guard can be
reused for the next export. Cleanup is idempotent and ignores files that
are already gone.
"""

import logging
from pathlib import Path
from typing import List

from .common import PathLike

logger = logging.getLogger(__name__)


class ExportArtifacts:
    """Tracks generated files and deletes them on cleanup."""

    def __init__(self, delete: bool = False):
        self.delete = delete
        self._paths: List[Path] = []

    @property
    def paths(self) -> List[Path]:
        """Get the tracked paths in the order they were tracked."""
        return list(self._paths)

    def track(self, path: PathLike) -> Path:
        """Take ownership of a generated file."""
        path = Path(path)
        if path not in self._paths:
            self._paths.append(path)
        return path

    def cleanup(self) -> None:
        """Delete tracked regular files if configured, then forget them."""
        if self.delete:
            for path in self._paths:
                if path.is_file():
                    path.unlink(missing_ok=True)
                    logger.debug(f"Deleted export artifact {path}")
        self._paths.clear()

    def __enter__(self) -> "ExportArtifacts":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.cleanup()
