"""
File extension registry and the common exporter interface.

IOFormats keeps the extensions an exporter accepts together with a short
description of each. MeshExporter adds the two ways of exporting:

- export() raises a U3DMeshError (or OSError) on failure
- save() returns True/False and leaves the failure message in `err`
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from .artifacts import ExportArtifacts
from .common import PathLike
from .config import ExportConfig
from .errors import InputViolationError, U3DMeshError
from .mesh import Mesh

logger = logging.getLogger(__name__)


def get_extension(path: PathLike) -> str:
    """
    Get the lower case extension of a path without its leading dot.

    Returns:
        The extension, or "" if the path has none or ends with a dot
    """
    suffix = Path(str(path).strip()).suffix
    return suffix[1:].lower() if len(suffix) > 1 else ""


class IOFormats:
    """Registry of supported file extensions with descriptions."""

    def __init__(self):
        self._exts: Dict[str, str] = {}
        self._err = ""

    @property
    def err(self) -> str:
        """Get the message of the last failure, or "" if the last call succeeded."""
        return self._err

    @property
    def extensions(self) -> List[str]:
        """Get the supported extensions in the order they were added."""
        return list(self._exts)

    def add_supported(self, ext: str, description: str) -> bool:
        """
        Register an extension.

        Case, surrounding whitespace and leading or trailing dots are ignored.

        Returns:
            False if the extension is empty or already registered
        """
        ext = ext.strip().lower().strip(".")
        if not ext:
            logger.error("Cannot add an empty file extension")
            return False
        if ext in self._exts:
            logger.error(f"File extension '{ext}' is already supported")
            return False
        self._exts[ext] = description.strip()
        return True

    def is_supported(self, path: PathLike) -> bool:
        """Check whether a path has a supported extension."""
        return get_extension(path) in self._exts

    def description(self, ext: str) -> str:
        """Get the description of a supported extension."""
        return self._exts[ext.strip().lower().strip(".")]

    def _set_err(self, message: str) -> None:
        self._err = message


class MeshExporter(IOFormats, ABC):
    """
    Base class for exporters.

    Subclasses register their extensions in __init__ and implement
    _do_export. Generated intermediate files are tracked in `artifacts`
    and removed by close() when the configuration asks for it, or by
    default when `delete_artifacts_default` is set.
    """

    delete_artifacts_default = False

    def __init__(self, config: Optional[ExportConfig] = None):
        super().__init__()
        self.config = config or ExportConfig()
        self.artifacts = ExportArtifacts(delete=self.delete_artifacts)

    @property
    def delete_artifacts(self) -> bool:
        """Check whether generated files are deleted on cleanup."""
        if self.config.delete_artifacts is None:
            return self.delete_artifacts_default
        return self.config.delete_artifacts

    def check_path(self, path: PathLike) -> Path:
        """
        Check that a path can be written by this exporter.

        Raises:
            InputViolationError: If the path is empty or its extension is
                missing or unsupported
        """
        if not str(path).strip():
            raise InputViolationError("Empty filename passed for export")
        if not get_extension(path):
            raise InputViolationError(f"{path} is missing an extension")
        if not self.is_supported(path):
            raise InputViolationError(f"{path} has an unsupported file extension for exporting")
        return Path(str(path).strip())

    def export(self, mesh: Mesh, path: PathLike) -> Path:
        """
        Export a mesh.

        Returns:
            The written path

        Raises:
            U3DMeshError: On input, write or conversion failures
            OSError: On unexpected file system failures
        """
        self._set_err("")
        path = self.check_path(path)
        return self._do_export(mesh, path)

    def save(self, mesh: Mesh, path: PathLike) -> bool:
        """
        Export a mesh, reporting failure through `err` instead of raising.

        Returns:
            True on success
        """
        try:
            self.export(mesh, path)
        except (U3DMeshError, OSError) as e:
            self._set_err(str(e))
            logger.warning(f"Export to {path} failed: {e}")
            return False
        return True

    def close(self) -> None:
        """Release generated files (deleting them if configured). Safe to repeat."""
        self.artifacts.cleanup()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    @abstractmethod
    def _do_export(self, mesh: Mesh, path: Path) -> Path:
        """Write the mesh to a path whose extension is already validated."""
        ...
