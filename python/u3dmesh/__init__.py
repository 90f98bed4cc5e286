"""
Mesh to IDTF/U3D export.

This package converts in-memory triangulated, multi-material meshes into
IDTF scene documents and, through the external IDTFConverter tool, into
U3D files. It provides:

1. Mesh and Material pydantic models exposing id based, read-only access
2. Partition for per-material face selection and compact index remapping
3. IDTFWriter for serializing a partition as an IDTF scene graph
4. IDTFExporter and U3DExporter orchestrating texture export, scene
   writing, conversion and cleanup of intermediate files
5. PLYExporter and OBJExporter for plain ASCII geometry
6. ExportConfig holding converter and export options
"""

from .artifacts import ExportArtifacts
from .common import PathLike
from .config import ExportConfig
from .constants import ExportConstants
from .errors import (
    ArtifactWriteError,
    ConversionError,
    InputViolationError,
    MaterialMergeError,
    MissingTextureError,
    U3DMeshError,
)
from .exporters import (
    EXPORTERS,
    ExportStage,
    IDTFExporter,
    OBJExporter,
    PLYExporter,
    SceneExporter,
    U3DExporter,
    exporter_for,
)
from .idtf import IDTFWriter, ModelResource, transform_position
from .io_formats import IOFormats, MeshExporter
from .mesh import Material, Mesh
from .partition import Partition
from .texture import TextureUtils
from .utils import FormatUtils, MeshUtils

__all__ = [
    "PathLike",
    # Mesh classes
    "Mesh",
    "Material",
    # Partitioning
    "Partition",
    # Scene serialization
    "IDTFWriter",
    "ModelResource",
    "transform_position",
    # Exporters
    "IOFormats",
    "MeshExporter",
    "SceneExporter",
    "IDTFExporter",
    "U3DExporter",
    "PLYExporter",
    "OBJExporter",
    "EXPORTERS",
    "ExportStage",
    "exporter_for",
    # Configuration and artifacts
    "ExportConfig",
    "ExportArtifacts",
    "ExportConstants",
    # Errors
    "U3DMeshError",
    "InputViolationError",
    "MissingTextureError",
    "ArtifactWriteError",
    "ConversionError",
    "MaterialMergeError",
    # Utilities
    "TextureUtils",
    "FormatUtils",
    "MeshUtils",
]
