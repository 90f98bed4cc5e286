"""
IDTF (Intermediate Data Text Format) scene serialization.

An IDTF document is a fixed sequence of brace-delimited blocks:

1. File header
2. GROUP and MODEL nodes
3. MODEL resource list holding one MESH (written by ModelResource)
4. SHADER, MATERIAL and optional TEXTURE resource lists
5. SHADING modifier binding the mesh to its shader

Every count declared in the MESH header equals the number of entries in
the list that follows it. The document is consumed by IDTFConverter to
produce U3D files.
"""

import io
import logging
from pathlib import Path
from typing import Optional, TextIO

from .common import Colour, PathLike
from .constants import ExportConstants
from .errors import ArtifactWriteError
from .mesh import Mesh
from .partition import Partition
from .utils import FormatUtils

logger = logging.getLogger(__name__)


IDENTITY_TM = (
    "1.0 0.0 0.0 0.0",
    "0.0 1.0 0.0 0.0",
    "0.0 0.0 1.0 0.0",
    "0.0 0.0 0.0 1.0",
)


def _line(stream: TextIO, depth: int, text: str = "") -> None:
    stream.write("\t" * depth + text + "\n")


def transform_position(position, transform_coordinates: bool):
    """
    Map a position into the exported coordinate frame.

    With `transform_coordinates` set, (x, y, z) becomes (x, -z, y), which
    turns a Z-up model into the Y-up frame expected by media9 viewers.
    """
    x, y, z = (float(v) for v in position)
    if transform_coordinates:
        return x, -z, y
    return x, y, z


class ModelResource:
    """
    Writes the MESH block of one partition.

    The partition supplies the face order and the compact vertex and
    texture coordinate indices; the mesh supplies positions and texture
    coordinates. Normals are not modelled: every face gets three zero
    normals of its own.
    """

    def __init__(self, mesh: Mesh, partition: Partition, transform_coordinates: bool = False):
        self.mesh = mesh
        self.partition = partition
        self.transform_coordinates = transform_coordinates

    @property
    def normal_count(self) -> int:
        return 3 * self.partition.face_count

    @property
    def uv_count(self) -> int:
        return self.partition.uv_count if self.partition.is_textured else 0

    def write(self, stream: TextIO) -> None:
        """Write the MESH body at the nesting depth of a MODEL resource."""
        self._write_header(stream)
        self._write_shading_description_list(stream)
        self._write_face_position_list(stream)
        self._write_face_normal_list(stream)
        self._write_face_shading_list(stream)
        if self.partition.is_textured:
            self._write_face_texture_coord_list(stream)
        self._write_position_list(stream)
        self._write_normal_list(stream)
        if self.partition.is_textured:
            self._write_texture_coord_list(stream)

    def _write_header(self, stream: TextIO) -> None:
        _line(stream, 3, f"FACE_COUNT {self.partition.face_count}")
        _line(stream, 3, f"MODEL_POSITION_COUNT {self.partition.vertex_count}")
        _line(stream, 3, f"MODEL_NORMAL_COUNT {self.normal_count}")
        _line(stream, 3, "MODEL_DIFFUSE_COLOR_COUNT 0")
        _line(stream, 3, "MODEL_SPECULAR_COLOR_COUNT 0")
        _line(stream, 3, f"MODEL_TEXTURE_COORD_COUNT {self.uv_count}")
        _line(stream, 3, "MODEL_BONE_COUNT 0")
        _line(stream, 3, "MODEL_SHADING_COUNT 1")

    def _write_shading_description_list(self, stream: TextIO) -> None:
        textured = self.partition.is_textured
        _line(stream, 3, "MODEL_SHADING_DESCRIPTION_LIST {")
        _line(stream, 4, "SHADING_DESCRIPTION 0 {")
        # No multi-texturing
        _line(stream, 5, f"TEXTURE_LAYER_COUNT {1 if textured else 0}")
        if textured:
            _line(stream, 5, "TEXTURE_COORD_DIMENSION_LIST {")
            _line(stream, 6, "TEXTURE_LAYER 0 DIMENSION: 2")
            _line(stream, 5, "}")
        _line(stream, 5, "SHADER_ID 0")
        _line(stream, 4, "}")
        _line(stream, 3, "}")

    def _write_face_position_list(self, stream: TextIO) -> None:
        _line(stream, 3, "MESH_FACE_POSITION_LIST {")
        for fid in self.partition.face_ids:
            _line(stream, 4, FormatUtils.ints(self.partition.face_vertex_indices(self.mesh, fid)))
        _line(stream, 3, "}")

    def _write_face_normal_list(self, stream: TextIO) -> None:
        _line(stream, 3, "MESH_FACE_NORMAL_LIST {")
        for i in range(0, self.normal_count, 3):
            _line(stream, 4, f"{i} {i + 1} {i + 2}")
        _line(stream, 3, "}")

    def _write_face_shading_list(self, stream: TextIO) -> None:
        _line(stream, 3, "MESH_FACE_SHADING_LIST {")
        for _ in range(self.partition.face_count):
            _line(stream, 4, "0")
        _line(stream, 3, "}")

    def _write_face_texture_coord_list(self, stream: TextIO) -> None:
        _line(stream, 3, "MESH_FACE_TEXTURE_COORD_LIST {")
        for i, fid in enumerate(self.partition.face_ids):
            uv_indices = FormatUtils.ints(self.partition.face_uv_indices(self.mesh, fid))
            _line(stream, 4, f"FACE {i} {{")
            _line(stream, 5, f"TEXTURE_LAYER 0 TEX_COORD: {uv_indices}")
            _line(stream, 4, "}")
        _line(stream, 3, "}")

    def _write_position_list(self, stream: TextIO) -> None:
        _line(stream, 3, "MODEL_POSITION_LIST {")
        for vid in self.partition.vertex_ids:
            position = transform_position(self.mesh.vtx(vid), self.transform_coordinates)
            _line(stream, 4, FormatUtils.numbers(position))
        _line(stream, 3, "}")

    def _write_normal_list(self, stream: TextIO) -> None:
        _line(stream, 3, "MODEL_NORMAL_LIST {")
        zero = FormatUtils.numbers((0.0, 0.0, 0.0))
        for _ in range(self.normal_count):
            _line(stream, 4, zero)
        _line(stream, 3, "}")

    def _write_texture_coord_list(self, stream: TextIO) -> None:
        _line(stream, 3, "MODEL_TEXTURE_COORD_LIST {")
        for uvid in self.partition.uv_ids:
            u, v = self.mesh.uv(self.partition.material_id, uvid)
            _line(stream, 4, " ".join(FormatUtils.fixed(x) for x in (u, v, 0.0, 0.0)))
        _line(stream, 3, "}")


class IDTFWriter:
    """
    Serializes a mesh as an IDTF scene document.

    The first material is exported when the mesh has materials, otherwise
    all of its faces are exported untextured. Meshes with several
    materials should be merged first (see Mesh.merge_materials); faces
    outside the exported material are omitted.

    Args:
        transform_coordinates: Write positions as (x, -z, y)
        emissive: Emissive RGB colour of the single material
    """

    def __init__(self, transform_coordinates: bool = False, emissive: Colour = (0.0, 0.0, 0.0)):
        self.transform_coordinates = transform_coordinates
        self.emissive = tuple(emissive)

    def partition(self, mesh: Mesh) -> Partition:
        """Select and build the partition that gets exported."""
        material_id = mesh.material_ids()[0] if mesh.has_materials else None
        partition = Partition.build(mesh, material_id)
        omitted = mesh.face_count - partition.face_count
        if omitted:
            logger.warning(
                f"{omitted} of {mesh.face_count} faces are outside material {material_id} and are not exported")
        return partition

    def write(self, mesh: Mesh, stream: TextIO, texture_path: Optional[PathLike] = None) -> None:
        """
        Write the scene document to a text stream.

        Args:
            mesh: Mesh to serialize
            stream: Writable text stream
            texture_path: Texture image referenced by the shader, if any
        """
        partition = self.partition(mesh)
        has_texture = texture_path is not None

        _line(stream, 0, 'FILE_FORMAT "IDTF"')
        _line(stream, 0, "FORMAT_VERSION 100")
        _line(stream, 0)

        self._write_node(stream, "GROUP", ExportConstants.GROUP_NAME, "<NULL>")
        self._write_node(stream, "MODEL", ExportConstants.MESH_NAME, ExportConstants.GROUP_NAME,
                         resource_name=ExportConstants.MESH_NAME)

        _line(stream, 0, 'RESOURCE_LIST "MODEL" {')
        _line(stream, 1, "RESOURCE_COUNT 1")
        _line(stream, 1, "RESOURCE 0 {")
        _line(stream, 2, f'RESOURCE_NAME "{ExportConstants.MESH_NAME}"')
        _line(stream, 2, 'MODEL_TYPE "MESH"')
        _line(stream, 2, "MESH {")
        ModelResource(mesh, partition, self.transform_coordinates).write(stream)
        _line(stream, 2, "}")
        _line(stream, 1, "}")
        _line(stream, 0, "}")
        _line(stream, 0)

        self._write_shader_list(stream, has_texture)
        self._write_material_list(stream, fixed=partition.is_textured)
        if has_texture:
            self._write_texture_list(stream, texture_path)
        self._write_shading_modifier(stream)

    def dumps(self, mesh: Mesh, texture_path: Optional[PathLike] = None) -> str:
        """Serialize the scene document to a string."""
        stream = io.StringIO()
        self.write(mesh, stream, texture_path)
        return stream.getvalue()

    def write_file(self, mesh: Mesh, path: PathLike, texture_path: Optional[PathLike] = None) -> Path:
        """
        Write the scene document to a file.

        Raises:
            ArtifactWriteError: If the file cannot be opened or written; a
                partially written file is left in place
        """
        path = Path(path)
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                self.write(mesh, f, texture_path)
        except OSError as e:
            raise ArtifactWriteError(f"Unable to write IDTF text file: {e}") from e
        logger.debug(f"Wrote IDTF scene to {path}")
        return path

    @staticmethod
    def _write_node(stream: TextIO, node_type: str, name: str, parent: str,
                    resource_name: Optional[str] = None) -> None:
        _line(stream, 0, f'NODE "{node_type}" {{')
        _line(stream, 1, f'NODE_NAME "{name}"')
        _line(stream, 1, "PARENT_LIST {")
        _line(stream, 2, "PARENT_COUNT 1")
        _line(stream, 2, "PARENT 0 {")
        _line(stream, 3, f'PARENT_NAME "{parent}"')
        _line(stream, 3, "PARENT_TM {")
        for row in IDENTITY_TM:
            _line(stream, 4, row)
        _line(stream, 3, "}")
        _line(stream, 2, "}")
        _line(stream, 1, "}")
        if resource_name is not None:
            _line(stream, 1, f'RESOURCE_NAME "{resource_name}"')
        _line(stream, 0, "}")
        _line(stream, 0)

    @staticmethod
    def _write_shader_list(stream: TextIO, has_texture: bool) -> None:
        _line(stream, 0, 'RESOURCE_LIST "SHADER" {')
        _line(stream, 1, "RESOURCE_COUNT 1")
        _line(stream, 1, "RESOURCE 0 {")
        _line(stream, 2, f'RESOURCE_NAME "{ExportConstants.SHADER_NAME}"')
        _line(stream, 2, f'SHADER_MATERIAL_NAME "{ExportConstants.MATERIAL_NAME}"')
        _line(stream, 2, f"SHADER_ACTIVE_TEXTURE_COUNT {1 if has_texture else 0}")
        if has_texture:
            _line(stream, 2, "SHADER_TEXTURE_LAYER_LIST {")
            _line(stream, 3, "TEXTURE_LAYER 0 {")
            _line(stream, 4, f'TEXTURE_NAME "{ExportConstants.TEXTURE_NAME}"')
            _line(stream, 3, "}")
            _line(stream, 2, "}")
        _line(stream, 1, "}")
        _line(stream, 0, "}")
        _line(stream, 0)

    def _write_material_list(self, stream: TextIO, fixed: bool = False) -> None:
        # textured documents render the emissive colour in fixed notation
        render = FormatUtils.fixed if fixed else FormatUtils.number
        emissive = " ".join(render(c) for c in self.emissive)
        _line(stream, 0, 'RESOURCE_LIST "MATERIAL" {')
        _line(stream, 1, "RESOURCE_COUNT 1")
        _line(stream, 1, "RESOURCE 0 {")
        _line(stream, 2, f'RESOURCE_NAME "{ExportConstants.MATERIAL_NAME}"')
        _line(stream, 2, "MATERIAL_AMBIENT 0.0 0.0 0.0 0.0")
        _line(stream, 2, "MATERIAL_DIFFUSE 0.4 0.4 0.4 0.4")
        _line(stream, 2, "MATERIAL_SPECULAR 0.0 0.0 0.0 0.0")
        _line(stream, 2, f"MATERIAL_EMISSIVE {emissive} 1.0")
        _line(stream, 2, "MATERIAL_REFLECTIVITY 0.0")
        _line(stream, 2, "MATERIAL_OPACITY 1.0")
        _line(stream, 1, "}")
        _line(stream, 0, "}")
        _line(stream, 0)

    @staticmethod
    def _write_texture_list(stream: TextIO, texture_path: PathLike) -> None:
        _line(stream, 0, 'RESOURCE_LIST "TEXTURE" {')
        _line(stream, 1, "RESOURCE_COUNT 1")
        _line(stream, 1, "RESOURCE 0 {")
        _line(stream, 2, f'RESOURCE_NAME "{ExportConstants.TEXTURE_NAME}"')
        _line(stream, 2, f'TEXTURE_PATH "{texture_path}"')
        _line(stream, 1, "}")
        _line(stream, 0, "}")
        _line(stream, 0)

    @staticmethod
    def _write_shading_modifier(stream: TextIO) -> None:
        _line(stream, 0, 'MODIFIER "SHADING" {')
        _line(stream, 1, f'MODIFIER_NAME "{ExportConstants.MESH_NAME}"')
        _line(stream, 1, "PARAMETERS {")
        _line(stream, 2, "SHADER_LIST_COUNT 1")
        _line(stream, 2, "SHADING_GROUP {")
        _line(stream, 3, "SHADER_LIST 0 {")
        _line(stream, 4, "SHADER_COUNT 1")
        _line(stream, 4, "SHADER_NAME_LIST {")
        _line(stream, 5, f'SHADER 0 NAME: "{ExportConstants.SHADER_NAME}"')
        _line(stream, 4, "}")
        _line(stream, 3, "}")
        _line(stream, 2, "}")
        _line(stream, 1, "}")
        _line(stream, 0, "}")
