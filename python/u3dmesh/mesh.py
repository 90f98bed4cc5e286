"""
Triangulated, multi-material mesh model.

This module provides:
1. Material class holding a material's faces, texture coordinates and image
2. Mesh class holding vertex positions, triangles and materials
3. Read-only id based accessors used by the partition engine and exporters

Ids are positions: vertex id = row of `vertices`, face id = row of `faces`,
material id = index into `materials`, texture coordinate id = row of the
owning material's `uvs`. Every id sequence is returned in ascending or
stored order so that exports are reproducible byte for byte.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from .common import Array
from .errors import InputViolationError
from .texture import TextureUtils
from .utils import MeshUtils

logger = logging.getLogger(__name__)


MISSING_UV = -1
"""Texture coordinate id marking a face corner without a coordinate."""


def _as_ids(data, name: str, width: Optional[int] = None) -> np.ndarray:
    """Convert id data to uint32, rejecting negative values."""
    arr = np.asarray(data)
    if arr.size and (not np.issubdtype(arr.dtype, np.integer) or arr.min() < 0):
        raise ValueError(f"{name} must contain non-negative integer ids")
    arr = arr.astype(np.uint32)
    return arr.reshape(-1, width) if width else arr.reshape(-1)


class Material(BaseModel):
    """
    A single material: the faces it owns, their texture coordinates and
    the texture image.

    `face_uvs` is aligned with `face_ids`: row i holds the three texture
    coordinate ids of face `face_ids[i]`, in the face's winding order.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    face_ids: Array = Field(..., description="Ids of the faces owned by this material")
    uvs: Array = Field(
        default_factory=lambda: np.zeros((0, 2), dtype=np.float32),
        description="Texture coordinates as a (K, 2) array",
    )
    face_uvs: Optional[Array] = Field(
        None,
        description="Texture coordinate ids per face as an (F, 3) array, -1 where missing",
    )
    texture: Optional[Array] = Field(None, description="Texture image as an (H, W[, C]) uint8 array")

    @property
    def face_count(self) -> int:
        """Get the number of faces owned by this material."""
        return len(self.face_ids)

    @property
    def uv_count(self) -> int:
        """Get the number of texture coordinates."""
        return len(self.uvs)

    @model_validator(mode="after")
    def validate_arrays(self) -> "Material":
        """Normalise dtypes and shapes and check id ranges."""
        self.face_ids = _as_ids(self.face_ids, "face_ids")
        if len(np.unique(self.face_ids)) != len(self.face_ids):
            raise ValueError("face_ids must not repeat a face")

        self.uvs = np.asarray(self.uvs, dtype=np.float32).reshape(-1, 2)

        if self.face_uvs is None:
            self.face_uvs = np.full((len(self.face_ids), 3), MISSING_UV, dtype=np.int64)
        else:
            self.face_uvs = np.asarray(self.face_uvs, dtype=np.int64).reshape(-1, 3)
        if len(self.face_uvs) != len(self.face_ids):
            raise ValueError(
                f"face_uvs has {len(self.face_uvs)} rows but material has {len(self.face_ids)} faces")
        if self.face_uvs.size and (self.face_uvs.min() < MISSING_UV or self.face_uvs.max() >= len(self.uvs)):
            raise ValueError(
                f"face_uvs references texture coordinates outside [0, {len(self.uvs)})")

        if TextureUtils.is_empty(self.texture):
            self.texture = None
        else:
            self.texture = np.asarray(self.texture, dtype=np.uint8)
        return self


class Mesh(BaseModel):
    """
    A triangulated mesh with zero or more materials.

    A face belongs to at most one material. Faces outside every material
    form the unassigned remainder and carry no texture coordinates.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    vertices: Array = Field(..., description="Vertex positions as an (N, 3) array")
    faces: Array = Field(
        default_factory=lambda: np.zeros((0, 3), dtype=np.uint32),
        description="Triangle vertex ids as an (M, 3) array in winding order",
    )
    materials: List[Material] = Field(default_factory=list, description="Materials; id = list position")

    # face id -> owning material id (-1 if unassigned) and row within that material
    _face_materials: np.ndarray = PrivateAttr(default=None)
    _face_rows: np.ndarray = PrivateAttr(default=None)

    @model_validator(mode="after")
    def validate_arrays(self) -> "Mesh":
        """
        Normalise arrays and build the face to material lookup.

        Raises:
            ValueError: If a face references a missing vertex, a material
                references a missing face, or a face has two materials
        """
        self.vertices = np.asarray(self.vertices, dtype=np.float32).reshape(-1, 3)
        self.faces = _as_ids(self.faces, "faces", width=3)
        if self.faces.size and self.faces.max() >= len(self.vertices):
            raise ValueError(
                f"faces reference vertices outside [0, {len(self.vertices)})")

        face_materials = np.full(len(self.faces), -1, dtype=np.int64)
        face_rows = np.full(len(self.faces), -1, dtype=np.int64)
        for mid, material in enumerate(self.materials):
            if material.face_ids.size and material.face_ids.max() >= len(self.faces):
                raise ValueError(
                    f"Material {mid} references faces outside [0, {len(self.faces)})")
            owned = face_materials[material.face_ids]
            if np.any(owned >= 0):
                fid = int(material.face_ids[np.argmax(owned >= 0)])
                raise ValueError(
                    f"Face {fid} belongs to materials {int(face_materials[fid])} and {mid}")
            face_materials[material.face_ids] = mid
            face_rows[material.face_ids] = np.arange(material.face_count)

        self._face_materials = face_materials
        self._face_rows = face_rows
        return self

    @classmethod
    def from_triangles(cls, positions) -> "Mesh":
        """
        Build an unmaterialed mesh from triangle corner positions.

        Vertices are shared between triangles by exact position equality.
        Triangles with two equal corners are dropped, as are triangles whose
        corners exactly equal those of an earlier triangle (in any order).
        No tolerance is applied.

        Args:
            positions: (T, 3, 3) array of triangle corners

        Returns:
            A new Mesh
        """
        vertices, faces, dropped = MeshUtils.share_vertices(positions)
        if dropped:
            logger.info(f"Dropped {dropped} degenerate or duplicate triangles")
        return cls(vertices=vertices, faces=faces)

    # ============================================================
    # Sizes
    # ============================================================

    @property
    def vertex_count(self) -> int:
        """Get the number of vertices."""
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        """Get the number of faces."""
        return len(self.faces)

    @property
    def num_mats(self) -> int:
        """Get the number of materials."""
        return len(self.materials)

    @property
    def has_materials(self) -> bool:
        """Check whether the mesh has at least one material."""
        return self.num_mats > 0

    # ============================================================
    # Id based access
    # ============================================================

    def face_ids(self) -> np.ndarray:
        """Get all face ids in ascending order."""
        return np.arange(self.face_count)

    def material_ids(self) -> List[int]:
        """Get all material ids in ascending order."""
        return list(range(self.num_mats))

    def _material(self, material_id: int) -> Material:
        if not 0 <= material_id < self.num_mats:
            raise InputViolationError(
                f"Material {material_id} not found. Available materials: {self.material_ids()}")
        return self.materials[material_id]

    def material_face_ids(self, material_id: int) -> np.ndarray:
        """Get the ids of the faces owned by a material, in material order."""
        return self._material(material_id).face_ids

    def unassigned_face_ids(self) -> np.ndarray:
        """Get the ids of the faces without a material, in ascending order."""
        return np.flatnonzero(self._face_materials < 0)

    def face_material_id(self, face_id: int) -> int:
        """Get the material owning a face, or -1 if the face is unassigned."""
        return int(self._face_materials[face_id])

    def fvidxs(self, face_id: int) -> Tuple[int, int, int]:
        """Get the three vertex ids of a face in winding order."""
        a, b, c = self.faces[face_id]
        return int(a), int(b), int(c)

    def face_uvs(self, face_id: int) -> Optional[Tuple[int, int, int]]:
        """
        Get the three texture coordinate ids of a face in winding order.

        Returns:
            The ids, or None if the face is unassigned or any corner lacks a
            texture coordinate
        """
        material_id = self.face_material_id(face_id)
        if material_id < 0:
            return None
        uv_ids = self.materials[material_id].face_uvs[self._face_rows[face_id]]
        if np.any(uv_ids == MISSING_UV):
            return None
        a, b, c = uv_ids
        return int(a), int(b), int(c)

    def vtx(self, vertex_id: int) -> np.ndarray:
        """Get the position of a vertex."""
        return self.vertices[vertex_id]

    def uv(self, material_id: int, uv_id: int) -> np.ndarray:
        """Get a texture coordinate of a material."""
        return self._material(material_id).uvs[uv_id]

    def texture(self, material_id: int) -> Optional[np.ndarray]:
        """Get the texture image of a material, or None if it has none."""
        return self._material(material_id).texture

    # ============================================================
    # Mesh operations
    # ============================================================

    def deep_copy(self) -> "Mesh":
        """Get an independent copy of this mesh."""
        return self.model_copy(deep=True)

    def merge_materials(self) -> "Mesh":
        """
        Collapse all materials into a single material.

        Face ids are concatenated in material order and texture coordinate
        ids are offset so that they index the concatenated coordinate list.
        Textures are scaled to a common height and tiled left to right in
        material order; the `u` coordinate of each textured material is
        rescaled into its texture's horizontal slot. Materials without a
        texture keep their coordinates unchanged.

        Returns:
            A new mesh; this mesh is never modified. A mesh with at most one
            material is returned as a deep copy.

        Raises:
            ValueError: If the textures cannot be tiled together
        """
        if self.num_mats <= 1:
            return self.deep_copy()

        textures = [m.texture for m in self.materials if m.texture is not None]
        merged_texture = TextureUtils.tile_horizontally(textures) if textures else None
        untextured = [mid for mid, m in enumerate(self.materials) if m.texture is None]
        if textures and untextured:
            logger.warning(
                f"Materials {untextured} have no texture; their coordinates are not "
                f"remapped and will sample across the merged texture")

        face_ids, uvs, face_uvs = [], [], []
        uv_offset = 0
        x_offset = 0
        for material in self.materials:
            material_uvs = material.uvs.copy()
            if material.texture is not None:
                width = TextureUtils.resize_height(material.texture, merged_texture.shape[0]).shape[1]
                material_uvs[:, 0] = (x_offset + material_uvs[:, 0] * width) / merged_texture.shape[1]
                x_offset += width

            material_face_uvs = material.face_uvs.copy()
            material_face_uvs[material_face_uvs != MISSING_UV] += uv_offset

            face_ids.append(material.face_ids)
            uvs.append(material_uvs)
            face_uvs.append(material_face_uvs)
            uv_offset += material.uv_count

        logger.info(f"Merged {self.num_mats} materials into one for export")
        return Mesh(
            vertices=self.vertices.copy(),
            faces=self.faces.copy(),
            materials=[
                Material(
                    face_ids=np.concatenate(face_ids),
                    uvs=np.concatenate(uvs, axis=0),
                    face_uvs=np.concatenate(face_uvs, axis=0),
                    texture=merged_texture,
                )
            ],
        )
