"""
Partitioning of a mesh by material with compact index remapping.

A Partition holds the faces of one material (or of the unassigned
remainder) together with the distinct vertex ids and texture coordinate
ids those faces reference. Both id lists are in first-encountered order
while scanning the faces, and each has a lookup from the mesh's global
id to a compact index counted from `index_base`.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .errors import InputViolationError
from .mesh import Mesh


class Partition(BaseModel):
    """Faces, vertices and texture coordinates of one material, renumbered."""

    material_id: Optional[int] = Field(
        None, description="Selected material, or None for faces without a material")
    index_base: int = Field(0, description="First compact index (0 for IDTF/PLY, 1 for OBJ)")
    face_ids: List[int] = Field(default_factory=list, description="Face ids in mesh order")
    vertex_ids: List[int] = Field(default_factory=list, description="Distinct vertex ids, first-encountered order")
    uv_ids: List[int] = Field(default_factory=list, description="Distinct texture coordinate ids, first-encountered order")
    vertex_map: Dict[int, int] = Field(default_factory=dict, description="Vertex id -> compact index")
    uv_map: Dict[int, int] = Field(default_factory=dict, description="Texture coordinate id -> compact index")

    @property
    def face_count(self) -> int:
        return len(self.face_ids)

    @property
    def vertex_count(self) -> int:
        return len(self.vertex_ids)

    @property
    def uv_count(self) -> int:
        return len(self.uv_ids)

    @property
    def is_textured(self) -> bool:
        """A material partition carries texture coordinates; the remainder does not."""
        return self.material_id is not None

    @classmethod
    def build(cls, mesh: Mesh, material_id: Optional[int] = None, index_base: int = 0) -> "Partition":
        """
        Partition a mesh.

        Args:
            mesh: Source mesh, not modified
            material_id: Material to select, or None for the faces without a
                material (every face of an unmaterialed mesh)
            index_base: First compact index

        Returns:
            The partition

        Raises:
            InputViolationError: If the material is not in the mesh, or a face
                of the material has no texture coordinates
        """
        if material_id is None:
            face_ids = mesh.unassigned_face_ids()
        elif material_id in mesh.material_ids():
            face_ids = mesh.material_face_ids(material_id)
        else:
            raise InputViolationError(
                f"Material {material_id} not found. Available materials: {mesh.material_ids()}")

        partition = cls(material_id=material_id, index_base=index_base)
        for fid in face_ids:
            fid = int(fid)
            partition.face_ids.append(fid)
            for vid in mesh.fvidxs(fid):
                if vid not in partition.vertex_map:
                    partition.vertex_map[vid] = index_base + len(partition.vertex_ids)
                    partition.vertex_ids.append(vid)

            if not partition.is_textured:
                continue
            uv_ids = mesh.face_uvs(fid)
            if uv_ids is None:
                raise InputViolationError(
                    f"Face {fid} of material {material_id} has no texture coordinates")
            for uvid in uv_ids:
                if uvid not in partition.uv_map:
                    partition.uv_map[uvid] = index_base + len(partition.uv_ids)
                    partition.uv_ids.append(uvid)

        return partition

    def vertex_index(self, vertex_id: int) -> int:
        """Get the compact index of a vertex id."""
        return self.vertex_map[vertex_id]

    def uv_index(self, uv_id: int) -> int:
        """Get the compact index of a texture coordinate id."""
        return self.uv_map[uv_id]

    def face_vertex_indices(self, mesh: Mesh, face_id: int) -> Tuple[int, int, int]:
        """Get a face's compact vertex indices in its winding order."""
        a, b, c = mesh.fvidxs(face_id)
        return self.vertex_map[a], self.vertex_map[b], self.vertex_map[c]

    def face_uv_indices(self, mesh: Mesh, face_id: int) -> Tuple[int, int, int]:
        """Get a face's compact texture coordinate indices in its winding order."""
        uv_ids = mesh.face_uvs(face_id)
        if uv_ids is None:
            raise InputViolationError(f"Face {face_id} has no texture coordinates")
        a, b, c = uv_ids
        return self.uv_map[a], self.uv_map[b], self.uv_map[c]
