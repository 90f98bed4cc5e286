"""
Mesh utility functions for building meshes from raw triangles and
finding duplicate triangles.

Duplicate detection uses exact position equality on all three corners.
Coincident but distinct triangles (for example two zero-area triangles at
the same place) are therefore treated as one.
"""

from typing import Dict, List, Set, Tuple, TYPE_CHECKING
import numpy as np

if TYPE_CHECKING:
    from ..mesh import Mesh


Position = Tuple[float, float, float]


class MeshUtils:
    """Utility class for vertex sharing and duplicate triangle checks."""

    @staticmethod
    def position_key(position) -> Position:
        """
        Get a hashable key for a vertex position.

        Positions are compared at float32 precision, the precision a Mesh
        stores them at.
        """
        x, y, z = np.asarray(position, dtype=np.float32)
        return float(x), float(y), float(z)

    @staticmethod
    def face_key(corners) -> frozenset:
        """Get an order-insensitive key for a triangle's corner positions."""
        return frozenset(MeshUtils.position_key(c) for c in corners)

    @staticmethod
    def share_vertices(positions) -> Tuple[np.ndarray, np.ndarray, int]:
        """
        Convert triangle corners into shared vertices and faces.

        Args:
            positions: (T, 3, 3) array of triangle corners

        Returns:
            Tuple of (vertices, faces, dropped) where dropped counts the
            degenerate and duplicate triangles that were not added
        """
        positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3, 3)
        vertex_ids: Dict[Position, int] = {}
        vertices: List[Position] = []
        faces: List[Tuple[int, int, int]] = []
        seen: Set[frozenset] = set()
        dropped = 0

        for corners in positions:
            keys = [MeshUtils.position_key(c) for c in corners]
            # All three corners must differ to make a triangle
            if keys[0] == keys[1] or keys[1] == keys[2] or keys[2] == keys[0]:
                dropped += 1
                continue
            face_key = frozenset(keys)
            if face_key in seen:
                dropped += 1
                continue
            seen.add(face_key)

            face = []
            for key in keys:
                if key not in vertex_ids:
                    vertex_ids[key] = len(vertices)
                    vertices.append(key)
                face.append(vertex_ids[key])
            faces.append(tuple(face))

        return (
            np.array(vertices, dtype=np.float32).reshape(-1, 3),
            np.array(faces, dtype=np.uint32).reshape(-1, 3),
            dropped,
        )

    @staticmethod
    def find_duplicate_faces(mesh: "Mesh") -> List[int]:
        """
        Find faces whose corner positions exactly equal an earlier face's.

        Args:
            mesh: Mesh to check

        Returns:
            Ids of the later face of every duplicate pair, ascending
        """
        seen: Set[frozenset] = set()
        duplicates = []
        for fid, face in enumerate(mesh.faces):
            key = MeshUtils.face_key(mesh.vertices[face])
            if key in seen:
                duplicates.append(fid)
            else:
                seen.add(key)
        return duplicates
