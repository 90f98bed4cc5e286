"""
Export a textured cube as IDTF, OBJ and (when IDTFConverter is installed) U3D.
"""

import os

import numpy as np

from u3dmesh import ExportConfig, Material, Mesh, U3DExporter, exporter_for


def generate_cube_mesh():
    """Generate a cube whose faces share one checkerboard texture."""
    vertices = np.array([
        [-0.5, -0.5, -0.5],
        [0.5, -0.5, -0.5],
        [0.5, 0.5, -0.5],
        [-0.5, 0.5, -0.5],
        [-0.5, -0.5, 0.5],
        [0.5, -0.5, 0.5],
        [0.5, 0.5, 0.5],
        [-0.5, 0.5, 0.5]
    ], dtype=np.float32)

    faces = np.array([
        [0, 2, 1], [0, 3, 2],  # bottom
        [4, 5, 6], [4, 6, 7],  # top
        [0, 1, 5], [0, 5, 4],  # front
        [1, 2, 6], [1, 6, 5],  # right
        [2, 3, 7], [2, 7, 6],  # back
        [3, 0, 4], [3, 4, 7],  # left
    ], dtype=np.uint32)

    uvs = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]], dtype=np.float32)
    face_uvs = np.tile([[0, 2, 1], [0, 3, 2]], (6, 1))

    # 8x8 black and white checkerboard
    checker = (np.indices((8, 8)).sum(axis=0) % 2 * 255).astype(np.uint8)
    texture = np.stack([checker] * 3, axis=-1)

    material = Material(face_ids=np.arange(len(faces)), uvs=uvs, face_uvs=face_uvs, texture=texture)
    return Mesh(vertices=vertices, faces=faces, materials=[material])


def main():
    """Export the cube into examples/output."""
    mesh = generate_cube_mesh()

    output_dir = os.path.join(os.path.dirname(__file__), 'output')
    os.makedirs(output_dir, exist_ok=True)

    config = ExportConfig(transform_coordinates=True, delete_artifacts=False)
    extensions = ["idtf", "obj", "ply"]
    if U3DExporter.is_available(config.converter_path):
        extensions.append("u3d")

    for ext in extensions:
        output_path = os.path.join(output_dir, f"cube.{ext}")
        exporter = exporter_for(output_path, config)
        if exporter.save(mesh, output_path):
            print(f"Mesh saved to {output_path}")
        else:
            print(f"Export to {output_path} failed: {exporter.err}")


if __name__ == "__main__":
    main()
