"""
Tests for IDTF scene serialization.

The helpers below read blocks back out of the written text so that the
declared counts, index lists and value lists can be checked against each
other.
"""
import io

import numpy as np
import pytest

from u3dmesh import ArtifactWriteError, IDTFWriter, Material, Mesh, transform_position


def read_block(text, name, start=0):
    """Get the stripped lines inside the first `name {` block at or after line `start`,
    leaving out closing braces of nested blocks."""
    lines = text.splitlines()
    for i in range(start, len(lines)):
        if lines[i].strip() == f"{name} {{":
            depth = 1
            body = []
            for line in lines[i + 1:]:
                stripped = line.strip()
                if stripped.endswith("{"):
                    depth += 1
                elif stripped == "}":
                    depth -= 1
                    if depth == 0:
                        return body
                    continue
                body.append(stripped)
    raise AssertionError(f"Block {name} not found")


def read_value(text, key):
    """Get the value of the first `key value` line."""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith(key + " "):
            return stripped[len(key) + 1:]
    raise AssertionError(f"Key {key} not found")


def read_floats(lines):
    return np.array([[float(v) for v in line.split()] for line in lines])


class TestIDTFDocument:
    """Test the overall document structure."""

    def test_untextured_quad(self, quad_mesh):
        """Test two faces over four vertices without materials."""
        text = IDTFWriter().dumps(quad_mesh)

        assert read_value(text, "FACE_COUNT") == "2"
        assert read_value(text, "MODEL_POSITION_COUNT") == "4"
        assert read_value(text, "MODEL_NORMAL_COUNT") == "6"
        assert read_value(text, "MODEL_TEXTURE_COORD_COUNT") == "0"
        assert read_value(text, "MODEL_BONE_COUNT") == "0"
        assert read_value(text, "MODEL_SHADING_COUNT") == "1"

        faces = read_block(text, "MESH_FACE_POSITION_LIST")
        assert faces == ["0 1 2", "0 2 3"]
        for line in faces:
            assert all(0 <= int(i) <= 3 for i in line.split())

        assert "MESH_FACE_TEXTURE_COORD_LIST {" not in text
        assert "MODEL_TEXTURE_COORD_LIST {" not in text
        assert 'RESOURCE_LIST "TEXTURE"' not in text
        assert read_value(text, "TEXTURE_LAYER_COUNT") == "0"
        assert read_value(text, "SHADER_ACTIVE_TEXTURE_COUNT") == "0"

    def test_block_order(self, textured_quad_mesh):
        """Test that blocks appear in the fixed order."""
        text = IDTFWriter().dumps(textured_quad_mesh, texture_path="model_M0.tga")
        markers = [
            'FILE_FORMAT "IDTF"',
            'NODE "GROUP" {',
            'NODE "MODEL" {',
            'RESOURCE_LIST "MODEL" {',
            "FACE_COUNT",
            "MODEL_SHADING_DESCRIPTION_LIST {",
            "MESH_FACE_POSITION_LIST {",
            "MESH_FACE_NORMAL_LIST {",
            "MESH_FACE_SHADING_LIST {",
            "MESH_FACE_TEXTURE_COORD_LIST {",
            "MODEL_POSITION_LIST {",
            "MODEL_NORMAL_LIST {",
            "MODEL_TEXTURE_COORD_LIST {",
            'RESOURCE_LIST "SHADER" {',
            'RESOURCE_LIST "MATERIAL" {',
            'RESOURCE_LIST "TEXTURE" {',
            'MODIFIER "SHADING" {',
        ]
        positions = [text.index(marker) for marker in markers]
        assert positions == sorted(positions)

    def test_header_lines(self, quad_mesh):
        """Test the file header and node hierarchy."""
        lines = IDTFWriter().dumps(quad_mesh).splitlines()
        assert lines[0] == 'FILE_FORMAT "IDTF"'
        assert lines[1] == "FORMAT_VERSION 100"
        assert lines[2] == ""
        assert lines[3] == 'NODE "GROUP" {'
        assert lines[4] == '\tNODE_NAME "ModelGroup"'

        text = "\n".join(lines)
        model_node = read_block(text, 'NODE "MODEL"')
        assert 'NODE_NAME "Mesh0"' in model_node
        assert 'PARENT_NAME "ModelGroup"' in model_node
        assert 'RESOURCE_NAME "Mesh0"' in model_node
        assert read_block(text, "PARENT_TM") == [
            "1.0 0.0 0.0 0.0",
            "0.0 1.0 0.0 0.0",
            "0.0 0.0 1.0 0.0",
            "0.0 0.0 0.0 1.0",
        ]

    def test_synthetic_normals(self, quad_mesh):
        """Test that every face gets its own three zero normals."""
        text = IDTFWriter().dumps(quad_mesh)
        assert read_block(text, "MESH_FACE_NORMAL_LIST") == ["0 1 2", "3 4 5"]
        assert read_block(text, "MODEL_NORMAL_LIST") == ["0 0 0"] * 6
        assert read_block(text, "MESH_FACE_SHADING_LIST") == ["0", "0"]

    def test_material_emissive(self, quad_mesh):
        """Test the material resource with an emissive colour."""
        text = IDTFWriter(emissive=(0.25, 0.5, 1.0)).dumps(quad_mesh)
        material = read_block(text, 'RESOURCE_LIST "MATERIAL"')
        assert "MATERIAL_EMISSIVE 0.25 0.5 1 1.0" in material
        assert "MATERIAL_DIFFUSE 0.4 0.4 0.4 0.4" in material
        assert "MATERIAL_OPACITY 1.0" in material

    def test_deterministic_output(self, textured_quad_mesh):
        """Test that writing the same mesh twice gives identical text."""
        writer = IDTFWriter(transform_coordinates=True)
        first = writer.dumps(textured_quad_mesh, texture_path="t.tga")
        second = writer.dumps(textured_quad_mesh.deep_copy(), texture_path="t.tga")
        assert first == second


class TestIDTFTextured:
    """Test texture coordinate output."""

    def test_textured_emissive_fixed_notation(self, textured_quad_mesh):
        """Test that a textured document writes the emissive colour with six decimals."""
        text = IDTFWriter(emissive=(0.5, 0.0, 0.0)).dumps(textured_quad_mesh, texture_path="out_M0.tga")
        material = read_block(text, 'RESOURCE_LIST "MATERIAL"')
        assert "MATERIAL_EMISSIVE 0.500000 0.000000 0.000000 1.0" in material
        assert "MATERIAL_DIFFUSE 0.4 0.4 0.4 0.4" in material

    def test_textured_quad(self, textured_quad_mesh):
        """Test coordinate lists and shading description of a textured mesh."""
        text = IDTFWriter().dumps(textured_quad_mesh, texture_path="out_M0.tga")

        assert read_value(text, "MODEL_TEXTURE_COORD_COUNT") == "4"
        assert read_value(text, "TEXTURE_LAYER_COUNT") == "1"
        assert read_block(text, "TEXTURE_COORD_DIMENSION_LIST") == ["TEXTURE_LAYER 0 DIMENSION: 2"]
        assert read_block(text, "MESH_FACE_TEXTURE_COORD_LIST") == [
            "FACE 0 {",
            "TEXTURE_LAYER 0 TEX_COORD: 0 1 2",
            "FACE 1 {",
            "TEXTURE_LAYER 0 TEX_COORD: 0 2 3",
        ]
        assert read_block(text, "MODEL_TEXTURE_COORD_LIST") == [
            "0.000000 0.000000 0.000000 0.000000",
            "1.000000 0.000000 0.000000 0.000000",
            "1.000000 1.000000 0.000000 0.000000",
            "0.000000 1.000000 0.000000 0.000000",
        ]

        shader = read_block(text, 'RESOURCE_LIST "SHADER"')
        assert "SHADER_ACTIVE_TEXTURE_COUNT 1" in shader
        assert 'TEXTURE_NAME "Texture0"' in shader
        assert read_block(text, 'RESOURCE_LIST "TEXTURE"')[-1] == 'TEXTURE_PATH "out_M0.tga"'

    def test_texture_coords_follow_winding(self, quad_vertices, quad_faces):
        """Test that coordinate indices use the same corner order as positions."""
        material = Material(
            face_ids=[0, 1],
            uvs=[[0.1, 0.1], [0.2, 0.2], [0.3, 0.3], [0.4, 0.4]],
            face_uvs=[[2, 0, 1], [3, 2, 0]],
        )
        mesh = Mesh(vertices=quad_vertices, faces=quad_faces, materials=[material])
        text = IDTFWriter().dumps(mesh)

        coords = read_block(text, "MESH_FACE_TEXTURE_COORD_LIST")
        assert coords[1] == "TEXTURE_LAYER 0 TEX_COORD: 0 1 2"
        assert coords[3] == "TEXTURE_LAYER 0 TEX_COORD: 3 0 1"
        values = read_floats(read_block(text, "MODEL_TEXTURE_COORD_LIST"))
        np.testing.assert_allclose(values[:, 0], [0.3, 0.1, 0.2, 0.4], atol=1e-6)
        np.testing.assert_array_equal(values[:, 2:], 0.0)

    def test_only_first_material_exported(self, two_material_mesh):
        """Test that an unmerged multi-material mesh exports its first material."""
        text = IDTFWriter().dumps(two_material_mesh)
        assert read_value(text, "FACE_COUNT") == "1"
        assert read_value(text, "MODEL_SHADING_COUNT") == "1"


class TestIDTFPositions:
    """Test position output and the coordinate transform."""

    def test_transform_position(self):
        """Test the (x, y, z) -> (x, -z, y) permutation."""
        assert transform_position((1, 2, 3), True) == (1.0, -3.0, 2.0)
        assert transform_position((1, 2, 3), False) == (1.0, 2.0, 3.0)

    def test_transformed_output(self):
        """Test that vertex (1, 2, 3) is written as 1 -3 2."""
        mesh = Mesh(vertices=[[1, 2, 3], [4, 5, 6], [7, 8, 9]], faces=[[0, 1, 2]])
        text = IDTFWriter(transform_coordinates=True).dumps(mesh)
        assert read_block(text, "MODEL_POSITION_LIST")[0] == "1 -3 2"

        text = IDTFWriter().dumps(mesh)
        assert read_block(text, "MODEL_POSITION_LIST")[0] == "1 2 3"

    def test_transform_round_trip(self):
        """Test that inverting the transform recovers the written positions."""
        vertices = np.array([[0.125, -2.5, 3.75], [1.5, 0.25, -4.0], [-0.5, 6.0, 0.0]], dtype=np.float32)
        mesh = Mesh(vertices=vertices, faces=[[0, 1, 2]])

        plain = read_floats(read_block(IDTFWriter().dumps(mesh), "MODEL_POSITION_LIST"))
        moved = read_floats(read_block(IDTFWriter(transform_coordinates=True).dumps(mesh), "MODEL_POSITION_LIST"))
        restored = np.column_stack([moved[:, 0], moved[:, 2], -moved[:, 1]])

        np.testing.assert_allclose(plain, vertices, atol=1e-5)
        np.testing.assert_allclose(restored, vertices, atol=1e-5)

    def test_winding_preserved(self):
        """Test that compact indices keep each face's native corner order."""
        vertices = np.arange(15, dtype=np.float32).reshape(5, 3)
        mesh = Mesh(vertices=vertices, faces=[[4, 2, 3], [3, 2, 0], [0, 4, 1]])
        text = IDTFWriter().dumps(mesh)

        faces = [[int(i) for i in line.split()] for line in read_block(text, "MESH_FACE_POSITION_LIST")]
        positions = read_floats(read_block(text, "MODEL_POSITION_LIST"))
        for face, native in zip(faces, mesh.faces):
            np.testing.assert_array_equal(positions[face], vertices[native])

    def test_counts_match_lists(self, textured_quad_mesh):
        """Test that every declared count equals its list length."""
        text = IDTFWriter().dumps(textured_quad_mesh)
        face_count = int(read_value(text, "FACE_COUNT"))
        assert len(read_block(text, "MESH_FACE_POSITION_LIST")) == face_count
        assert len(read_block(text, "MESH_FACE_NORMAL_LIST")) == face_count
        assert len(read_block(text, "MESH_FACE_SHADING_LIST")) == face_count
        assert len(read_block(text, "MESH_FACE_TEXTURE_COORD_LIST")) == 2 * face_count
        assert len(read_block(text, "MODEL_POSITION_LIST")) == int(read_value(text, "MODEL_POSITION_COUNT"))
        assert len(read_block(text, "MODEL_NORMAL_LIST")) == int(read_value(text, "MODEL_NORMAL_COUNT"))
        assert len(read_block(text, "MODEL_TEXTURE_COORD_LIST")) == int(read_value(text, "MODEL_TEXTURE_COORD_COUNT"))


class TestIDTFFiles:
    """Test writing to files and streams."""

    def test_write_stream(self, quad_mesh):
        """Test that write() and dumps() agree."""
        stream = io.StringIO()
        IDTFWriter().write(quad_mesh, stream)
        assert stream.getvalue() == IDTFWriter().dumps(quad_mesh)

    def test_write_file(self, quad_mesh, tmp_path):
        """Test writing a scene file."""
        path = IDTFWriter().write_file(quad_mesh, tmp_path / "quad.idtf")
        assert path.read_text() == IDTFWriter().dumps(quad_mesh)

    def test_write_file_failure(self, quad_mesh, tmp_path):
        """Test that an unwritable path raises ArtifactWriteError."""
        with pytest.raises(ArtifactWriteError, match="Unable to write IDTF text file"):
            IDTFWriter().write_file(quad_mesh, tmp_path / "missing" / "quad.idtf")
