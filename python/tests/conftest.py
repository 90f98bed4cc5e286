"""Pytest configuration and shared fixtures for u3dmesh tests."""

import os
import sys

import numpy as np
import pytest

from u3dmesh import Material, Mesh


@pytest.fixture
def quad_vertices():
    """Vertices for a unit square in the z=0 plane."""
    return np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [1.0, 1.0, 0.0],
        [0.0, 1.0, 0.0],
    ], dtype=np.float32)


@pytest.fixture
def quad_faces():
    """Two triangles covering the unit square."""
    return np.array([
        [0, 1, 2],
        [0, 2, 3],
    ], dtype=np.uint32)


@pytest.fixture
def quad_uvs():
    """Texture coordinates matching the square's corners."""
    return np.array([
        [0.0, 0.0],
        [1.0, 0.0],
        [1.0, 1.0],
        [0.0, 1.0],
    ], dtype=np.float32)


@pytest.fixture
def texture_image():
    """A 4x4 RGB texture."""
    return np.arange(4 * 4 * 3, dtype=np.uint8).reshape(4, 4, 3)


@pytest.fixture
def quad_mesh(quad_vertices, quad_faces):
    """Two faces sharing four vertices, no materials."""
    return Mesh(vertices=quad_vertices, faces=quad_faces)


@pytest.fixture
def textured_quad_mesh(quad_vertices, quad_faces, quad_uvs, texture_image):
    """The square with a single textured material owning both faces."""
    material = Material(
        face_ids=[0, 1],
        uvs=quad_uvs,
        face_uvs=[[0, 1, 2], [0, 2, 3]],
        texture=texture_image,
    )
    return Mesh(vertices=quad_vertices, faces=quad_faces, materials=[material])


@pytest.fixture
def two_material_mesh(quad_vertices, quad_faces):
    """The square with one face per material and textures of different sizes."""
    first = Material(
        face_ids=[0],
        uvs=[[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]],
        face_uvs=[[0, 1, 2]],
        texture=np.full((2, 2, 3), 10, dtype=np.uint8),
    )
    second = Material(
        face_ids=[1],
        uvs=[[0.0, 0.0], [1.0, 1.0], [0.0, 1.0]],
        face_uvs=[[0, 1, 2]],
        texture=np.full((4, 4, 3), 200, dtype=np.uint8),
    )
    return Mesh(vertices=quad_vertices, faces=quad_faces, materials=[first, second])


def _write_script(path, body):
    path.write_text("#!/bin/sh\n" + body)
    os.chmod(path, 0o755)
    return path


@pytest.fixture
def stub_converter(tmp_path):
    """An IDTFConverter stand-in that records its arguments and writes the output file."""
    if sys.platform == "win32":
        pytest.skip("shell script converter stub requires a POSIX shell")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return _write_script(bin_dir / "IDTFConverter", (
        'echo "$@" > "$(dirname "$0")/args.txt"\n'
        'while [ $# -gt 0 ]; do\n'
        '  if [ "$1" = "-output" ]; then out="$2"; fi\n'
        '  shift\n'
        'done\n'
        'echo U3D > "$out"\n'
    ))


@pytest.fixture
def failing_converter(tmp_path):
    """An IDTFConverter stand-in that always fails."""
    if sys.platform == "win32":
        pytest.skip("shell script converter stub requires a POSIX shell")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return _write_script(bin_dir / "IDTFConverter", 'echo "bad input" >&2\nexit 3\n')
