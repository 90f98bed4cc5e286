"""
Mesh exporters.

This module provides:
1. IDTFExporter writing an IDTF scene plus its TGA texture
2. U3DExporter writing the IDTF scene and converting it with IDTFConverter
3. PLYExporter and OBJExporter for plain ASCII geometry
4. EXPORTERS, a fixed mapping from file extension to exporter class

The IDTF based exporters move through the stages

    IDLE -> TEXTURE_EXPORT (textured meshes only) -> SCENE_SERIALIZE
         -> EXTERNAL_CONVERT (U3D only) -> DONE

and stop in FAILED as soon as any stage raises.
"""

import logging
import shutil
import subprocess
from abc import abstractmethod
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Type

from .common import PathLike
from .config import ExportConfig
from .constants import ExportConstants
from .errors import (
    ArtifactWriteError,
    ConversionError,
    InputViolationError,
    MaterialMergeError,
    MissingTextureError,
)
from .idtf import IDTFWriter
from .io_formats import MeshExporter, get_extension
from .mesh import Mesh
from .partition import Partition
from .texture import TextureUtils
from .utils import FormatUtils

logger = logging.getLogger(__name__)


class ExportStage(str, Enum):
    IDLE = "idle"
    TEXTURE_EXPORT = "texture_export"
    SCENE_SERIALIZE = "scene_serialize"
    EXTERNAL_CONVERT = "external_convert"
    DONE = "done"
    FAILED = "failed"


class SceneExporter(MeshExporter):
    """
    Shared IDTF scene writing for the IDTF and U3D exporters.

    Files written by an export are tracked in `artifacts`; they are
    released at the start of the next export and by close().
    """

    def __init__(self, config: Optional[ExportConfig] = None):
        super().__init__(config)
        self.stage = ExportStage.IDLE

    def prepare_mesh(self, mesh: Mesh) -> Mesh:
        """
        Get the mesh to serialize, merging several materials into one.

        The given mesh is never modified.

        Raises:
            InputViolationError: If the mesh has several materials and
                merging is disabled
            MaterialMergeError: If merging fails
        """
        if mesh.num_mats <= 1:
            return mesh
        if not self.config.merge_if_multi_material:
            raise InputViolationError(
                f"Mesh has {mesh.num_mats} materials and material merging is disabled")
        try:
            return mesh.merge_materials()
        except ValueError as e:
            raise MaterialMergeError(f"Unable to merge {mesh.num_mats} materials: {e}") from e

    def write_scene(self, mesh: Mesh, idtf_path: Path) -> Path:
        """
        Write the texture image (if any) and the IDTF scene file.

        Raises:
            MissingTextureError: If the exported material has no texture
            ArtifactWriteError: If a file cannot be written
        """
        mesh = self.prepare_mesh(mesh)

        texture_path = None
        if mesh.has_materials:
            texture = mesh.texture(mesh.material_ids()[0])
            if texture is None:
                raise MissingTextureError("Material has no texture")
            self.stage = ExportStage.TEXTURE_EXPORT
            texture_path = self.artifacts.track(ExportConstants.texture_path(idtf_path))
            TextureUtils.save_tga(texture, texture_path)

        self.stage = ExportStage.SCENE_SERIALIZE
        writer = IDTFWriter(self.config.transform_coordinates, self.config.emissive)
        self.artifacts.track(idtf_path)
        return writer.write_file(mesh, idtf_path, texture_path)

    def _do_export(self, mesh: Mesh, path: Path) -> Path:
        self.artifacts.cleanup()
        self.stage = ExportStage.IDLE
        try:
            result = self._run_stages(mesh, path)
        except Exception:
            self.stage = ExportStage.FAILED
            raise
        self.stage = ExportStage.DONE
        return result

    @abstractmethod
    def _run_stages(self, mesh: Mesh, path: Path) -> Path:
        """Run the export stages after the previous export was released."""
        ...


class IDTFExporter(SceneExporter):
    """
    Exports meshes as IDTF scene files.

    A textured mesh also gets its texture written as <stem>_M0.tga beside
    the scene file. Both are kept unless `delete_artifacts` is set, in
    which case they are deleted at the next export and on close().
    """

    def __init__(self, config: Optional[ExportConfig] = None):
        super().__init__(config)
        self.add_supported("idtf", "Intermediate Data Text Format")

    def _run_stages(self, mesh: Mesh, path: Path) -> Path:
        return self.write_scene(mesh, path)


class U3DExporter(SceneExporter):
    """
    Exports meshes as U3D files through IDTFConverter.

    The scene is first written as <stem>.idtf (plus <stem>_M0.tga) beside
    the output, then converted. Unless `delete_artifacts` is False, the
    intermediate files are deleted once conversion finishes, whether or
    not it succeeded.
    """

    delete_artifacts_default = True

    def __init__(self, config: Optional[ExportConfig] = None):
        super().__init__(config)
        self.add_supported("u3d", "Universal 3D")
        if not self.is_available(self.config.converter_path):
            logger.warning(f"U3D conversion unavailable: {self.config.converter_path} not found")

    @staticmethod
    def is_available(converter_path: str = ExportConstants.CONVERTER) -> bool:
        """Check whether the converter exists as given or on the PATH."""
        return Path(converter_path).is_file() or shutil.which(converter_path) is not None

    def command(self, idtf_path: PathLike, u3d_path: PathLike) -> list:
        """Get the converter command line."""
        return [
            self.config.converter_path,
            *ExportConstants.CONVERTER_ARGS,
            "-input", str(idtf_path),
            "-output", str(u3d_path),
        ]

    def convert(self, idtf_path: PathLike, u3d_path: PathLike) -> Path:
        """
        Convert an IDTF file to U3D, blocking until the converter exits.

        Raises:
            ConversionError: If the converter cannot be started or exits
                with a non-zero code
        """
        cmd = self.command(idtf_path, u3d_path)
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except OSError as e:
            raise ConversionError(f"Unable to run {self.config.converter_path}: {e}") from e

        if result.returncode != 0:
            message = f"Unable to convert from IDTF format to U3D format! Converter exited with code {result.returncode}"
            if result.stderr:
                message += f": {result.stderr.strip()[-500:]}"
            raise ConversionError(message)

        logger.info(f"Converted {idtf_path} to {u3d_path}")
        return Path(u3d_path)

    def _run_stages(self, mesh: Mesh, path: Path) -> Path:
        idtf_path = ExportConstants.idtf_path(path)
        try:
            self.write_scene(mesh, idtf_path)
            self.stage = ExportStage.EXTERNAL_CONVERT
            return self.convert(idtf_path, path)
        finally:
            self.artifacts.cleanup()


class PLYExporter(MeshExporter):
    """Exports all faces of a mesh as an ASCII PLY file, positions as stored."""

    def __init__(self, config: Optional[ExportConfig] = None):
        super().__init__(config)
        self.add_supported("ply", "Polygon File Format")

    def _do_export(self, mesh: Mesh, path: Path) -> Path:
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write("ply\n")
                f.write("format ascii 1.0\n")
                f.write("comment Polygon File Format file produced by u3dmesh\n")
                f.write(f"element vertex {mesh.vertex_count}\n")
                f.write("property float x\nproperty float y\nproperty float z\n")
                f.write(f"element face {mesh.face_count}\n")
                f.write("property list uchar int vertex_index\n")
                f.write("end_header\n")
                for position in mesh.vertices:
                    f.write(FormatUtils.numbers(position) + "\n")
                for face in mesh.faces:
                    f.write(f"3 {FormatUtils.ints(face)}\n")
        except OSError as e:
            raise ArtifactWriteError(f"Unable to write PLY file! : {e}") from e
        return path


class OBJExporter(MeshExporter):
    """
    Exports a mesh as a Wavefront OBJ file with a companion MTL file.

    Each material becomes a `usemtl` group named <stem>_<material id>
    whose texture is written beside the MTL file as PNG (or JPG). Faces
    without a material are written last under an untextured
    pseudo-material. Vertex and texture coordinate indices are one-based
    and global to the file. Positions are written as stored;
    `transform_coordinates` only applies to IDTF scenes.
    """

    def __init__(self, config: Optional[ExportConfig] = None, as_png: bool = True):
        super().__init__(config)
        self.as_png = as_png
        self.add_supported("obj", "Wavefront OBJ")

    @staticmethod
    def material_name(path: Path, material_id: int) -> str:
        return f"{path.stem}_{material_id}"

    def write_material_file(self, mesh: Mesh, path: Path) -> Path:
        """Write the MTL file and the material textures."""
        mtl_path = path.with_suffix(".mtl")
        image_ext = ".png" if self.as_png else ".jpg"
        try:
            with open(mtl_path, "w", encoding="utf-8", newline="\n") as f:
                f.write("# Wavefront OBJ material file produced by u3dmesh\n\n")
                for mid in mesh.material_ids():
                    name = self.material_name(path, mid)
                    f.write(f"newmtl {name}\nillum 1\n")
                    texture = mesh.texture(mid)
                    if texture is not None:
                        image_name = name + image_ext
                        f.write(f"map_Kd {image_name}\n")
                        TextureUtils.save_image(texture, mtl_path.parent / image_name)
                    f.write("\n")
                if len(mesh.unassigned_face_ids()):
                    f.write(f"newmtl {self.material_name(path, mesh.num_mats)}\nillum 1\n")
        except OSError as e:
            raise ArtifactWriteError(f"Unable to write OBJ .mtl file! {e}") from e
        return mtl_path

    def _do_export(self, mesh: Mesh, path: Path) -> Path:
        mtl_path = self.write_material_file(mesh, path) if mesh.has_materials else None
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write("# Wavefront OBJ file produced by u3dmesh\n\n")
                if mtl_path is not None:
                    f.write(f"mtllib {mtl_path.name}\n\n")

                f.write(f"# Mesh has {mesh.vertex_count} vertices\n")
                for position in mesh.vertices:
                    f.write(f"v\t{FormatUtils.numbers(position)}\n")
                f.write("\n")

                uv_base = 1
                for mid in mesh.material_ids():
                    partition = Partition.build(mesh, mid, index_base=uv_base)
                    name = self.material_name(path, mid)
                    f.write(f"# {partition.uv_count} UV coordinates on material '{name}'\n")
                    for uvid in partition.uv_ids:
                        u, v = mesh.uv(mid, uvid)
                        f.write(f"vt\t{FormatUtils.numbers((u, v, 0.0))}\n")
                    f.write(f"\n# Mesh '{name}' with {partition.face_count} faces\n")
                    f.write(f"usemtl {name}\n")
                    for fid in partition.face_ids:
                        corners = zip(mesh.fvidxs(fid), partition.face_uv_indices(mesh, fid))
                        f.write("f\t" + " ".join(f"{vid + 1}/{uvi}" for vid, uvi in corners) + "\n")
                    f.write("\n")
                    uv_base += partition.uv_count

                remainder = mesh.unassigned_face_ids()
                if len(remainder):
                    name = self.material_name(path, mesh.num_mats)
                    f.write(f"# Mesh '{name}' with {len(remainder)} faces\n")
                    if mtl_path is not None:
                        f.write(f"usemtl {name}\n")
                    for fid in remainder:
                        f.write("f\t" + " ".join(str(vid + 1) for vid in mesh.fvidxs(fid)) + "\n")
        except OSError as e:
            raise ArtifactWriteError(f"Unable to write OBJ file! : {e}") from e
        return path


EXPORTERS: Dict[str, Type[MeshExporter]] = {
    "idtf": IDTFExporter,
    "u3d": U3DExporter,
    "ply": PLYExporter,
    "obj": OBJExporter,
}
"""Exporter class for each supported extension."""


def exporter_for(path: PathLike, config: Optional[ExportConfig] = None) -> MeshExporter:
    """
    Create the exporter for a path's extension.

    Raises:
        InputViolationError: If the extension is missing or unsupported
    """
    ext = get_extension(path)
    if ext not in EXPORTERS:
        raise InputViolationError(
            f"{path} has an unsupported file extension for exporting. Supported: {sorted(EXPORTERS)}")
    return EXPORTERS[ext](config)
