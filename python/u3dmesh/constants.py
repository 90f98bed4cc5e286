"""Constants for the IDTF scene format and the U3D conversion step."""

from pathlib import Path


class ExportConstants:
    """Standard file extensions, names and converter arguments."""

    IDTF_EXT = ".idtf"
    """Extension of the intermediate scene file."""

    TEXTURE_EXT = ".tga"
    """Extension of texture images referenced from IDTF files."""

    TEXTURE_SUFFIX = "_M0"
    """Suffix appended to the output stem to name the single texture image."""

    CONVERTER = "IDTFConverter"
    """Default converter executable, looked up on the PATH."""

    CONVERTER_ARGS = (
        "-debuglevel", "0",   # no debug dump
        "-pq", "1000",        # position quality
        "-tcq", "1000",       # texture coordinate quality
        "-gq", "1000",        # geometry quality
        "-tq", "100",         # texture quality
        "-en", "1",           # exclude normals
        "-eo", "65535",       # export everything
    )
    """Fixed converter options placed before -input/-output."""

    GROUP_NAME = "ModelGroup"
    MESH_NAME = "Mesh0"
    SHADER_NAME = "Shader0"
    MATERIAL_NAME = "Material0"
    TEXTURE_NAME = "Texture0"

    @staticmethod
    def idtf_path(path) -> Path:
        """Get the intermediate scene path for an output path.

        Args:
            path: Requested output file, e.g. "out/model.u3d"

        Returns:
            Path like "out/model.idtf"
        """
        return Path(path).with_suffix(ExportConstants.IDTF_EXT)

    @staticmethod
    def texture_path(path) -> Path:
        """Get the texture image path for an output path.

        Args:
            path: Requested output file, e.g. "out/model.idtf"

        Returns:
            Path like "out/model_M0.tga"
        """
        path = Path(path)
        return path.parent / f"{path.stem}{ExportConstants.TEXTURE_SUFFIX}{ExportConstants.TEXTURE_EXT}"
