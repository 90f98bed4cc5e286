"""Exception types raised while building and exporting scenes."""


class U3DMeshError(Exception):
    """Base class for all export failures."""


class InputViolationError(U3DMeshError, ValueError):
    """Input that can never be exported: bad extension, unknown material,
    or a textured face without texture coordinates."""


class MissingTextureError(InputViolationError):
    """A material that should be exported has no usable texture image."""


class ArtifactWriteError(U3DMeshError, OSError):
    """Writing the scene file or texture image failed.

    Files written before the failure are left on disk and must be
    treated as invalid.
    """


class ConversionError(U3DMeshError):
    """The external converter is unavailable or exited with a failure."""


class MaterialMergeError(U3DMeshError):
    """Collapsing several materials into one failed."""
