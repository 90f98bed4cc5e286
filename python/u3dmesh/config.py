"""Export configuration passed to exporters at construction."""

from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from .common import PathLike
from .constants import ExportConstants


class ExportConfig(BaseModel):
    converter_path: str = Field(
        ExportConstants.CONVERTER,
        description="IDTFConverter executable; a bare name is looked up on the PATH",
    )
    transform_coordinates: bool = Field(
        False, description="Write positions as (x, -z, y) to turn Z-up models Y-up (media9)"
    )
    merge_if_multi_material: bool = Field(
        True, description="Collapse several materials into one before export instead of failing"
    )
    delete_artifacts: Optional[bool] = Field(
        None,
        description="Delete generated files once they are no longer needed; "
                    "None keeps IDTF output and deletes U3D intermediates",
    )
    emissive: Tuple[float, float, float] = Field(
        (0.0, 0.0, 0.0), description="Emissive RGB colour of the exported material, components in [0, 1]"
    )

    @field_validator("emissive")
    @classmethod
    def validate_emissive(cls, value: Tuple[float, float, float]) -> Tuple[float, float, float]:
        if any(not 0.0 <= c <= 1.0 for c in value):
            raise ValueError(f"emissive components must be in [0, 1], got {value}")
        return value

    @classmethod
    def load(cls, path: PathLike) -> "ExportConfig":
        """Load a configuration from a JSON file."""
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
