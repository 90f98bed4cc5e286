"""
Utility modules for u3dmesh.

This package contains utility functions for vertex sharing, duplicate
triangle detection and number formatting.
"""

from .format_utils import FormatUtils
from .mesh_utils import MeshUtils

__all__ = [
    "FormatUtils",
    "MeshUtils",
]
