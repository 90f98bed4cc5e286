"""
Number formatting for the IDTF text format.

Floats follow the default rendering of a C++ output stream: at most six
significant digits with trailing zeros removed, so 1.0 prints as "1" and
0.1 as "0.1". Texture coordinates use fixed six-decimal rendering.
"""

from typing import Iterable


class FormatUtils:
    """Utility class for rendering numbers as IDTF text."""

    @staticmethod
    def number(value) -> str:
        """Render a float the way a default-configured stream does."""
        return f"{float(value):g}"

    @staticmethod
    def fixed(value) -> str:
        """Render a float with six decimal places."""
        return f"{float(value):.6f}"

    @staticmethod
    def numbers(values: Iterable) -> str:
        """Render floats separated by single spaces."""
        return " ".join(FormatUtils.number(v) for v in values)

    @staticmethod
    def ints(values: Iterable) -> str:
        """Render integers separated by single spaces."""
        return " ".join(str(int(v)) for v in values)
