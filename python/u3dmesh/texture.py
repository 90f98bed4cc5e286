"""
Texture image encoding and decoding.

Textures are held as numpy uint8 arrays shaped (H, W) or (H, W, C) with
C in {1, 3, 4}, rows ordered top to bottom. Pillow performs the actual
encoding, so any format Pillow can write is available through
save_image; the IDTF scene format only ever references TGA files.
"""

import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
from PIL import Image

from .common import PathLike
from .errors import ArtifactWriteError, InputViolationError

logger = logging.getLogger(__name__)


class TextureUtils:
    """Utility class for texture image conversion and I/O."""

    VALID_CHANNELS = (1, 3, 4)

    @staticmethod
    def is_empty(image: Optional[np.ndarray]) -> bool:
        """Check whether an image is missing or has no pixels."""
        return image is None or np.asarray(image).size == 0

    @staticmethod
    def channels(image: np.ndarray) -> int:
        """Get the number of channels of an image array."""
        return 1 if image.ndim == 2 else image.shape[2]

    @staticmethod
    def validate(image: np.ndarray) -> np.ndarray:
        """
        Check that an image can be encoded.

        Args:
            image: Image array

        Returns:
            The image as a contiguous uint8 array

        Raises:
            InputViolationError: If the image is empty, not 8-bit, or has an
                unsupported channel count
        """
        if TextureUtils.is_empty(image):
            raise InputViolationError("Texture image is empty")
        image = np.asarray(image)
        if image.dtype != np.uint8:
            raise InputViolationError(
                f"Texture images must be 8-bit unsigned, got {image.dtype}")
        if image.ndim not in (2, 3) or TextureUtils.channels(image) not in TextureUtils.VALID_CHANNELS:
            raise InputViolationError(
                f"Texture images must have 1, 3 or 4 channels, got shape {image.shape}")
        return np.ascontiguousarray(image)

    @staticmethod
    def to_pil(image: np.ndarray) -> Image.Image:
        """Convert an image array to a Pillow image."""
        image = TextureUtils.validate(image)
        if image.ndim == 3 and image.shape[2] == 1:
            image = image[:, :, 0]
        return Image.fromarray(image)

    @staticmethod
    def from_pil(image: Image.Image) -> np.ndarray:
        """Convert a Pillow image to an image array."""
        if image.mode not in ("L", "RGB", "RGBA"):
            image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
        return np.asarray(image, dtype=np.uint8).copy()

    @staticmethod
    def save_image(image: np.ndarray, path: PathLike, format: Optional[str] = None) -> Path:
        """
        Encode an image to a file.

        Args:
            image: Image array
            path: Output path; the format follows the extension unless given
            format: Optional Pillow format name

        Returns:
            The written path

        Raises:
            InputViolationError: If the image cannot be encoded
            ArtifactWriteError: If the file cannot be written
        """
        path = Path(path)
        pil_image = TextureUtils.to_pil(image)
        if pil_image.mode == "RGBA" and path.suffix.lower() in (".jpg", ".jpeg"):
            pil_image = pil_image.convert("RGB")
        try:
            pil_image.save(path, format=format)
        except OSError as e:
            raise ArtifactWriteError(f"Unable to write texture image {path}: {e}") from e
        logger.debug(f"Wrote {pil_image.width}x{pil_image.height} texture to {path}")
        return path

    @staticmethod
    def save_tga(image: np.ndarray, path: PathLike) -> Path:
        """Encode an image as an uncompressed TGA file."""
        return TextureUtils.save_image(image, path, format="TGA")

    @staticmethod
    def load_image(path: PathLike) -> np.ndarray:
        """Decode an image file into an image array."""
        with Image.open(path) as pil_image:
            return TextureUtils.from_pil(pil_image)

    @staticmethod
    def load_tga(path: PathLike) -> np.ndarray:
        """Decode a TGA file into an image array."""
        return TextureUtils.load_image(path)

    @staticmethod
    def resize_height(image: np.ndarray, height: int) -> np.ndarray:
        """
        Scale an image to a given height, keeping its aspect ratio.

        Args:
            image: Image array
            height: Target height in pixels

        Returns:
            The resized image (the input itself if already that height)
        """
        if image.shape[0] == height:
            return image
        width = max(1, int(round(image.shape[1] * height / image.shape[0])))
        resized = TextureUtils.to_pil(image).resize((width, height), Image.BILINEAR)
        resized = np.asarray(resized, dtype=np.uint8)
        if image.ndim == 3 and resized.ndim == 2:
            resized = resized[:, :, np.newaxis]
        return resized

    @staticmethod
    def tile_horizontally(images: List[np.ndarray]) -> np.ndarray:
        """
        Place images side by side, left to right.

        All images are first scaled to the tallest height. Channel counts
        must agree.

        Raises:
            ValueError: If the images have different channel counts
        """
        images = [TextureUtils.validate(image) for image in images]
        channel_counts = {TextureUtils.channels(image) for image in images}
        if len(channel_counts) != 1:
            raise ValueError(
                f"Cannot tile textures with different channel counts: {sorted(channel_counts)}")
        height = max(image.shape[0] for image in images)
        return np.concatenate(
            [TextureUtils.resize_height(image, height) for image in images], axis=1)
