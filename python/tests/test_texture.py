"""
Tests for texture encoding, decoding and tiling.
"""
import numpy as np
import pytest

from u3dmesh import ArtifactWriteError, InputViolationError, TextureUtils


class TestTextureIO:
    """Test TGA and generic image round trips through Pillow."""

    @pytest.mark.parametrize("shape", [(3, 5), (3, 5, 3), (3, 5, 4)])
    def test_tga_preserves_pixels(self, tmp_path, shape):
        """Test that TGA files decode to the encoded pixels."""
        image = np.random.default_rng(0).integers(0, 256, size=shape, dtype=np.uint8)
        path = TextureUtils.save_tga(image, tmp_path / "tex.tga")

        assert path.exists()
        np.testing.assert_array_equal(TextureUtils.load_tga(path), image)

    def test_single_channel_3d(self, tmp_path):
        """Test that (H, W, 1) images are written as greyscale."""
        image = np.full((2, 2, 1), 7, dtype=np.uint8)
        loaded = TextureUtils.load_tga(TextureUtils.save_tga(image, tmp_path / "grey.tga"))
        np.testing.assert_array_equal(loaded, image[:, :, 0])

    def test_png(self, tmp_path, texture_image):
        """Test that the format follows the extension."""
        path = TextureUtils.save_image(texture_image, tmp_path / "tex.png")
        np.testing.assert_array_equal(TextureUtils.load_image(path), texture_image)

    def test_rejects_empty(self, tmp_path):
        with pytest.raises(InputViolationError, match="empty"):
            TextureUtils.save_tga(np.zeros((0, 0, 3), dtype=np.uint8), tmp_path / "e.tga")

    def test_rejects_non_8bit(self, tmp_path):
        with pytest.raises(InputViolationError, match="8-bit"):
            TextureUtils.save_tga(np.zeros((2, 2, 3), dtype=np.float32), tmp_path / "f.tga")

    def test_rejects_two_channels(self, tmp_path):
        with pytest.raises(InputViolationError, match="channels"):
            TextureUtils.save_tga(np.zeros((2, 2, 2), dtype=np.uint8), tmp_path / "c.tga")

    def test_unwritable_path(self, tmp_path, texture_image):
        """Test that OS failures become ArtifactWriteError."""
        with pytest.raises(ArtifactWriteError):
            TextureUtils.save_tga(texture_image, tmp_path / "missing" / "tex.tga")


class TestTextureTiling:
    """Test resizing and horizontal tiling."""

    def test_resize_height_keeps_aspect(self):
        image = np.zeros((2, 3, 3), dtype=np.uint8)
        assert TextureUtils.resize_height(image, 4).shape == (4, 6, 3)

    def test_resize_same_height_is_identity(self, texture_image):
        assert TextureUtils.resize_height(texture_image, 4) is texture_image

    def test_tile(self):
        left = np.full((2, 2, 3), 1, dtype=np.uint8)
        right = np.full((2, 3, 3), 2, dtype=np.uint8)
        tiled = TextureUtils.tile_horizontally([left, right])

        assert tiled.shape == (2, 5, 3)
        assert np.all(tiled[:, :2] == 1)
        assert np.all(tiled[:, 2:] == 2)

    def test_tile_mixed_channels(self):
        with pytest.raises(ValueError, match="channel counts"):
            TextureUtils.tile_horizontally([
                np.zeros((2, 2, 3), dtype=np.uint8),
                np.zeros((2, 2), dtype=np.uint8),
            ])
