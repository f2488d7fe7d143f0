"""Tests for in-memory image re-encoding."""

import io

import pytest
from PIL import Image

from fsc.compress.errors import ImageProcessingError
from fsc.compress.image import compress_image, compress_image_bytes
from fsc.config.models import CompressionConfig


def open_result(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


class TestCompressImageBytes:
    """Tests for compress_image_bytes."""

    def test_downscales_wide_image(self, make_image) -> None:
        source = make_image(1600, 1200, format="BMP")

        result = open_result(compress_image_bytes(source, 800, 70))

        assert result.format == "JPEG"
        assert result.size == (800, 600)

    def test_result_smaller_than_uncompressed_source(self, make_image) -> None:
        source = make_image(1600, 1200, format="BMP")
        assert len(compress_image_bytes(source, 800, 70)) < len(source)

    def test_never_enlarges(self, make_image) -> None:
        source = make_image(400, 300)
        result = open_result(compress_image_bytes(source, 800, 70))
        assert result.size == (400, 300)

    def test_transparency_flattened(self, make_image) -> None:
        source = make_image(200, 100, mode="RGBA")

        result = open_result(compress_image_bytes(source, 800, 70))

        assert result.mode == "RGB"
        # Transparent half is composited onto white
        r, g, b = result.getpixel((190, 50))
        assert min(r, g, b) > 240

    def test_grayscale_converted(self) -> None:
        buffer = io.BytesIO()
        Image.new("L", (50, 50), 100).save(buffer, format="PNG")

        result = open_result(compress_image_bytes(buffer.getvalue(), 800, 70))

        assert result.mode == "RGB"

    def test_garbage_rejected(self) -> None:
        with pytest.raises(ImageProcessingError):
            compress_image_bytes(b"definitely not an image", 800, 70)

    def test_empty_rejected(self) -> None:
        with pytest.raises(ImageProcessingError):
            compress_image_bytes(b"", 800, 70)


class TestCompressImage:
    """Tests for the async wrapper."""

    async def test_uses_configured_width(self, make_image) -> None:
        source = make_image(1000, 500)
        data = await compress_image(source, CompressionConfig(image_max_width=100))
        assert open_result(data).size == (100, 50)
