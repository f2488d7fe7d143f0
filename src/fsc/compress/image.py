"""In-memory image re-encoding with Pillow.

Images never touch the temp directory: the upload is decoded from memory,
downscaled, and re-encoded to JPEG in memory.
"""

from __future__ import annotations

import asyncio
import io
import logging

from PIL import Image, ImageOps

from fsc.compress.errors import ImageProcessingError
from fsc.config.models import CompressionConfig

logger = logging.getLogger(__name__)


def _flatten(image: Image.Image) -> Image.Image:
    """Return an RGB image, compositing any transparency onto white."""
    if image.mode in ("RGBA", "LA") or (
        image.mode == "P" and "transparency" in image.info
    ):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def compress_image_bytes(
    data: bytes,
    max_width: int,
    quality: int,
) -> bytes:
    """Downscale an image to at most max_width and encode it as JPEG.

    Images narrower than max_width keep their size; they are never
    enlarged. Aspect ratio is preserved.

    Raises:
        ImageProcessingError: If the data is not a decodable image or the
            JPEG encode fails.
    """
    try:
        with Image.open(io.BytesIO(data)) as source:
            image = ImageOps.exif_transpose(source)
            if image.width > max_width:
                height = max(1, round(image.height * max_width / image.width))
                image = image.resize((max_width, height), Image.Resampling.LANCZOS)
            image = _flatten(image)

            output = io.BytesIO()
            image.save(output, format="JPEG", quality=quality, optimize=True)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageProcessingError(f"Could not process image: {e}") from e

    return output.getvalue()


async def compress_image(
    data: bytes,
    compression: CompressionConfig | None = None,
) -> bytes:
    """Re-encode an uploaded image off the event loop.

    Args:
        data: Raw uploaded bytes.
        compression: Width and quality settings (defaults when None).

    Returns:
        JPEG bytes.
    """
    compression = compression or CompressionConfig()
    result = await asyncio.to_thread(
        compress_image_bytes,
        data,
        compression.image_max_width,
        compression.image_quality,
    )
    logger.info("Image re-encoded: %d -> %d bytes", len(data), len(result))
    return result
