"""Image decoding and thumbnail derivation.

Originals are decoded once with Pillow to read their dimensions; the same
decoded image is then downscaled into a bounded-size JPEG preview.
"""

import io
import logging
from typing import Iterable, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .errors import ProcessingError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIMENSION = 400
DEFAULT_JPEG_QUALITY = 80

# Formats accepted when decoding originals
DECODABLE_FORMATS = ('JPEG', 'PNG', 'WEBP')


def decode_image(
    data: bytes,
    formats: Optional[Iterable[str]] = DECODABLE_FORMATS
) -> Image.Image:
    """Decode an image buffer, fully loading its pixel data.

    Args:
        data: Encoded image bytes
        formats: Pillow format names to try, or None for any

    Returns:
        Loaded PIL image

    Raises:
        ProcessingError: If the buffer is not a valid image
    """
    try:
        img = Image.open(io.BytesIO(data), formats=list(formats) if formats else None)
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ProcessingError('Invalid or corrupted image file', e)

    width, height = img.size
    if width <= 0 or height <= 0:
        raise ProcessingError('Invalid or corrupted image file')
    return img


def fit_within(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """Scale ``(width, height)`` so the larger side is at most ``max_dimension``.

    Never upscales. The aspect ratio is preserved up to integer rounding and
    neither side drops below one pixel.
    """
    if max_dimension <= 0:
        raise ValueError(f"max_dimension must be positive, got {max_dimension}")

    longest = max(width, height)
    if longest <= max_dimension:
        return width, height

    scale = max_dimension / longest
    new_width = max(1, min(max_dimension, round(width * scale)))
    new_height = max(1, min(max_dimension, round(height * scale)))
    return new_width, new_height


class ThumbnailGenerator:
    """Derives bounded-size JPEG previews.

    Attributes:
        max_dimension: Upper bound for the larger thumbnail side (pixels)
        quality: JPEG quality used for every thumbnail
    """

    def __init__(
        self,
        max_dimension: int = DEFAULT_MAX_DIMENSION,
        quality: int = DEFAULT_JPEG_QUALITY
    ):
        if max_dimension <= 0:
            raise ValueError(f"max_dimension must be positive, got {max_dimension}")
        if not 1 <= quality <= 100:
            raise ValueError(f"quality must be between 1 and 100, got {quality}")
        self.max_dimension = max_dimension
        self.quality = quality

    def resize(self, image: Image.Image, max_dimension: Optional[int] = None) -> bytes:
        """Downscale a decoded image and encode it as JPEG.

        Args:
            image: Decoded original
            max_dimension: Override for the configured bound

        Returns:
            JPEG-encoded thumbnail bytes
        """
        bound = max_dimension or self.max_dimension
        size = fit_within(image.width, image.height, bound)

        thumb = image
        # JPEG has no alpha or palette; flatten onto RGB
        if thumb.mode not in ('RGB', 'L'):
            thumb = thumb.convert('RGB')
        if size != thumb.size:
            thumb = thumb.resize(size, Image.LANCZOS)

        buffer = io.BytesIO()
        thumb.save(buffer, format='JPEG', quality=self.quality)

        logger.debug(
            f"Thumbnail {image.width}x{image.height} -> {size[0]}x{size[1]} "
            f"(quality={self.quality})"
        )
        return buffer.getvalue()

    def __repr__(self) -> str:
        return (
            f"ThumbnailGenerator(max_dimension={self.max_dimension}, "
            f"quality={self.quality})"
        )
