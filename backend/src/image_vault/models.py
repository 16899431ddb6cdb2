"""Shared value types for the image vault.

Defines the image status state machine, the supported file formats and the
sort options accepted by :meth:`Collection.get_images`.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict


class ImageStatus(str, Enum):
    """Curation state of an image.

    Any state may move to any other state; deleting the image is the only way
    out of the state machine.
    """
    INBOX = 'INBOX'
    COLLECTION = 'COLLECTION'
    ARCHIVE = 'ARCHIVE'


class OrderBy(str, Enum):
    """Sortable timestamp columns."""
    CREATED_AT = 'created_at'
    UPDATED_AT = 'updated_at'


class Direction(str, Enum):
    """Sort direction."""
    ASC = 'ASC'
    DESC = 'DESC'


@dataclass(frozen=True)
class ImageFormat:
    """A supported original format.

    Attributes:
        extension: Canonical extension stored on disk (without dot)
        mime_type: MIME type reported for the original
        pil_format: Pillow format name expected when decoding
    """
    extension: str
    mime_type: str
    pil_format: str


JPEG = ImageFormat('jpg', 'image/jpeg', 'JPEG')
PNG = ImageFormat('png', 'image/png', 'PNG')
WEBP = ImageFormat('webp', 'image/webp', 'WEBP')

# Accepted source extensions; ``jpeg`` is normalized to ``jpg``.
SUPPORTED_FORMATS: Dict[str, ImageFormat] = {
    'jpg': JPEG,
    'jpeg': JPEG,
    'png': PNG,
    'webp': WEBP,
}

THUMBNAIL_EXTENSION = 'jpg'


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
