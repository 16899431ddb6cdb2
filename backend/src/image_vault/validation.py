"""Input validation performed before any side effect.

Every public engine operation validates its inputs here first, so a rejected
call never touches the filesystem or the catalog.
"""

import re
from enum import Enum
from pathlib import Path
from typing import Any, Tuple, Type, TypeVar

from .errors import ValidationError
from .models import (
    SUPPORTED_FORMATS,
    Direction,
    ImageFormat,
    ImageStatus,
    OrderBy,
)

MAX_NAME_LENGTH = 256
MAX_FILENAME_LENGTH = 256

_NAME_PATTERN = re.compile(r'^[A-Za-z0-9-]+$')
_IMAGE_ID_PATTERN = re.compile(r'^[A-Za-z0-9-]+$')
_UNSAFE_FILENAME_CHARS = set('/\\<>:"|?*')

E = TypeVar('E', bound=Enum)


def validate_collection_name(name: Any) -> str:
    """Validate a collection id.

    Args:
        name: Candidate collection id

    Returns:
        The validated id

    Raises:
        ValidationError: If the id is empty, too long or not filesystem-safe
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Collection name cannot be empty')
    if len(name) > MAX_NAME_LENGTH or not _NAME_PATTERN.match(name):
        raise ValidationError(f'"{name}" is not a valid collection name')
    return name


def validate_image_id(image_id: Any) -> str:
    """Validate an image id before it is used in a query or a path."""
    if (
        not isinstance(image_id, str)
        or not image_id
        or len(image_id) > MAX_NAME_LENGTH
        or not _IMAGE_ID_PATTERN.match(image_id)
    ):
        raise ValidationError('Invalid image id')
    return image_id


def _coerce_enum(enum_cls: Type[E], value: Any, message: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ValidationError(message, e)


def validate_status(status: Any) -> ImageStatus:
    """Coerce ``status`` to an :class:`ImageStatus` or raise."""
    return _coerce_enum(ImageStatus, status, 'Invalid status value')


def validate_order_by(order_by: Any) -> OrderBy:
    return _coerce_enum(OrderBy, order_by, f'Invalid order by column: {order_by!r}')


def validate_direction(direction: Any) -> Direction:
    if isinstance(direction, str):
        direction = direction.upper()
    return _coerce_enum(Direction, direction, f'Invalid sort direction: {direction!r}')


def _has_control_chars(text: str) -> bool:
    return any(ord(ch) < 32 or ord(ch) == 127 for ch in text)


def split_source_filename(source_path: Path) -> Tuple[str, ImageFormat]:
    """Derive the original name and format of a source file.

    Args:
        source_path: Path of the file being ingested

    Returns:
        Tuple of (name without extension, ImageFormat)

    Raises:
        ValidationError: If the filename is unsafe, too long or has an
            unsupported extension
    """
    filename = source_path.name
    stem = source_path.stem

    if (
        not stem
        or len(filename) > MAX_FILENAME_LENGTH
        or _has_control_chars(filename)
        or any(ch in _UNSAFE_FILENAME_CHARS for ch in filename)
        or stem in ('.', '..')
    ):
        raise ValidationError('Unsafe or invalid filename')

    extension = source_path.suffix.lower().lstrip('.')
    image_format = SUPPORTED_FORMATS.get(extension)
    if image_format is None:
        raise ValidationError(
            'Unsupported file type, must be an image file with extension jpg/jpeg/png/webp'
        )
    return stem, image_format
