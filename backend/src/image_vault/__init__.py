"""
image_vault: collection storage engine for curated image libraries.
"""

__version__ = "0.1.0"

from .errors import (
    ErrorKind,
    VaultError,
    ValidationError,
    NotFoundError,
    DuplicateError,
    ProcessingError,
    StorageError,
    InternalError,
)
from .models import ImageStatus
from .storage import Collection, CollectionRegistry, ImageRecord

__all__ = [
    '__version__',
    'ErrorKind',
    'VaultError',
    'ValidationError',
    'NotFoundError',
    'DuplicateError',
    'ProcessingError',
    'StorageError',
    'InternalError',
    'ImageStatus',
    'Collection',
    'CollectionRegistry',
    'ImageRecord',
]
