"""Collection handle for the image vault.

This module provides the Collection class, the handle returned by
:class:`CollectionRegistry.create` and :class:`CollectionRegistry.load`. A
handle owns the collection's open catalog connection for its lifetime and
must be released with :meth:`Collection.close` or by using it as a context
manager:

    with registry.load('holiday') as collection:
        record = collection.add_image('/photos/beach.jpg')
        collection.update_image_status(record.id, 'COLLECTION')
"""

from functools import wraps
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import logging

from ..deduplication import ContentHasher
from ..errors import InternalError, StorageError, VaultError
from ..models import Direction, ImageStatus, OrderBy
from ..thumbnails import ThumbnailGenerator
from .catalog import ImageCatalog
from .collection_store import CollectionStore
from .ingest import ImageIngestor
from .metadata_db import ImageRecord

logger = logging.getLogger(__name__)


def _engine_operation(method):
    """Surface unanticipated exceptions as :class:`InternalError`."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        if not self.store.is_open:
            raise StorageError(f'Collection "{self.name}" is closed')
        try:
            return method(self, *args, **kwargs)
        except VaultError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error in {method.__name__} on collection {self.name}")
            raise InternalError(f'Internal error in {method.__name__}', e)

    return wrapper


class Collection:
    """Open handle on one collection.

    Attributes:
        store: Directory layout and catalog connection
        ingestor: Adds new images
        catalog: Queries, updates and deletes images
    """

    def __init__(
        self,
        store: CollectionStore,
        thumbnails: Optional[ThumbnailGenerator] = None,
        hasher: Optional[ContentHasher] = None
    ):
        self.store = store
        self.ingestor = ImageIngestor(store, thumbnails or ThumbnailGenerator(), hasher)
        self.catalog = ImageCatalog(store)

    @property
    def name(self) -> str:
        return self.store.collection_id

    collection_id = name

    @property
    def collection_path(self) -> Path:
        return self.store.collection_path

    @property
    def closed(self) -> bool:
        return not self.store.is_open

    @_engine_operation
    def add_image(self, source_path: Union[str, Path]) -> ImageRecord:
        """Ingest an image file. See :meth:`ImageIngestor.add_image`."""
        return self.ingestor.add_image(source_path)

    @_engine_operation
    def get_image(self, image_id: str) -> ImageRecord:
        return self.catalog.get_image(image_id)

    @_engine_operation
    def get_images(
        self,
        status: Optional[Union[ImageStatus, str]] = None,
        order_by: Union[OrderBy, str] = OrderBy.UPDATED_AT,
        direction: Union[Direction, str] = Direction.DESC
    ) -> List[ImageRecord]:
        """List images, optionally filtered by status.

        Args:
            status: INBOX, COLLECTION or ARCHIVE
            order_by: ``created_at`` or ``updated_at`` (default)
            direction: ``ASC`` or ``DESC`` (default)
        """
        return self.catalog.get_images(status=status, order_by=order_by, direction=direction)

    @_engine_operation
    def update_image_status(
        self,
        image_id: str,
        new_status: Union[ImageStatus, str]
    ) -> ImageRecord:
        return self.catalog.update_image_status(image_id, new_status)

    @_engine_operation
    def update_images(
        self,
        updates: Mapping[str, Union[ImageStatus, str]]
    ) -> List[ImageRecord]:
        return self.catalog.update_images(updates)

    @_engine_operation
    def delete_image(self, image_id: str) -> bool:
        return self.catalog.delete_image(image_id)

    @_engine_operation
    def delete_images(self, image_ids: Iterable[str]) -> bool:
        return self.catalog.delete_images(image_ids)

    @_engine_operation
    def get_image_data(self, image_id: str) -> bytes:
        return self.catalog.get_image_data(image_id)

    @_engine_operation
    def get_thumbnail_data(self, image_id: str) -> bytes:
        return self.catalog.get_thumbnail_data(image_id)

    @_engine_operation
    def get_stats(self) -> Dict[str, Any]:
        """Get collection statistics.

        Returns:
            Dictionary with per-status counts and the total
        """
        stats = self.catalog.get_stats()
        return {'collection_id': self.name, **stats}

    def close(self):
        """Release the catalog connection."""
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions

    @_engine_operation
    def __len__(self) -> int:
        return self.store.metadata.count_images()

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return f"Collection(id='{self.name}', {state})"
