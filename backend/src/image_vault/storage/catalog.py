"""Queries, status transitions and deletion of stored images.

Deletion removes the original inside the catalog transaction that deletes the
row, so a failure there keeps the row and both files. The thumbnail goes
last; if it cannot be removed, the leftover file is logged as an orphan for
the operator and the call fails with :class:`StorageError`.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFoundError, StorageError
from ..models import Direction, ImageStatus, OrderBy, utcnow
from ..validation import (
    validate_direction,
    validate_image_id,
    validate_order_by,
    validate_status,
)
from .collection_store import CollectionStore
from .metadata_db import ImageRecord

logger = logging.getLogger(__name__)


class ImageCatalog:
    """Read and mutate images of one collection.

    Attributes:
        store: Collection store the catalog operates on
    """

    def __init__(self, store: CollectionStore):
        self.store = store

    @property
    def metadata(self):
        return self.store.metadata

    def _require(self, image_id: str) -> ImageRecord:
        record = self.metadata.get_image(image_id)
        if record is None:
            raise NotFoundError(f'Image not found with id: "{image_id}"')
        return record

    def get_image(self, image_id: str) -> ImageRecord:
        """Get an image record by id.

        Raises:
            ValidationError: If the id is empty or has unsafe characters
            NotFoundError: If no image has this id
        """
        return self._require(validate_image_id(image_id))

    def get_images(
        self,
        status: Optional[ImageStatus] = None,
        order_by: OrderBy = OrderBy.UPDATED_AT,
        direction: Direction = Direction.DESC
    ) -> List[ImageRecord]:
        """List images, optionally filtered by status.

        Args:
            status: Only return images in this status
            order_by: ``created_at`` or ``updated_at``
            direction: ``ASC`` or ``DESC``

        Returns:
            Matching records (possibly empty)

        Raises:
            ValidationError: If any argument is not an accepted value
        """
        if status is not None:
            status = validate_status(status)
        order_by = validate_order_by(order_by)
        direction = validate_direction(direction)
        return self.metadata.list_images(status=status, order_by=order_by, direction=direction)

    def update_image_status(self, image_id: str, new_status: ImageStatus) -> ImageRecord:
        """Move an image to ``new_status`` and bump its ``updated_at``.

        Raises:
            ValidationError: If the id or status is invalid
            NotFoundError: If no image has this id
            StorageError: If the catalog update fails
        """
        image_id = validate_image_id(image_id)
        new_status = validate_status(new_status)
        self._require(image_id)

        try:
            record = self.metadata.update_status(image_id, new_status, utcnow())
        except SQLAlchemyError as e:
            raise StorageError('Unable to update image', e)
        if record is None:
            raise NotFoundError(f'Image not found with id: "{image_id}"')

        logger.info(f"Image {image_id} status -> {new_status.value}")
        return record

    def update_images(self, updates: Mapping[str, ImageStatus]) -> List[ImageRecord]:
        """Apply several status changes in one catalog transaction.

        Args:
            updates: Mapping of image id to new status

        Returns:
            Refreshed records, in the order of ``updates``

        Raises:
            ValidationError: If any id or status is invalid
            NotFoundError: If any id is unknown (nothing is changed)
            StorageError: If the catalog update fails
        """
        validated: Dict[str, ImageStatus] = {}
        for image_id, status in updates.items():
            validated[validate_image_id(image_id)] = validate_status(status)
        if not validated:
            return []

        try:
            records = self.metadata.update_statuses(validated, utcnow())
        except LookupError as e:
            raise NotFoundError(f'Image not found with id: "{e.args[0]}"', e)
        except SQLAlchemyError as e:
            raise StorageError('Unable to update images', e)

        logger.info(f"Updated status of {len(records)} images")
        return records

    def delete_image(self, image_id: str) -> bool:
        """Delete an image row and both of its files.

        Returns:
            True when the row and both files are gone

        Raises:
            ValidationError: If the id is invalid
            NotFoundError: If no image has this id
            StorageError: If the row or a file cannot be removed
        """
        image_id = validate_image_id(image_id)
        record = self._require(image_id)

        original_path = self.store.original_path(image_id, record.extension)
        thumbnail_path = self.store.thumbnail_path(image_id)

        def remove_original():
            self._unlink(original_path, image_id)

        try:
            deleted = self.metadata.delete_image(image_id, before_commit=remove_original)
        except OSError as e:
            logger.error(f"Could not remove original of image {image_id}, row kept: {e}")
            raise StorageError('Unable to process file change', e)
        except SQLAlchemyError as e:
            raise StorageError('Unable to delete image', e)
        if not deleted:
            raise NotFoundError(f'Image not found with id: "{image_id}"')

        try:
            self._unlink(thumbnail_path, image_id)
        except OSError as e:
            logger.error(f"Orphan file left after deleting image {image_id}: {thumbnail_path} ({e})")
            raise StorageError('Unable to process file change', e)

        logger.info(f"Deleted image {image_id} from collection {self.store.collection_id}")
        return True

    def delete_images(self, image_ids: Iterable[str]) -> bool:
        """Delete several images.

        All ids are validated and looked up before the first deletion.

        Raises:
            ValidationError: If any id is invalid
            NotFoundError: If any id is unknown (nothing is deleted)
            StorageError: If a deletion fails part-way
        """
        ids = list(dict.fromkeys(validate_image_id(image_id) for image_id in image_ids))
        for image_id in ids:
            self._require(image_id)
        for image_id in ids:
            self.delete_image(image_id)
        return True

    def _unlink(self, path: Path, image_id: str):
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning(f"File already missing while deleting image {image_id}: {path}")

    def _read(self, path: Path, image_id: str) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f'Unable to read file for image "{image_id}"', e)

    def get_image_data(self, image_id: str) -> bytes:
        """Raw bytes of an image's original file."""
        record = self.get_image(image_id)
        return self._read(self.store.original_path(record.id, record.extension), record.id)

    def get_thumbnail_data(self, image_id: str) -> bytes:
        """JPEG bytes of an image's thumbnail."""
        record = self.get_image(image_id)
        return self._read(self.store.thumbnail_path(record.id), record.id)

    def get_stats(self) -> Dict[str, int]:
        """Image counts per status plus the total."""
        counts = self.metadata.count_by_status()
        stats = {status.value: count for status, count in counts.items()}
        stats['total'] = sum(counts.values())
        return stats
