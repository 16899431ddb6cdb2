"""Atomic ingestion of new images into a collection.

An add either leaves the original, its thumbnail and its catalog row all in
place, or leaves no trace at all. Validation, hashing, decoding and the
duplicate check happen before the first write; every write after that
registers a compensating action on a :class:`RollbackStack`.
"""

from pathlib import Path
from typing import Union
import logging
import os
import uuid

from PIL import Image
from sqlalchemy.exc import IntegrityError

from ..deduplication import ContentHasher
from ..errors import DuplicateError, StorageError, ValidationError
from ..models import ImageFormat, ImageStatus, utcnow
from ..thumbnails import ThumbnailGenerator, decode_image
from ..validation import split_source_filename
from .collection_store import CollectionStore
from .metadata_db import ImageRecord
from .rollback import RollbackStack

logger = logging.getLogger(__name__)


def write_new_file(path: Path, data: bytes, rollback: RollbackStack):
    """Create ``path`` exclusively and write ``data`` to it.

    The removal of the file is registered on ``rollback`` as soon as the file
    exists, so a failure part-way through the write is also undone.
    """
    with open(path, 'xb') as f:
        rollback.push(f"remove {path.name}", lambda: path.unlink(missing_ok=True))
        f.write(data)
        f.flush()
        os.fsync(f.fileno())


class ImageIngestor:
    """Validates and stores new images in one collection.

    Attributes:
        store: Target collection store
        thumbnails: Thumbnail generator
        hasher: Content hasher used for deduplication
    """

    def __init__(
        self,
        store: CollectionStore,
        thumbnails: ThumbnailGenerator,
        hasher: ContentHasher = None
    ):
        self.store = store
        self.thumbnails = thumbnails
        self.hasher = hasher or ContentHasher()

    def add_image(self, source_path: Union[str, Path]) -> ImageRecord:
        """Add an image file to the collection.

        Args:
            source_path: Path of the image to ingest

        Returns:
            The stored image record (status INBOX)

        Raises:
            ValidationError: If the path is not a file or has an invalid name/type
            ProcessingError: If the file cannot be decoded as the format its
                extension names
            DuplicateError: If identical content already exists in the collection
            StorageError: If writing files or the catalog row fails
        """
        source_path = Path(source_path)

        if not source_path.is_file():
            raise ValidationError(f'"{source_path}" is not a file')

        original_name, image_format = split_source_filename(source_path)

        try:
            data = source_path.read_bytes()
        except OSError as e:
            raise StorageError(f'Unable to read "{source_path}"', e)

        content_hash = self.hasher.hash(data)
        with decode_image(data, formats=(image_format.pil_format,)) as image:
            return self._store(image, data, content_hash, original_name, image_format)

    def _store(
        self,
        image: Image.Image,
        data: bytes,
        content_hash: str,
        original_name: str,
        image_format: ImageFormat
    ) -> ImageRecord:
        width, height = image.size

        if self.store.metadata.get_image_by_hash(content_hash) is not None:
            raise DuplicateError('Image already exists in collection')

        image_id = str(uuid.uuid4())
        original_path = self.store.original_path(image_id, image_format.extension)
        thumbnail_path = self.store.thumbnail_path(image_id)

        now = utcnow()
        record = ImageRecord(
            id=image_id,
            collection_id=self.store.collection_id,
            original_name=original_name,
            extension=image_format.extension,
            mime_type=image_format.mime_type,
            size_bytes=len(data),
            content_hash=content_hash,
            width=width,
            height=height,
            aspect_ratio=width / height,
            status=ImageStatus.INBOX,
            created_at=now,
            updated_at=now
        )

        try:
            with RollbackStack(f"add image {image_id}") as rollback:
                write_new_file(original_path, data, rollback)
                thumbnail = self.thumbnails.resize(image)
                write_new_file(thumbnail_path, thumbnail, rollback)
                self.store.metadata.add_image(record)
        except IntegrityError as e:
            # Hash taken between the duplicate check and the insert
            raise DuplicateError('Image already exists in collection', e)
        except Exception as e:
            raise StorageError('Unable to save image', e)

        logger.info(
            f"Added image {image_id} ({original_name}.{image_format.extension}, "
            f"{width}x{height}) to collection {self.store.collection_id}"
        )
        return record
