"""Directory layout and catalog lifecycle for one collection.

Directory structure:
    <collections_root>/<collection_id>/
        ├── collection.db                    # metadata catalog
        └── images/
            ├── original/<image_id>.<ext>    # ext in {jpg, png, webp}
            └── thumbnails/<image_id>.jpg    # always jpg
"""

from pathlib import Path
from typing import Union
import logging

from ..models import THUMBNAIL_EXTENSION
from .metadata_db import MetadataStore

logger = logging.getLogger(__name__)

DATABASE_FILENAME = 'collection.db'
IMAGES_DIRNAME = 'images'
ORIGINALS_DIRNAME = 'original'
THUMBNAILS_DIRNAME = 'thumbnails'


class UnsafePathError(ValueError):
    """Raised when a path component could escape the collection directory."""
    pass


def safe_component(value: str) -> str:
    """Check that ``value`` can be used as a single path component.

    Raises:
        UnsafePathError: If the value is empty, relative or contains a separator
    """
    if (
        not value
        or value in ('.', '..')
        or '..' in value
        or '/' in value
        or '\\' in value
        or '\x00' in value
    ):
        raise UnsafePathError(f"Unsafe path component: {value!r}")
    return value


class CollectionStore:
    """Owns one collection's directory tree and catalog connection.

    Attributes:
        collection_id: Collection identifier
        collection_path: ``<root>/<collection_id>``
        db_path: Catalog file
        originals_dir: Directory holding original files
        thumbnails_dir: Directory holding thumbnail files
        metadata: Catalog store (open between :meth:`open` and :meth:`close`)
    """

    def __init__(self, collections_root: Union[str, Path], collection_id: str):
        self.collections_root = Path(collections_root)
        self.collection_id = safe_component(collection_id)
        self.collection_path = self.collections_root / self.collection_id

        self.db_path = self.collection_path / DATABASE_FILENAME
        self.images_dir = self.collection_path / IMAGES_DIRNAME
        self.originals_dir = self.images_dir / ORIGINALS_DIRNAME
        self.thumbnails_dir = self.images_dir / THUMBNAILS_DIRNAME

        self.metadata = MetadataStore(
            db_path=str(self.db_path),
            collection_id=self.collection_id
        )
        self._closed = False

    def exists(self) -> bool:
        return self.collection_path.is_dir()

    def create_layout(self):
        """Create the image directories below an existing collection directory."""
        self.originals_dir.mkdir(parents=True, exist_ok=True)
        self.thumbnails_dir.mkdir(parents=True, exist_ok=True)

    def open(self, create: bool = False):
        """Open the catalog connection (creating the schema if requested)."""
        self.metadata.open(create=create)
        self._closed = False

    def close(self):
        """Release the catalog connection exactly once."""
        if self._closed:
            return
        self.metadata.close()
        self._closed = True
        logger.debug(f"Collection store closed: {self.collection_id}")

    @property
    def is_open(self) -> bool:
        return self.metadata.is_open

    def original_path(self, image_id: str, extension: str) -> Path:
        """Path of an original file, validated against traversal."""
        filename = f"{safe_component(image_id)}.{safe_component(extension)}"
        return self._contained(self.originals_dir / filename)

    def thumbnail_path(self, image_id: str) -> Path:
        """Path of a thumbnail file, validated against traversal."""
        filename = f"{safe_component(image_id)}.{THUMBNAIL_EXTENSION}"
        return self._contained(self.thumbnails_dir / filename)

    def _contained(self, path: Path) -> Path:
        resolved_root = self.collection_path.resolve()
        if resolved_root not in path.resolve().parents:
            raise UnsafePathError(f"Path escapes collection directory: {path}")
        return path

    def __repr__(self) -> str:
        state = 'open' if self.is_open else 'closed'
        return f"CollectionStore(id='{self.collection_id}', path='{self.collection_path}', {state})"
