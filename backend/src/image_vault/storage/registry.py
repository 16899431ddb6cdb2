"""Collection registry: create, load, delete, list and clear collections.

The registry owns one collections root directory, passed in at construction.
Several registries pointed at different roots can coexist in one process.
"""

from pathlib import Path
from typing import List, Optional, Union
import logging
import shutil

from sqlalchemy.exc import SQLAlchemyError

from ..deduplication import ContentHasher
from ..errors import (
    ClearError,
    CreateError,
    DeleteError,
    DuplicateError,
    ListError,
    LoadError,
    NotFoundError,
    ValidationError,
)
from ..thumbnails import DEFAULT_JPEG_QUALITY, DEFAULT_MAX_DIMENSION, ThumbnailGenerator
from ..validation import validate_collection_name
from .collection_manager import Collection
from .collection_store import CollectionStore
from .metadata_db import SchemaError
from .rollback import RollbackStack

logger = logging.getLogger(__name__)


class CollectionRegistry:
    """Manages the collections stored below one root directory.

    Attributes:
        collections_root: Directory holding one subdirectory per collection
        thumbnails: Thumbnail generator handed to every opened collection
    """

    def __init__(
        self,
        collections_root: Union[str, Path],
        thumbnail_max_dimension: int = DEFAULT_MAX_DIMENSION,
        thumbnail_quality: int = DEFAULT_JPEG_QUALITY,
        hasher: Optional[ContentHasher] = None
    ):
        """Initialize the registry.

        Args:
            collections_root: Root directory for all collections (created if missing)
            thumbnail_max_dimension: Larger thumbnail side in pixels
            thumbnail_quality: JPEG quality for thumbnails
            hasher: Content hasher shared by opened collections
        """
        self.collections_root = Path(collections_root)
        self.thumbnails = ThumbnailGenerator(
            max_dimension=thumbnail_max_dimension,
            quality=thumbnail_quality
        )
        self.hasher = hasher or ContentHasher()

        self.collections_root.mkdir(parents=True, exist_ok=True)

    def _store(self, collection_id: str) -> CollectionStore:
        return CollectionStore(self.collections_root, collection_id)

    def _handle(self, store: CollectionStore) -> Collection:
        return Collection(store, thumbnails=self.thumbnails, hasher=self.hasher)

    def create(self, collection_id: str) -> Collection:
        """Create a new, empty collection.

        Args:
            collection_id: Name of the collection (letters, digits, hyphens)

        Returns:
            Open handle on the new collection

        Raises:
            ValidationError: If the name is invalid
            DuplicateError: If a collection with this name already exists
            CreateError: If creation failed; nothing is left on disk
        """
        validate_collection_name(collection_id)
        store = self._store(collection_id)

        if store.collection_path.exists():
            raise DuplicateError(f'There is already a collection with name: "{collection_id}"')

        try:
            store.collection_path.mkdir()
        except FileExistsError as e:
            raise DuplicateError(f'There is already a collection with name: "{collection_id}"', e)
        except OSError as e:
            raise CreateError(collection_id, e)

        try:
            with RollbackStack(f"create collection {collection_id}") as rollback:
                rollback.push("remove collection directory", lambda: shutil.rmtree(store.collection_path))
                rollback.push("close catalog", store.close)
                store.create_layout()
                store.open(create=True)
        except Exception as e:
            raise CreateError(collection_id, e)

        logger.info(f"Created collection: {collection_id}")
        return self._handle(store)

    def load(self, collection_id: str) -> Collection:
        """Open an existing collection.

        Raises:
            ValidationError: If the name is invalid
            NotFoundError: If the collection does not exist
            LoadError: If the catalog is missing, corrupt or incompatible
        """
        validate_collection_name(collection_id)
        store = self._store(collection_id)

        if not store.exists():
            raise NotFoundError(f'No collection found with name: "{collection_id}"')

        try:
            store.open(create=False)
        except (OSError, SchemaError, SQLAlchemyError) as e:
            raise LoadError(collection_id, e)

        logger.info(f"Loaded collection: {collection_id}")
        return self._handle(store)

    def delete(self, collection_id: str):
        """Remove a collection and everything in it.

        Open handles on the collection must be closed by their owners.

        Raises:
            ValidationError: If the name is invalid
            NotFoundError: If the collection does not exist
            DeleteError: If removal failed part-way (remaining files are left)
        """
        validate_collection_name(collection_id)
        store = self._store(collection_id)

        if not store.exists():
            raise NotFoundError(f'No collection found with name: "{collection_id}"')

        try:
            shutil.rmtree(store.collection_path)
        except OSError as e:
            logger.error(f"Failed to delete collection {collection_id}: {e}")
            raise DeleteError(collection_id, e)

        logger.info(f"Deleted collection: {collection_id}")

    def list(self) -> List[str]:
        """Names of all collections, sorted lexicographically.

        Raises:
            ListError: If the root directory cannot be read
        """
        try:
            return sorted(entry.name for entry in self.collections_root.iterdir() if entry.is_dir())
        except OSError as e:
            raise ListError(e)

    def clear(self):
        """Delete every collection.

        Not transactional: collections removed before a failure stay removed.

        Raises:
            ClearError: On the first filesystem error
        """
        try:
            names = self.list()
            for name in names:
                shutil.rmtree(self.collections_root / name)
                logger.debug(f"Cleared collection: {name}")
        except (OSError, ListError) as e:
            raise ClearError(e)

        logger.info(f"Cleared {len(names)} collections from {self.collections_root}")

    def exists(self, collection_id: str) -> bool:
        validate_collection_name(collection_id)
        return self._store(collection_id).exists()

    def __contains__(self, collection_id: str) -> bool:
        try:
            return self.exists(collection_id)
        except ValidationError:
            return False

    def __repr__(self) -> str:
        return f"CollectionRegistry(root='{self.collections_root}')"
