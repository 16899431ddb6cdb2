"""Storage layer for the image vault.

This module provides the collection storage engine:
- Collection registry for creating, loading and deleting collections
- Collection handles for adding, querying, updating and deleting images
- Metadata catalog kept consistent with the files on disk

Usage:
    from image_vault.storage import CollectionRegistry

    registry = CollectionRegistry('./collections')

    # Create a collection and add an image
    with registry.create('holiday') as collection:
        record = collection.add_image('/path/to/beach.jpg')
        collection.update_image_status(record.id, 'COLLECTION')

    # List curated images of an existing collection
    with registry.load('holiday') as collection:
        images = collection.get_images(status='COLLECTION')
"""

from .metadata_db import MetadataStore, ImageRecord, SchemaError
from .collection_store import CollectionStore, UnsafePathError
from .rollback import RollbackStack
from .ingest import ImageIngestor
from .catalog import ImageCatalog
from .collection_manager import Collection
from .registry import CollectionRegistry

__all__ = [
    'MetadataStore',
    'ImageRecord',
    'SchemaError',
    'CollectionStore',
    'UnsafePathError',
    'RollbackStack',
    'ImageIngestor',
    'ImageCatalog',
    'Collection',
    'CollectionRegistry',
]
