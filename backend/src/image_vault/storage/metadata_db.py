"""Metadata catalog for a single collection.

This module provides the SQLite catalog (``collection.db``) that describes
every image stored in a collection: original name, format, size, content
hash, dimensions, curation status and timestamps. The on-disk schema is a
persisted format and must not drift:

    images(id TEXT PRIMARY KEY, collection, name, extension, mime, size,
           hash UNIQUE, width, height, aspect, status DEFAULT 'INBOX',
           created, updated)
    idx_images_status(status), idx_images_hash(hash)

Timestamps are stored as ISO-8601 UTC text.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import logging

from sqlalchemy import (
    create_engine,
    inspect,
    literal_column,
    text,
    Column,
    Integer,
    Text,
    REAL,
    Index as DBIndex,
    func
)
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

from ..models import Direction, ImageStatus, OrderBy

logger = logging.getLogger(__name__)

Base = declarative_base()

SCHEMA_VERSION = 1
TABLE_NAME = 'images'


class SchemaError(Exception):
    """Raised when a catalog file does not hold a usable images table."""
    pass


class IsoTimestamp(TypeDecorator):
    """Aware datetime stored as ISO-8601 UTC text (``...T..:..:..ffffffZ``)."""
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.strftime('%Y-%m-%dT%H:%M:%S.%fZ')

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


class StatusType(TypeDecorator):
    """:class:`ImageStatus` stored as its plain text value."""
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return ImageStatus(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return ImageStatus(value)


class ImageRecord(Base):
    """One stored image.

    Each row mirrors two files in the collection directory:
    ``images/original/<id>.<extension>`` and ``images/thumbnails/<id>.jpg``.
    """
    __tablename__ = TABLE_NAME

    id = Column(Text, primary_key=True)
    collection_id = Column('collection', Text, nullable=False)

    # Source file information
    original_name = Column('name', Text, nullable=False)
    extension = Column(Text, nullable=False)
    mime_type = Column('mime', Text, nullable=False)
    size_bytes = Column('size', Integer, nullable=False)

    # SHA-256 of the original bytes (deduplication key)
    content_hash = Column('hash', Text, nullable=False, unique=True)

    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)
    aspect_ratio = Column('aspect', REAL, nullable=False)

    status = Column(
        StatusType,
        nullable=False,
        default=ImageStatus.INBOX,
        server_default=text("'INBOX'")
    )

    created_at = Column('created', IsoTimestamp, nullable=False)
    updated_at = Column('updated', IsoTimestamp, nullable=False)

    __table_args__ = (
        DBIndex('idx_images_status', 'status'),
        DBIndex('idx_images_hash', 'hash'),
    )

    @property
    def original_filename(self) -> str:
        """Relative path of the original under ``images/original``."""
        return f"{self.id}.{self.extension}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert image record to dictionary.

        Returns:
            Dictionary keyed by catalog column names
        """
        return {
            'id': self.id,
            'collection': self.collection_id,
            'name': self.original_name,
            'extension': self.extension,
            'mime': self.mime_type,
            'size': self.size_bytes,
            'hash': self.content_hash,
            'width': self.width,
            'height': self.height,
            'aspect': self.aspect_ratio,
            'status': self.status.value if self.status else None,
            'created': self.created_at.isoformat() if self.created_at else None,
            'updated': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return (
            f"ImageRecord(id='{self.id}', name='{self.original_name}.{self.extension}', "
            f"status={self.status.value if self.status else None})"
        )


_ORDER_COLUMNS = {
    OrderBy.CREATED_AT: ImageRecord.created_at,
    OrderBy.UPDATED_AT: ImageRecord.updated_at,
}


class MetadataStore:
    """Catalog connection for one collection.

    The store owns a single SQLite connection from :meth:`open` until
    :meth:`close`. Every mutation runs inside :meth:`session_scope`, so it
    either commits as a whole or leaves the catalog untouched.
    """

    def __init__(self, db_path: str, collection_id: str):
        """Initialize metadata store.

        Args:
            db_path: Path to the collection's ``collection.db``
            collection_id: Owning collection id
        """
        self.db_path = Path(db_path)
        self.collection_id = collection_id
        self.engine = None
        self.SessionLocal = None

    def open(self, create: bool = False):
        """Open the catalog connection.

        Args:
            create: Create the schema in a new catalog file instead of
                verifying an existing one

        Raises:
            FileNotFoundError: If ``create`` is False and the file is missing
            SchemaError: If the file does not hold a compatible catalog
            SQLAlchemyError: If the file is not a SQLite database
        """
        if self.engine is not None:
            return
        if not create and not self.db_path.is_file():
            raise FileNotFoundError(f"Catalog not found: {self.db_path}")

        self.engine = create_engine(
            f'sqlite:///{self.db_path}',
            echo=False,
            poolclass=StaticPool,
            connect_args={'check_same_thread': False}  # For SQLite
        )
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        try:
            if create:
                self._create_schema()
            else:
                self._verify_schema()
        except Exception:
            self.close()
            raise

        logger.debug(f"MetadataStore opened: {self.db_path}")

    def _create_schema(self):
        Base.metadata.create_all(self.engine)
        with self.engine.begin() as conn:
            conn.execute(text(f"PRAGMA user_version = {SCHEMA_VERSION}"))
        logger.info(f"Catalog initialized: {self.db_path}")

    def _verify_schema(self):
        with self.engine.connect() as conn:
            version = conn.execute(text("PRAGMA user_version")).scalar() or 0
        if version > SCHEMA_VERSION:
            raise SchemaError(
                f"Catalog schema version {version} is newer than supported "
                f"version {SCHEMA_VERSION}"
            )
        if not inspect(self.engine).has_table(TABLE_NAME):
            raise SchemaError(f"Catalog {self.db_path} has no '{TABLE_NAME}' table")

    def close(self):
        """Release the catalog connection. Safe to call more than once."""
        if self.engine is not None:
            self.engine.dispose()
            logger.debug(f"MetadataStore closed: {self.db_path}")
        self.engine = None
        self.SessionLocal = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope for database operations.

        Usage:
            with store.session_scope() as session:
                session.add(record)
                # Commit happens automatically on success
                # Rollback happens automatically on exception
        """
        if self.SessionLocal is None:
            raise RuntimeError(f"Catalog is not open: {self.db_path}")
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.debug(f"Catalog transaction rolled back: {e}")
            raise
        finally:
            session.close()

    def add_image(self, record: ImageRecord) -> ImageRecord:
        """Insert an image row.

        Raises:
            IntegrityError: If the id or content hash already exists
        """
        with self.session_scope() as session:
            session.add(record)
            session.flush()
        logger.debug(f"Inserted image row {record.id}")
        return record

    def get_image(self, image_id: str) -> Optional[ImageRecord]:
        """Get image record by id, or None if not found."""
        with self.session_scope() as session:
            return session.query(ImageRecord).filter(
                ImageRecord.id == image_id
            ).first()

    def get_image_by_hash(self, content_hash: str) -> Optional[ImageRecord]:
        """Get the image whose original has ``content_hash``, or None."""
        with self.session_scope() as session:
            return session.query(ImageRecord).filter(
                ImageRecord.content_hash == content_hash
            ).first()

    def list_images(
        self,
        status: Optional[ImageStatus] = None,
        order_by: OrderBy = OrderBy.UPDATED_AT,
        direction: Direction = Direction.DESC
    ) -> List[ImageRecord]:
        """List images, optionally filtered by status.

        Rows with equal timestamps keep insertion order relative to the
        requested direction.
        """
        column = _ORDER_COLUMNS[order_by]
        rowid = literal_column('images.rowid')
        if direction == Direction.ASC:
            ordering = (column.asc(), rowid.asc())
        else:
            ordering = (column.desc(), rowid.desc())

        with self.session_scope() as session:
            query = session.query(ImageRecord)
            if status is not None:
                query = query.filter(ImageRecord.status == status)
            return query.order_by(*ordering).all()

    def update_status(
        self,
        image_id: str,
        status: ImageStatus,
        updated_at: datetime
    ) -> Optional[ImageRecord]:
        """Set status and bump ``updated_at`` in one transaction.

        Returns:
            Refreshed record, or None if not found
        """
        with self.session_scope() as session:
            record = session.query(ImageRecord).filter(
                ImageRecord.id == image_id
            ).first()
            if record is None:
                return None
            record.status = status
            record.updated_at = updated_at
            session.flush()
            return record

    def update_statuses(
        self,
        updates: Dict[str, ImageStatus],
        updated_at: datetime
    ) -> List[ImageRecord]:
        """Apply several status changes atomically.

        Raises:
            LookupError: If any id is missing; nothing is changed
        """
        with self.session_scope() as session:
            records = []
            for image_id, status in updates.items():
                record = session.query(ImageRecord).filter(
                    ImageRecord.id == image_id
                ).first()
                if record is None:
                    raise LookupError(image_id)
                record.status = status
                record.updated_at = updated_at
                records.append(record)
            session.flush()
            return records

    def delete_image(
        self,
        image_id: str,
        before_commit: Optional[Callable[[], None]] = None
    ) -> bool:
        """Permanently delete an image row.

        Args:
            image_id: Row to delete
            before_commit: Called after the delete statement but before the
                commit; if it raises, the row is kept and the error propagates

        Returns:
            True if a row was deleted, False if not found
        """
        with self.session_scope() as session:
            deleted = session.query(ImageRecord).filter(
                ImageRecord.id == image_id
            ).delete(synchronize_session=False)
            if deleted and before_commit is not None:
                before_commit()
        if deleted:
            logger.debug(f"Deleted image row {image_id}")
        return bool(deleted)

    def count_images(self, status: Optional[ImageStatus] = None) -> int:
        """Count images, optionally restricted to one status."""
        with self.session_scope() as session:
            query = session.query(func.count(ImageRecord.id))
            if status is not None:
                query = query.filter(ImageRecord.status == status)
            return query.scalar() or 0

    def count_by_status(self) -> Dict[ImageStatus, int]:
        """Count images per status (every status present, zero if empty)."""
        counts = {status: 0 for status in ImageStatus}
        with self.session_scope() as session:
            rows = session.query(
                ImageRecord.status, func.count(ImageRecord.id)
            ).group_by(ImageRecord.status).all()
        for status, count in rows:
            counts[status] = count
        return counts

    def __repr__(self) -> str:
        state = 'open' if self.is_open else 'closed'
        return f"MetadataStore(collection='{self.collection_id}', {state})"
