"""Error taxonomy for the image vault storage engine.

Every error raised by the engine is a :class:`VaultError` carrying an
:class:`ErrorKind`, a human-readable message and, where one exists, the
underlying cause (filesystem, driver or decoder error). Callers branch on
``error.kind`` instead of matching message text.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of a :class:`VaultError`."""
    VALIDATION = 'VALIDATION'
    NOT_FOUND = 'NOT_FOUND'
    DUPLICATE = 'DUPLICATE'
    PROCESSING = 'PROCESSING'
    STORAGE = 'STORAGE'
    INTERNAL = 'INTERNAL'


class VaultError(Exception):
    """Base class for all engine errors.

    Attributes:
        kind: Error category
        message: Human-readable description
        cause: Wrapped underlying exception, if any
    """
    kind = ErrorKind.INTERNAL

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value}, message={self.message!r})"


class ValidationError(VaultError):
    """Malformed name, id, status, filename or query parameter."""
    kind = ErrorKind.VALIDATION


class NotFoundError(VaultError):
    """Collection or image does not exist."""
    kind = ErrorKind.NOT_FOUND


class DuplicateError(VaultError):
    """Collection name or image content hash already taken."""
    kind = ErrorKind.DUPLICATE


class ProcessingError(VaultError):
    """Image payload is corrupt or cannot be decoded."""
    kind = ErrorKind.PROCESSING


class StorageError(VaultError):
    """A filesystem or catalog write failed."""
    kind = ErrorKind.STORAGE


class InternalError(VaultError):
    """Anything unanticipated."""
    kind = ErrorKind.INTERNAL


# Registry-level wrappers

class CreateError(StorageError):
    """Creating a collection failed after side effects began."""

    def __init__(self, collection_id: str, cause: Optional[BaseException] = None):
        super().__init__(f'Unable to create collection: "{collection_id}"', cause)
        self.collection_id = collection_id


class LoadError(StorageError):
    """Opening an existing collection failed."""

    def __init__(self, collection_id: str, cause: Optional[BaseException] = None):
        super().__init__(f'Unable to load collection: "{collection_id}"', cause)
        self.collection_id = collection_id


class DeleteError(StorageError):
    """Removing a collection directory failed part-way."""

    def __init__(self, collection_id: str, cause: Optional[BaseException] = None):
        super().__init__(f'Unable to delete collection: "{collection_id}"', cause)
        self.collection_id = collection_id


class ClearError(StorageError):
    """Clearing the collections root was aborted."""

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__('Unable to clear collections', cause)


class ListError(StorageError):
    """The collections root could not be enumerated."""

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__('Unable to list collections', cause)
