"""Content hashing for within-collection deduplication.

Two originals are considered the same image when the SHA-256 of their raw
bytes matches. The hash is only compared for equality; it is not used for
anything security-sensitive.
"""

import hashlib

HASH_ALGORITHM = 'sha256'


class ContentHasher:
    """Computes stable content fingerprints.

    Attributes:
        algorithm: hashlib algorithm name
    """

    def __init__(self, algorithm: str = HASH_ALGORITHM):
        self.algorithm = algorithm

    def hash(self, data: bytes) -> str:
        """Hash an in-memory buffer.

        Args:
            data: Raw bytes

        Returns:
            Lowercase hexadecimal digest
        """
        hasher = hashlib.new(self.algorithm)
        hasher.update(data)
        return hasher.hexdigest()

    def __repr__(self) -> str:
        return f"ContentHasher(algorithm='{self.algorithm}')"
