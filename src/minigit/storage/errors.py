"""Exceptions raised by the minigit storage layer."""


class ObjectStoreError(Exception):
    """Base class for object storage errors."""


class ObjectNotFoundError(ObjectStoreError):
    """Raised when no object exists for the requested id."""


class ObjectDecodeError(ObjectStoreError):
    """Raised when a stored object cannot be decompressed or parsed."""


class PersistenceError(ObjectStoreError):
    """Raised when the underlying storage fails for a reason other than
    the object already existing."""


class InvalidInputError(ObjectStoreError, ValueError):
    """Raised for malformed ids, names, identities or unsupported file types."""
