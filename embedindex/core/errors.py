"""
Exception taxonomy for the embedding index.

Validation and lookup errors are raised synchronously by the record store and
leave it unchanged. Storage errors come from the durable-storage gateway;
whether they propagate or degrade is decided in one place,
``EmbeddingIndex._resolve_candidates``.
"""


class EmbeddingIndexError(Exception):
    """Base class for every error raised by embedindex."""


class ValidationError(EmbeddingIndexError, ValueError):
    """A record, patch, query vector or option set is malformed."""


class NotFoundError(EmbeddingIndexError, LookupError):
    """No record matches the filter of a single-target update or remove."""

    def __init__(self, filter=None, message: str = "Vector not found"):
        self.filter = filter
        super().__init__(message if filter is None else f"{message}: {filter!r}")


class StorageUnavailable(EmbeddingIndexError):
    """No durable-storage capability is available in this environment."""


class StorageFailure(EmbeddingIndexError):
    """A durable-storage open/read/write/delete failed."""

    def __init__(self, message: str, db_name: str = None, table_name: str = None):
        self.db_name = db_name
        self.table_name = table_name
        super().__init__(message)


class StorageNotFoundError(StorageFailure):
    """The requested database or table does not exist."""


class StorageConnectionError(StorageFailure):
    """The storage driver could not connect, read or write."""


class EmbeddingError(EmbeddingIndexError):
    """Base class for embedding provider failures."""


class ModelLoadFailure(EmbeddingError):
    """The embedding model could not be loaded."""


class InferenceFailure(EmbeddingError):
    """The embedding model failed to embed the input."""
