"""Embedded similarity-search index with a durable-storage snapshot cache."""

from .core.config import VERSION as __version__
from .core.errors import (
    EmbeddingIndexError,
    InferenceFailure,
    ModelLoadFailure,
    NotFoundError,
    StorageConnectionError,
    StorageFailure,
    StorageNotFoundError,
    StorageUnavailable,
    ValidationError,
)
from .core.schema import RecordSchema, SearchOptions, StorageSource
from .core.storage import IStorageGateway, InMemoryStorageGateway
from .core.db import SqliteStorageGateway
from .vector import (
    DeterministicHashEmbedding,
    EmbeddingCache,
    EmbeddingIndex,
    EmbeddingsService,
    SearchResult,
    SentenceTransformerEmbedding,
    StorageCache,
    TopKSelector,
    cosine_similarity,
)

__all__ = [
    'EmbeddingIndex',
    'SearchResult',
    'SearchOptions',
    'StorageSource',
    'RecordSchema',
    'StorageCache',
    'TopKSelector',
    'cosine_similarity',
    'IStorageGateway',
    'InMemoryStorageGateway',
    'SqliteStorageGateway',
    'EmbeddingCache',
    'EmbeddingsService',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'EmbeddingIndexError',
    'ValidationError',
    'NotFoundError',
    'StorageUnavailable',
    'StorageFailure',
    'StorageNotFoundError',
    'StorageConnectionError',
    'ModelLoadFailure',
    'InferenceFailure',
]
