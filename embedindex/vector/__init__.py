# Package initialization for vector module
from .cache import StorageCache
from .embeddings import (
    DeterministicHashEmbedding,
    EmbeddingCache,
    EmbeddingOptions,
    EmbeddingsService,
    IEmbeddingProvider,
    SentenceTransformerEmbedding,
)
from .index import EmbeddingIndex
from .similarity import cosine_similarity
from .topk import TopKSelector
from .types import SearchResult

__all__ = [
    'EmbeddingIndex',
    'StorageCache',
    'TopKSelector',
    'SearchResult',
    'cosine_similarity',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'EmbeddingCache',
    'EmbeddingOptions',
    'EmbeddingsService',
]
