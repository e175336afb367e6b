"""
Embedding providers, the text->vector memoization cache and the embeddings service.
"""

from abc import ABC, abstractmethod
import hashlib
from typing import Dict, List, Optional

import numpy as np
from pydantic import BaseModel

from ..core.config import EMBED_MODEL_NAME, EMBED_PRECISION
from ..core.errors import InferenceFailure, ModelLoadFailure
from ..util.logging import logger


class EmbeddingOptions(BaseModel):
    """Options passed through to the embedding model."""

    normalize: bool = False


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed(self, text: str, model_id: Optional[str] = None,
              options: Optional[EmbeddingOptions] = None) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for testing purposes.

    Produces reproducible vectors from text without any model download.
    The model id is accepted and ignored.
    """

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def embed(self, text: str, model_id: Optional[str] = None,
              options: Optional[EmbeddingOptions] = None) -> List[float]:
        """Generate deterministic embedding vector using hash function."""
        vector = []
        counter = 0
        # Chain sha256 digests until there are enough values
        while len(vector) < self.dimension:
            digest = hashlib.sha256(f"{counter}:{text}".encode()).hexdigest()
            for i in range(0, len(digest), 8):
                if len(vector) >= self.dimension:
                    break
                value = int(digest[i:i + 8], 16)
                # Map to [-1, 1]
                vector.append((value / (2**32)) * 2 - 1)
            counter += 1

        if options is not None and options.normalize:
            norm = float(np.linalg.norm(vector))
            if norm > 0:
                vector = [v / norm for v in vector]
        return vector

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider.

    The model is loaded on first use and swapped whenever ``embed`` is
    called with a different ``model_id`` than the one currently loaded.
    """

    def __init__(self, model_name: str = EMBED_MODEL_NAME):
        self.model_name = model_name
        self._model = None
        self._loaded_model_name = None
        self._dimension = None

    def _load(self, model_name: str):
        if self._model is not None and self._loaded_model_name == model_name:
            return self._model
        try:
            from sentence_transformers import SentenceTransformer
            model = SentenceTransformer(model_name)
        except Exception as e:
            raise ModelLoadFailure(f"Failed to load embedding model '{model_name}': {e}") from e

        logger.log_operation("embeddings.model_loaded", "success", {"model": model_name})
        self._model = model
        self._loaded_model_name = model_name
        self._dimension = None
        return model

    @property
    def model(self):
        return self._load(self._loaded_model_name or self.model_name)

    def embed(self, text: str, model_id: Optional[str] = None,
              options: Optional[EmbeddingOptions] = None) -> List[float]:
        """Generate embedding vector using sentence transformers."""
        options = options or EmbeddingOptions()
        model = self._load(model_id or self.model_name)
        try:
            embedding = model.encode(text, convert_to_tensor=False,
                                     normalize_embeddings=options.normalize)
        except Exception as e:
            raise InferenceFailure(f"Embedding inference failed: {e}") from e
        return np.asarray(embedding, dtype=np.float64).tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            self._dimension = len(self.embed("test", self._loaded_model_name))
        return self._dimension


class EmbeddingCache:
    """Memoizes text -> vector. No eviction; the owner decides its lifetime."""

    def __init__(self):
        self._vectors: Dict[str, List[float]] = {}

    def get(self, text: str) -> Optional[List[float]]:
        return self._vectors.get(text)

    def set(self, text: str, vector: List[float]) -> None:
        self._vectors[text] = list(vector)

    def clear(self) -> None:
        self._vectors.clear()

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, text: str) -> bool:
        return text in self._vectors


class EmbeddingsService:
    """
    Turns text into rounded embedding vectors, memoizing results.

    Both the provider and the cache are injected; a cache can be shared
    between services on purpose but there is no process-wide default.
    """

    def __init__(self, provider: IEmbeddingProvider = None, cache: EmbeddingCache = None,
                 model_name: str = None, precision: int = EMBED_PRECISION):
        """
        Initialize the embeddings service.

        Args:
            provider: Embedding provider, defaults to the configured one
            cache: Memoization cache, a fresh one if omitted
            model_name: Model id passed to the provider
            precision: Decimal places kept in each vector value
        """
        if provider is None:
            from ..core.config import get_embedding_provider
            provider = get_embedding_provider()
        self.provider = provider
        self.cache = cache if cache is not None else EmbeddingCache()
        self.model_name = model_name or EMBED_MODEL_NAME
        self.precision = precision

    def get_embedding(self, text: str, precision: int = None,
                      options: Optional[EmbeddingOptions] = None,
                      model_name: str = None) -> List[float]:
        """
        Embed ``text``, returning the cached vector when there is one.

        Cache entries are keyed by text only, so a cached vector is returned
        even when a different model or precision is requested.
        """
        cached = self.cache.get(text)
        if cached is not None:
            return list(cached)

        digits = self.precision if precision is None else precision
        raw = self.provider.embed(text, model_name or self.model_name, options)
        rounded = [round(float(value), digits) for value in raw]
        self.cache.set(text, rounded)
        return list(rounded)

    def embed_texts(self, texts: List[str]) -> np.ndarray:
        """
        Embed multiple texts into vectors.

        Returns:
            Numpy array of shape (len(texts), embedding_dim)
        """
        return np.array([self.get_embedding(text) for text in texts])
