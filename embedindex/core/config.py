"""Configuration management for the embedding index."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Durable storage configuration
DATA_DIR = os.getenv("EMBEDINDEX_DATA_DIR", "./data")
STORAGE_ENABLED = os.getenv("STORAGE_ENABLED", "true").lower() == "true"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sqlite")  # sqlite|memory
DEFAULT_DB_NAME = os.getenv("DEFAULT_DB_NAME", "clientVectorDB")
DEFAULT_TABLE_NAME = os.getenv("DEFAULT_TABLE_NAME", "ClientEmbeddingStore")

# Search configuration
DEFAULT_TOP_K = int(os.getenv("DEFAULT_TOP_K", "3"))

# Embedding configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "hash")  # hash|sentence-transformers
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "all-MiniLM-L6-v2")
EMBED_DIM = int(os.getenv("EMBED_DIM", "384"))
EMBED_PRECISION = int(os.getenv("EMBED_PRECISION", "7"))

# Schema validation (type checks on top of attribute-name checks)
SCHEMA_VALIDATION_STRICT = os.getenv("SCHEMA_VALIDATION_STRICT", "false").lower() == "true"

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

VERSION = "0.3.0"


def get_data_dir() -> Path:
    """Directory that holds one SQLite file per database."""
    return Path(os.getenv("EMBEDINDEX_DATA_DIR", DATA_DIR))


def storage_enabled() -> bool:
    """Check if durable storage is enabled."""
    return os.getenv("STORAGE_ENABLED", "true").lower() == "true"


def schema_validation_strict() -> bool:
    """Check if schema value types are enforced."""
    return os.getenv("SCHEMA_VALIDATION_STRICT", "false").lower() == "true"


def debug_enabled() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_storage_gateway():
    """Get configured storage gateway. Returns None if durable storage is disabled."""
    if not storage_enabled():
        return None

    backend = os.getenv("STORAGE_BACKEND", STORAGE_BACKEND)
    if backend == "memory":
        from .storage import InMemoryStorageGateway
        return InMemoryStorageGateway()

    from .db import SqliteStorageGateway
    return SqliteStorageGateway(get_data_dir())


def get_embedding_provider():
    """Get configured embedding provider implementation."""
    provider = os.getenv("EMBED_PROVIDER", EMBED_PROVIDER)
    if provider == "sentence-transformers":
        from ..vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(os.getenv("EMBED_MODEL_NAME", EMBED_MODEL_NAME))

    from ..vector.embeddings import DeterministicHashEmbedding
    return DeterministicHashEmbedding(int(os.getenv("EMBED_DIM", str(EMBED_DIM))))


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if os.getenv("STORAGE_BACKEND", STORAGE_BACKEND) not in ["sqlite", "memory"]:
        issues.append(f"Invalid STORAGE_BACKEND: {os.getenv('STORAGE_BACKEND')}")

    if os.getenv("EMBED_PROVIDER", EMBED_PROVIDER) not in ["hash", "sentence-transformers"]:
        issues.append(f"Invalid EMBED_PROVIDER: {os.getenv('EMBED_PROVIDER')}")

    if DEFAULT_TOP_K < 1:
        issues.append("DEFAULT_TOP_K must be >= 1")

    if EMBED_PRECISION < 0:
        issues.append("EMBED_PRECISION must be >= 0")

    if not DEFAULT_DB_NAME.strip() or not DEFAULT_TABLE_NAME.strip():
        issues.append("DEFAULT_DB_NAME and DEFAULT_TABLE_NAME must not be empty")

    return issues
