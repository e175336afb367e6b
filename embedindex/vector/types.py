"""
Result types shared by the search paths.
"""

from dataclasses import dataclass
from typing import Any, Dict

Record = Dict[str, Any]


@dataclass(frozen=True)
class SearchResult:
    """Represents a search hit."""

    # the record is a mutable dict
    __hash__ = None

    similarity: float
    """Cosine similarity between the query and the record's embedding"""

    record: Record
    """The matched record (the stored one, or the cache snapshot's copy)"""

    def __iter__(self):
        # unpacks as (score, record)
        yield self.similarity
        yield self.record
