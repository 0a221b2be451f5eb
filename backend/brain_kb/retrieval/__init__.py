"""Retrieval components: keyword, semantic and hybrid search."""

from .vector_index import DimensionMismatchError, cosine_similarity
from .hybrid import fuse_rankings

__all__ = [
    "DimensionMismatchError",
    "cosine_similarity",
    "fuse_rankings",
]
