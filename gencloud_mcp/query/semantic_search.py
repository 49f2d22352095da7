"""
Semantic search over an external vector index.

A natural-language query is embedded by the embedding provider, the
vector index is queried with that embedding, and the raw matches are
normalized into ``MatchRecord`` objects. Ranking is entirely the
index's job: nothing is re-scored, filtered or cached here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from gencloud_mcp.clients import EmbeddingProvider, VectorIndex
from gencloud_mcp.shared.config import DEFAULT_EMBEDDING_MODEL
from gencloud_mcp.shared.errors import (
    ConfigurationError,
    EmbeddingExtractionError,
    VectorIndexError,
)
from gencloud_mcp.shared.observability import get_logger

logger = get_logger(__name__)

EMBEDDING_EXTRACTION_FAILED = "Could not extract embedding from Workers AI response"

_EMBEDDING_VECTOR = TypeAdapter(Annotated[List[float], Field(min_length=1)])


class RawMatch(BaseModel):
    """One match as returned by the vector index."""

    model_config = ConfigDict(extra="allow")

    id: Any = None
    score: Any = None
    metadata: Optional[Dict[str, Any]] = None


_RAW_MATCHES = TypeAdapter(List[RawMatch])


@dataclass
class MatchRecord:
    """Normalized search hit."""

    id: Any
    score: Any
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def source(self) -> Any:
        return self.metadata.get("source")

    @property
    def text(self) -> Any:
        return self.metadata.get("text")

    def to_dict(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {"id": self.id, "score": self.score}
        # Convenience fields only appear when the index stored them
        for key in ("source", "text"):
            if key in self.metadata:
                record[key] = self.metadata[key]
        record["metadata"] = self.metadata
        return record


def extract_embedding(response: Any) -> List[float]:
    """
    Return the first embedding vector of an embedding provider response.

    The expected shape is ``{"data": [[float, ...], ...]}``. Anything else
    (missing ``data``, empty list, non-numeric items) raises
    EmbeddingExtractionError.
    """
    if not isinstance(response, dict):
        raise EmbeddingExtractionError(EMBEDDING_EXTRACTION_FAILED)
    data = response.get("data")
    if not isinstance(data, list) or not data:
        raise EmbeddingExtractionError(EMBEDDING_EXTRACTION_FAILED)
    try:
        return _EMBEDDING_VECTOR.validate_python(data[0], strict=True)
    except ValidationError as e:
        raise EmbeddingExtractionError(EMBEDDING_EXTRACTION_FAILED) from e


def extract_matches(response: Any) -> List[RawMatch]:
    """
    Pull the match list out of a vector index response.

    Indexes report hits under ``matches`` or ``results``; ``matches`` wins
    when it is present and not null. Neither present means no hits.
    """
    if not isinstance(response, dict):
        raise VectorIndexError("Unexpected vector index response: expected an object")
    raw = response.get("matches")
    if raw is None:
        raw = response.get("results")
    if raw is None:
        return []
    try:
        return _RAW_MATCHES.validate_python(raw)
    except ValidationError as e:
        raise VectorIndexError(
            f"Unexpected vector index response: {e.error_count()} invalid match field(s)"
        ) from e


def to_match_record(match: RawMatch) -> MatchRecord:
    return MatchRecord(id=match.id, score=match.score, metadata=match.metadata or {})


class SemanticSearch:
    """Embeds a query and asks the vector index for the closest entries."""

    def __init__(
        self,
        embedder: Optional[EmbeddingProvider],
        vector_index: Optional[VectorIndex],
        model_id: str = DEFAULT_EMBEDDING_MODEL,
    ) -> None:
        self.embedder = embedder
        self.vector_index = vector_index
        self.model_id = model_id

    def _ensure_configured(self) -> None:
        if self.vector_index is None:
            raise ConfigurationError(
                "Vector index is not configured. Set VECTORIZE_INDEX "
                "(or vector_index.index_name) and the index credentials."
            )
        if self.embedder is None:
            raise ConfigurationError(
                "Embedding provider is not configured. Set CLOUDFLARE_ACCOUNT_ID and "
                "CLOUDFLARE_API_TOKEN, or EMBEDDING_BASE_URL for an OpenAI-compatible service."
            )

    async def search(self, query: str, top_k: int) -> List[MatchRecord]:
        self._ensure_configured()

        embedding_response = await self.embedder.run(self.model_id, {"text": [query]})
        try:
            embedding = extract_embedding(embedding_response)
        except EmbeddingExtractionError:
            logger.error(
                "Unexpected embedding response",
                model_id=self.model_id,
                response_type=type(embedding_response).__name__,
            )
            raise

        vector_response = await self.vector_index.query(embedding, top_k=top_k)
        matches = extract_matches(vector_response)

        logger.info(
            "Semantic search completed",
            model_id=self.model_id,
            top_k=top_k,
            match_count=len(matches),
        )
        return [to_match_record(m) for m in matches]


__all__ = [
    "MatchRecord",
    "RawMatch",
    "SemanticSearch",
    "extract_embedding",
    "extract_matches",
    "EMBEDDING_EXTRACTION_FAILED",
]
