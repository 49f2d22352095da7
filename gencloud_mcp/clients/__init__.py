"""
External collaborators: object storage, embedding provider, vector index.

The dispatcher never reaches for process-wide handles; it receives a
``Collaborators`` bundle at construction time. Any member may be None
when its credentials are not configured, and the tools report that at
call time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from gencloud_mcp.shared.config import (
    Config,
    EmbeddingProvider as EmbeddingProviderKind,
    Settings,
    VectorIndexBackend,
)
from gencloud_mcp.shared.observability import get_logger

from .embedding_client import OpenAICompatibleEmbeddingClient, WorkersAIEmbeddingClient
from .storage_client import R2StorageClient, StorageObject, StoredFile, r2_endpoint_url
from .vector_index_client import QdrantIndexClient, VectorizeIndexClient

logger = get_logger(__name__)


class ObjectStorage(Protocol):
    async def list(self, prefix: str) -> List[StorageObject]: ...

    async def get(self, key: str) -> Optional[StoredFile]: ...


class EmbeddingProvider(Protocol):
    async def run(self, model_id: str, inputs: Dict[str, Any]) -> Any: ...


class VectorIndex(Protocol):
    async def query(self, vector: List[float], top_k: int) -> Any: ...


@dataclass
class Collaborators:
    storage: Optional[ObjectStorage] = None
    embedder: Optional[EmbeddingProvider] = None
    vector_index: Optional[VectorIndex] = None

    async def aclose(self) -> None:
        for member in (self.storage, self.embedder, self.vector_index):
            close = getattr(member, "aclose", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                logger.warning(
                    "Failed to close collaborator",
                    collaborator=type(member).__name__,
                    error=str(e),
                )


def _build_storage(config: Config, settings: Settings) -> Optional[ObjectStorage]:
    bucket = config.storage.bucket
    endpoint_url = config.storage.endpoint_url
    if not endpoint_url and settings.cloudflare_account_id:
        endpoint_url = r2_endpoint_url(settings.cloudflare_account_id)
    if not (
        bucket
        and endpoint_url
        and settings.r2_access_key_id
        and settings.r2_secret_access_key
    ):
        logger.warning("Object storage not configured; R2 tools will report it")
        return None
    return R2StorageClient(
        bucket,
        endpoint_url=endpoint_url,
        access_key_id=settings.r2_access_key_id,
        secret_access_key=settings.r2_secret_access_key,
        max_keys=config.storage.max_keys,
        timeout=config.storage.timeout_seconds,
    )


def _build_embedder(config: Config, settings: Settings) -> Optional[EmbeddingProvider]:
    embedding = config.embedding
    if embedding.provider == EmbeddingProviderKind.OPENAI_COMPATIBLE:
        if not embedding.base_url:
            logger.warning("Embedding provider not configured (EMBEDDING_BASE_URL)")
            return None
        return OpenAICompatibleEmbeddingClient(
            embedding.base_url,
            api_key=settings.embedding_api_key,
            timeout=embedding.timeout_seconds,
        )

    if not (settings.cloudflare_account_id and settings.cloudflare_api_token):
        logger.warning("Embedding provider not configured (Workers AI credentials)")
        return None
    return WorkersAIEmbeddingClient(
        settings.cloudflare_account_id,
        settings.cloudflare_api_token,
        base_url=embedding.base_url or settings.cloudflare_api_base_url,
        timeout=embedding.timeout_seconds,
    )


def _build_vector_index(config: Config, settings: Settings) -> Optional[VectorIndex]:
    index = config.vector_index
    if not index.index_name:
        logger.warning("Vector index not configured (VECTORIZE_INDEX)")
        return None

    if index.backend == VectorIndexBackend.QDRANT:
        if not settings.qdrant_url:
            logger.warning("Vector index not configured (QDRANT_URL)")
            return None
        return QdrantIndexClient(
            index.index_name,
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key,
            timeout=index.timeout_seconds,
        )

    if not (settings.cloudflare_account_id and settings.cloudflare_api_token):
        logger.warning("Vector index not configured (Cloudflare credentials)")
        return None
    return VectorizeIndexClient(
        settings.cloudflare_account_id,
        settings.cloudflare_api_token,
        index.index_name,
        base_url=settings.cloudflare_api_base_url,
        timeout=index.timeout_seconds,
    )


def build_collaborators(config: Config, settings: Settings) -> Collaborators:
    """Create the clients the configuration and environment allow for."""
    return Collaborators(
        storage=_build_storage(config, settings),
        embedder=_build_embedder(config, settings),
        vector_index=_build_vector_index(config, settings),
    )


__all__ = [
    "Collaborators",
    "ObjectStorage",
    "EmbeddingProvider",
    "VectorIndex",
    "StorageObject",
    "StoredFile",
    "build_collaborators",
]
