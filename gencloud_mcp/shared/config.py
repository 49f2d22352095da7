# Configuration loader with environment variable support

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "@cf/qwen/qwen3-embedding-0.6b"
DEFAULT_PROTOCOL_VERSION = "2024-11-05"
DEFAULT_INSTRUCTIONS = (
    "This server exposes tools for listing and reading files from an R2 bucket "
    "and performing semantic search over a Cloudflare Vectorize index."
)
CLOUDFLARE_API_BASE_URL = "https://api.cloudflare.com/client/v4"


class EmbeddingProvider(str, Enum):
    WORKERS_AI = "workers_ai"
    OPENAI_COMPATIBLE = "openai_compatible"


class VectorIndexBackend(str, Enum):
    VECTORIZE = "vectorize"
    QDRANT = "qdrant"


class AppConfig(BaseModel):
    name: str = "gencloud-qa-mcp"
    version: str = "0.1.0"
    log_level: str = "INFO"
    environment: str = "development"


class MCPConfig(BaseModel):
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    instructions: str = DEFAULT_INSTRUCTIONS


class SearchConfig(BaseModel):
    """
    Query-side search settings.

    embedding_model must be the model the index was populated with;
    vectors from different models are not comparable.
    """

    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    default_top_k: int = Field(default=5, gt=0)

    @field_validator("embedding_model")
    @classmethod
    def validate_embedding_model(cls, v):
        if not v or not v.strip():
            raise ValueError("embedding_model cannot be empty")
        return v.strip()


class StorageConfig(BaseModel):
    bucket: Optional[str] = None
    endpoint_url: Optional[str] = None
    max_keys: int = Field(default=1000, gt=0, le=1000)
    timeout_seconds: float = Field(default=30.0, gt=0)


class EmbeddingConfig(BaseModel):
    provider: EmbeddingProvider = EmbeddingProvider.WORKERS_AI
    base_url: Optional[str] = None
    timeout_seconds: float = Field(default=30.0, gt=0)


class VectorIndexConfig(BaseModel):
    backend: VectorIndexBackend = VectorIndexBackend.VECTORIZE
    index_name: Optional[str] = None
    timeout_seconds: float = Field(default=30.0, gt=0)


class MonitoringConfig(BaseModel):
    metrics_port: Optional[int] = Field(default=None, gt=0, lt=65536)
    tracing_enabled: bool = True


class Config(BaseModel):
    """Main configuration model"""

    app: AppConfig = Field(default_factory=AppConfig)
    mcp: MCPConfig = Field(default_factory=MCPConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vector_index: VectorIndexConfig = Field(default_factory=VectorIndexConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)


class Settings(BaseSettings):
    """Environment-based settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="development", alias="ENV")
    config_path: Optional[str] = Field(default=None, alias="CONFIG_PATH")

    # Cloudflare account (Workers AI, Vectorize, R2 endpoint)
    cloudflare_account_id: Optional[str] = Field(
        default=None, alias="CLOUDFLARE_ACCOUNT_ID"
    )
    cloudflare_api_token: Optional[str] = Field(
        default=None, alias="CLOUDFLARE_API_TOKEN"
    )
    cloudflare_api_base_url: str = Field(
        default=CLOUDFLARE_API_BASE_URL, alias="CLOUDFLARE_API_BASE_URL"
    )

    # R2 (S3 API)
    r2_access_key_id: Optional[str] = Field(default=None, alias="R2_ACCESS_KEY_ID")
    r2_secret_access_key: Optional[str] = Field(
        default=None, alias="R2_SECRET_ACCESS_KEY"
    )
    r2_bucket: Optional[str] = Field(default=None, alias="R2_BUCKET")
    r2_endpoint_url: Optional[str] = Field(default=None, alias="R2_ENDPOINT_URL")

    # Vector index
    vectorize_index: Optional[str] = Field(default=None, alias="VECTORIZE_INDEX")
    qdrant_url: Optional[str] = Field(default=None, alias="QDRANT_URL")
    qdrant_api_key: Optional[str] = Field(default=None, alias="QDRANT_API_KEY")

    # OpenAI-compatible embedding service
    embedding_base_url: Optional[str] = Field(default=None, alias="EMBEDDING_BASE_URL")
    embedding_api_key: Optional[str] = Field(default=None, alias="EMBEDDING_API_KEY")

    # OpenTelemetry
    otel_exporter_otlp_endpoint: Optional[str] = Field(
        default=None, alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    otel_service_name: str = Field(default="gencloud-qa-mcp", alias="OTEL_SERVICE_NAME")

    # Logging
    log_level: Optional[str] = Field(default=None, alias="LOG_LEVEL")


def _apply_env_overrides(config: Config, settings: Settings) -> None:
    """Environment values win over YAML values where both exist."""
    if settings.log_level:
        config.app.log_level = settings.log_level
    if settings.r2_bucket:
        config.storage.bucket = settings.r2_bucket
    if settings.r2_endpoint_url:
        config.storage.endpoint_url = settings.r2_endpoint_url
    if settings.vectorize_index:
        config.vector_index.index_name = settings.vectorize_index
    if settings.embedding_base_url:
        config.embedding.base_url = settings.embedding_base_url


def load_config() -> tuple[Config, Settings]:
    """
    Load configuration from YAML file and environment variables.

    Returns:
        tuple: (Config, Settings) - YAML config and environment settings

    Raises:
        FileNotFoundError: If config file not found
        pydantic.ValidationError: If configuration validation fails
    """
    settings = Settings()

    if settings.config_path:
        config_path = Path(settings.config_path)
    else:
        config_path = (
            Path(__file__).parent.parent.parent / "config" / f"{settings.env}.yaml"
        )

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    with open(config_path, "r") as f:
        config_dict = yaml.safe_load(f) or {}

    config = Config(**config_dict)
    _apply_env_overrides(config, settings)
    return config, settings


# Global instances
_config: Optional[Config] = None
_settings: Optional[Settings] = None


def get_config() -> Config:
    """Get the global Config instance"""
    global _config
    if _config is None:
        init_config()
    return _config


def get_settings() -> Settings:
    """Get the global Settings instance"""
    global _settings
    if _settings is None:
        init_config()
    return _settings


def init_config() -> tuple[Config, Settings]:
    """Initialize and cache global config instances"""
    global _config, _settings
    _config, _settings = load_config()
    return _config, _settings


def reload_config() -> tuple[Config, Settings]:
    """Force reload of config/settings from disk and environment."""
    return init_config()
