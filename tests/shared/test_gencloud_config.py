import pytest
from pydantic import ValidationError

from gencloud_mcp.shared.config import (
    DEFAULT_EMBEDDING_MODEL,
    Config,
    EmbeddingProvider,
    SearchConfig,
    VectorIndexBackend,
    get_config,
    load_config,
    reload_config,
)

CREDENTIAL_VARS = (
    "R2_BUCKET",
    "R2_ENDPOINT_URL",
    "VECTORIZE_INDEX",
    "EMBEDDING_BASE_URL",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "test.yaml"
    path.write_text(
        "\n".join(
            [
                "app:",
                "  name: qa-test",
                "search:",
                "  embedding_model: '  @cf/baai/bge-m3  '",
                "  default_top_k: 7",
                "storage:",
                "  bucket: yaml-bucket",
                "vector_index:",
                "  backend: qdrant",
                "  index_name: yaml-index",
            ]
        )
    )
    monkeypatch.setenv("CONFIG_PATH", str(path))
    return path


def test_defaults():
    config = Config()

    assert config.search.embedding_model == DEFAULT_EMBEDDING_MODEL
    assert config.search.default_top_k == 5
    assert config.mcp.protocol_version == "2024-11-05"
    assert config.embedding.provider is EmbeddingProvider.WORKERS_AI
    assert config.vector_index.backend is VectorIndexBackend.VECTORIZE


def test_shipped_development_config_loads(monkeypatch):
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    monkeypatch.setenv("ENV", "development")

    config, settings = load_config()

    assert settings.env == "development"
    assert config.app.name == "gencloud-qa-mcp"
    assert config.search.embedding_model == DEFAULT_EMBEDDING_MODEL


def test_config_path_is_loaded(config_file):
    config, _ = load_config()

    assert config.app.name == "qa-test"
    assert config.search.embedding_model == "@cf/baai/bge-m3"
    assert config.search.default_top_k == 7
    assert config.storage.bucket == "yaml-bucket"
    assert config.vector_index.backend is VectorIndexBackend.QDRANT


def test_environment_wins_over_yaml(config_file, monkeypatch):
    monkeypatch.setenv("R2_BUCKET", "env-bucket")
    monkeypatch.setenv("VECTORIZE_INDEX", "env-index")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config, _ = load_config()

    assert config.storage.bucket == "env-bucket"
    assert config.vector_index.index_name == "env-index"
    assert config.app.log_level == "DEBUG"


def test_reload_replaces_cached_config(config_file, monkeypatch):
    reload_config()
    assert get_config().storage.bucket == "yaml-bucket"

    monkeypatch.setenv("R2_BUCKET", "other-bucket")
    reload_config()
    assert get_config().storage.bucket == "other-bucket"


def test_missing_config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "absent.yaml"))

    with pytest.raises(FileNotFoundError):
        load_config()


@pytest.mark.parametrize("model", ["", "   "])
def test_embedding_model_required(model):
    with pytest.raises(ValidationError):
        SearchConfig(embedding_model=model)


def test_top_k_must_be_positive():
    with pytest.raises(ValidationError):
        SearchConfig(default_top_k=0)
