"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, in priority order:

  1. Environment variables, e.g. ``OPENAI_API_KEY=sk-abc123``
  2. A ``.env`` file in the project root (local development)

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults
below apply when neither source sets a value.

Pipeline *policy* (chunk sizes, retrieval thresholds, quota ceilings)
lives in ``config/config.yaml`` and is read by :func:`load_config`.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docqa application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Capability providers ===
    # Empty key = "not configured"; main.py falls back to Ollama.
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs
    openai_text_model: str = "gpt-4o-mini"
    openai_embedding_model: str = "text-embedding-3-small"
    ollama_base_url: str = "http://localhost:11434"
    ollama_text_model: str = "llama3.1"
    ollama_embedding_model: str = "nomic-embed-text"

    # === Embeddings / vector index ===
    embedding_dimension: int = 768
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "legal_documents"

    # === Persistence ===
    database_path: str = "data/docqa.db"

    # === Text extraction ===
    # OCR is slow and needs the tesseract binary; production hosts often
    # run with it disabled.
    ocr_enabled: bool = True

    # === Provider call policy ===
    provider_timeout_seconds: float = 30.0
    provider_max_attempts: int = 3
    provider_retry_backoff_seconds: float = 1.0

    # === App Config ===
    config_path: str = "config/config.yaml"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return the LLM provider names that have enough configuration to try."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers
