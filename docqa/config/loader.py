"""Layered configuration: built-in policy, then ``config.yaml``, then env.

Each layer is deep-merged over the previous one, so ``config.yaml`` only
needs the keys it changes and an environment variable always has the
final say over the handful of values :class:`Settings` exposes::

    policy  {"chunking": {"chunk_size": 800}}
    yaml    {"chunking": {"chunk_overlap": 100}}
    result  {"chunking": {"chunk_size": 800, "chunk_overlap": 100}}
"""

from pathlib import Path

import yaml

from docqa.config.settings import Settings

# Used when config.yaml is missing or leaves a section out.
_DEFAULT_POLICY: dict = {
    "extraction": {"min_text_length": 50},
    "chunking": {"chunk_size": 800, "chunk_overlap": 200},
    "embedding": {"concurrency": 4},
    "vector_index": {"distance_metric": "cosine", "upsert_batch_size": 100},
    "retrieval": {"top_k": 5, "score_threshold": 0.7},
    "quota": {"free_tier": {"pdf_uploads": 1, "question_count": 4}},
    "upload": {"max_file_size_mb": 10, "allowed_content_types": ["application/pdf"]},
    "synthesis": {"temperature": 0.3, "max_tokens": 1000},
}


def load_config(path: str | None = None, settings: Settings | None = None) -> dict:
    """Resolve the full configuration dict.

    Parameters
    ----------
    path:
        YAML file to read; ``settings.config_path`` when omitted.  A missing
        file is not an error.
    settings:
        Source of the environment layer.  Built from the process
        environment when omitted.
    """
    settings = settings or Settings()

    resolved = _copy_policy(_DEFAULT_POLICY)
    _deep_merge(resolved, _read_yaml(Path(path or settings.config_path)))
    _deep_merge(resolved, _environment_layer(settings))
    return resolved


def _read_yaml(config_path: Path) -> dict:
    if not config_path.is_file():
        return {}
    return yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}


def _environment_layer(settings: Settings) -> dict:
    return {
        "app": {"host": settings.app_host, "port": settings.app_port, "env": settings.app_env},
        "extraction": {"ocr_enabled": settings.ocr_enabled},
        "embedding": {"dimension": settings.embedding_dimension},
        "vector_index": {
            "persist_dir": settings.chromadb_persist_dir,
            "collection": settings.chromadb_collection,
        },
        "persistence": {"database_path": settings.database_path},
        "providers": {
            "timeout_seconds": settings.provider_timeout_seconds,
            "max_attempts": settings.provider_max_attempts,
            "retry_backoff_seconds": settings.provider_retry_backoff_seconds,
            "available_llm_providers": settings.get_available_llm_providers(),
        },
        "logging": {"level": settings.log_level},
    }


def _copy_policy(policy: dict) -> dict:
    return {
        key: _copy_policy(value) if isinstance(value, dict) else value
        for key, value in policy.items()
    }


def _deep_merge(base: dict, overrides: dict) -> None:
    """Merge *overrides* into *base* in place, descending into nested dicts."""
    for key, value in overrides.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _deep_merge(current, value)
        else:
            base[key] = value
