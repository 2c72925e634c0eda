"""Unit tests for Settings and the layered YAML config loader."""

from __future__ import annotations

from pathlib import Path

import yaml

from docqa.config.loader import _deep_merge, load_config
from docqa.config.settings import Settings

_REPO_CONFIG = Path(__file__).resolve().parents[2] / "config" / "config.yaml"


def _settings(**overrides) -> Settings:
    defaults = {"openai_api_key": "", "ollama_base_url": "http://localhost:11434"}
    defaults.update(overrides)
    return Settings(**defaults)


class TestSettings:
    def test_defaults(self) -> None:
        settings = _settings()
        assert settings.embedding_dimension == 768
        assert settings.chromadb_collection == "legal_documents"
        assert settings.ocr_enabled is True

    def test_available_llm_providers(self) -> None:
        assert _settings().get_available_llm_providers() == ["ollama"]
        assert _settings(openai_api_key="sk-x").get_available_llm_providers() == [
            "openai",
            "ollama",
        ]

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("OCR_ENABLED", "false")
        monkeypatch.setenv("EMBEDDING_DIMENSION", "384")
        settings = Settings()
        assert settings.ocr_enabled is False
        assert settings.embedding_dimension == 384


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path) -> None:
        config = load_config(path=str(tmp_path / "absent.yaml"), settings=_settings())

        assert config["chunking"] == {"chunk_size": 800, "chunk_overlap": 200}
        assert config["retrieval"] == {"top_k": 5, "score_threshold": 0.7}
        assert config["quota"]["free_tier"] == {"pdf_uploads": 1, "question_count": 4}
        assert config["upload"]["max_file_size_mb"] == 10

    def test_repository_config_matches_defaults(self) -> None:
        config = load_config(path=str(_REPO_CONFIG), settings=_settings())

        assert config["vector_index"]["distance_metric"] == "cosine"
        assert config["vector_index"]["upsert_batch_size"] == 100
        assert config["extraction"]["min_text_length"] == 50
        assert config["synthesis"] == {"temperature": 0.3, "max_tokens": 1000}

    def test_yaml_overrides_defaults(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"retrieval": {"top_k": 8}, "quota": {"free_tier": {"question_count": 10}}}))

        config = load_config(path=str(path), settings=_settings())

        assert config["retrieval"] == {"top_k": 8, "score_threshold": 0.7}
        assert config["quota"]["free_tier"] == {"pdf_uploads": 1, "question_count": 10}

    def test_environment_wins_over_yaml(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"extraction": {"ocr_enabled": True}}))

        config = load_config(path=str(path), settings=_settings(ocr_enabled=False))

        assert config["extraction"]["ocr_enabled"] is False
        assert config["extraction"]["min_text_length"] == 50

    def test_settings_sections_present(self, tmp_path) -> None:
        settings = _settings(database_path=str(tmp_path / "x.db"), provider_max_attempts=5)

        config = load_config(path=str(tmp_path / "absent.yaml"), settings=settings)

        assert config["persistence"]["database_path"] == str(tmp_path / "x.db")
        assert config["providers"]["max_attempts"] == 5
        assert config["embedding"]["dimension"] == 768

    def test_defaults_not_mutated_between_calls(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"chunking": {"chunk_size": 300}}))
        load_config(path=str(path), settings=_settings())

        config = load_config(path=str(tmp_path / "absent.yaml"), settings=_settings())

        assert config["chunking"]["chunk_size"] == 800


def test_deep_merge_nested() -> None:
    base = {"a": {"b": 1, "c": 2}, "d": 1}
    _deep_merge(base, {"a": {"c": 3}, "e": 4})
    assert base == {"a": {"b": 1, "c": 3}, "d": 1, "e": 4}
