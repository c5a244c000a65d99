from __future__ import annotations

import pytest

from longscript.config import Config, ConfigModel, GenerationPolicy, LLMConfig, load_config, save_config
from longscript.models import ModelTier


def test_save_and_load(tmp_path):
    path = tmp_path / "config.yaml"
    model = ConfigModel(workspace_root=str(tmp_path), llm=LLMConfig(provider="mock"))
    save_config(model, path)

    loaded = load_config(path)
    assert loaded.llm.provider == "mock"
    assert loaded.llm.model_for(ModelTier.PREMIUM) == "gpt-4.1"
    assert loaded.generation.words_per_minute == 130


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")
    assert Config.load_or_default(tmp_path / "absent.yaml").config.llm.provider == "openai"


def test_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("llm: [unclosed")
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_config(path)


def test_invalid_policy_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("generation:\n  tier1_expansion_target: 1.6\n  tier2_expansion_target: 1.5\n")
    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(path)


def test_grace_cannot_exceed_completeness_ratio():
    with pytest.raises(ValueError):
        GenerationPolicy(completeness_ratio=0.7, dedup_grace_ratio=0.75)


def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("LONGSCRIPT_KEY", "sk-test")
    config = Config.from_model(ConfigModel(llm=LLMConfig(api_key_env="LONGSCRIPT_KEY")))
    assert config.get_llm_config()["api_key"] == "sk-test"


def test_run_dir_created(mock_config):
    run_dir = mock_config.get_run_dir("2025-03-14")
    assert run_dir.is_dir()
    assert run_dir.parent.name == "runs"
