from __future__ import annotations

import pytest
import yaml
from typer.testing import CliRunner

from longscript.cli.app import app
from longscript.cli.generate import load_brief
from longscript.config import load_config

runner = CliRunner()


def init_mock(tmp_path):
    config_dir, workspace = tmp_path / "cfg", tmp_path / "ws"
    result = runner.invoke(
        app, ["init", "--config-dir", str(config_dir), "--workspace", str(workspace), "--provider", "mock"]
    )
    return result, config_dir / "config.yaml", workspace


def test_estimate(tmp_path):
    result = runner.invoke(app, ["estimate", "--minutes", "5", "--config", str(tmp_path / "none.yaml")])
    assert result.exit_code == 0
    assert "715" in result.output
    assert "650" in result.output


def test_init_writes_config(tmp_path):
    result, config_path, workspace = init_mock(tmp_path)
    assert result.exit_code == 0
    assert load_config(config_path).llm.provider == "mock"
    assert workspace.is_dir()

    again, _, _ = init_mock(tmp_path)
    assert again.exit_code == 1


def test_generate_writes_run_files(tmp_path, short_brief):
    _, config_path, workspace = init_mock(tmp_path)
    brief_path = tmp_path / "brief.yaml"
    brief_path.write_text(yaml.safe_dump(short_brief.model_dump(mode="json")))
    output = tmp_path / "out" / "script.md"

    result = runner.invoke(app, ["generate", str(brief_path), "--config", str(config_path), "-o", str(output)])
    assert result.exit_code == 0, result.output
    assert '"creditsUsed": 2' in result.output
    assert len(list(workspace.glob("runs/*/*/script.txt"))) == 1
    assert "## Tags" in output.read_text()


def test_generate_fails_without_credits(tmp_path, short_brief):
    _, config_path, workspace = init_mock(tmp_path)
    brief_path = tmp_path / "brief.yaml"
    brief_path.write_text(yaml.safe_dump(short_brief.model_dump(mode="json")))

    result = runner.invoke(app, ["generate", str(brief_path), "--config", str(config_path), "--credits", "1"])
    assert result.exit_code == 1
    assert list(workspace.glob("runs/*/*/script.txt")) == []


def test_load_brief_rejects_non_mapping(tmp_path):
    path = tmp_path / "brief.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError, match="mapping"):
        load_brief(path)
