"""Configuration loader."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .models import ConfigModel

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "longscript" / "config.yaml"


def _with_secret(settings: Dict[str, Any], key: str, env_key: str) -> Dict[str, Any]:
    """Fill ``settings[key]`` from the environment variable named by ``settings[env_key]``."""
    env_name = settings.get(env_key)
    if env_name and os.environ.get(env_name):
        settings[key] = os.environ[env_name]
    return settings


class Config:
    """Configuration manager: lazily loaded settings plus workspace paths."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """Initialize config manager; ``LONGSCRIPT_CONFIG`` overrides the default path."""
        if config_path is None:
            config_path = Path(os.environ.get("LONGSCRIPT_CONFIG", DEFAULT_CONFIG_PATH))
        self.config_path = config_path
        self._config: Optional[ConfigModel] = None

    @classmethod
    def from_model(cls, model: ConfigModel, config_path: Optional[Path] = None) -> "Config":
        """Wrap an already-built config model."""
        config = cls(config_path)
        config._config = model
        return config

    @classmethod
    def load_or_default(cls, config_path: Optional[Path] = None) -> "Config":
        """Load the config file if present, otherwise use defaults."""
        config = cls(config_path)
        if not config.config_path.exists():
            config._config = ConfigModel()
        return config

    @property
    def config(self) -> ConfigModel:
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    @property
    def workspace_root(self) -> Path:
        """Root for generated scripts and run statistics, created on first use."""
        path = Path(self.config.workspace_root).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_run_dir(self, run_date: str) -> Path:
        """``<workspace>/runs/<YYYY-MM-DD>``, holding one directory per script."""
        run_dir = self.workspace_root / "runs" / run_date
        run_dir.mkdir(parents=True, exist_ok=True)
        return run_dir

    def get_db_config(self) -> Optional[Dict[str, Any]]:
        """Postgres settings with the password resolved, or None when Postgres is not configured."""
        if self.config.postgres is None:
            return None
        return _with_secret(self.config.postgres.model_dump(), "password", "password_env")

    def get_llm_config(self) -> Dict[str, Any]:
        """LLM settings with the API key resolved from ``api_key_env``."""
        return _with_secret(self.config.llm.model_dump(), "api_key", "api_key_env")


def load_config(config_path: Path) -> ConfigModel:
    """
    Load configuration from a YAML file.

    Raises:
        FileNotFoundError: No file at ``config_path``
        ValueError: The YAML is malformed or a policy value is out of range
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}
        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Write configuration as YAML, keeping field order."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
