"""Configuration management for longscript."""

from .loader import DEFAULT_CONFIG_PATH, Config, load_config, save_config
from .models import (
    ConfigModel,
    CreditPolicy,
    GenerationPolicy,
    LLMConfig,
    PostgresConfig,
    RateLimitConfig,
    ResearchPolicy,
    ResearchRequirement,
)

__all__ = [
    "Config",
    "ConfigModel",
    "CreditPolicy",
    "DEFAULT_CONFIG_PATH",
    "GenerationPolicy",
    "LLMConfig",
    "PostgresConfig",
    "RateLimitConfig",
    "ResearchPolicy",
    "ResearchRequirement",
    "load_config",
    "save_config",
]
