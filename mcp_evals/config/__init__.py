"""Evaluation config loading and runtime settings."""

from .declarative import (
    DeclarativeConfig,
    DeclarativeEval,
    LimitsSpec,
    ModelSpec,
    declarative_to_eval_config,
    load_declarative_config,
    parse_declarative_config,
)
from .settings import Settings
from .sources import ConfigSource, ConfigSourceKind, load_eval_config, load_native_config

__all__ = [
    "ConfigSource",
    "ConfigSourceKind",
    "DeclarativeConfig",
    "DeclarativeEval",
    "LimitsSpec",
    "ModelSpec",
    "Settings",
    "declarative_to_eval_config",
    "load_declarative_config",
    "load_eval_config",
    "load_native_config",
    "parse_declarative_config",
]
