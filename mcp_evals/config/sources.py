"""Evaluation config sources.

Two kinds of source are supported: a Python module defining evaluation
functions (native) and a YAML document of prompts (declarative). Both are
normalized into an EvalConfig.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from .declarative import ModelFactory, declarative_to_eval_config, load_declarative_config
from ..core.models import ChatModel, create_model
from ..core.runner import LoopLimits
from ..core.types import EvalConfig
from ..utils.constants import DEFAULT_MODEL_NAME, DEFAULT_MODEL_PROVIDER
from ..utils.exceptions import ConfigError

logger = logging.getLogger(__name__)

DECLARATIVE_SUFFIXES = (".yaml", ".yml")


class ConfigSourceKind(str, Enum):
    NATIVE = "native"
    DECLARATIVE = "declarative"


@dataclass(frozen=True)
class ConfigSource:
    kind: ConfigSourceKind
    path: Path

    @classmethod
    def from_path(cls, path: str | Path) -> "ConfigSource":
        """Pick the source kind from the file extension."""
        path = Path(path)
        if path.suffix.lower() in DECLARATIVE_SUFFIXES:
            return cls(ConfigSourceKind.DECLARATIVE, path)
        return cls(ConfigSourceKind.NATIVE, path)


def _import_module(path: Path):
    if not path.is_file():
        raise ConfigError(f"Evaluation config not found: {path}")
    spec = importlib.util.spec_from_file_location(f"mcp_evals_config_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ConfigError(f"Cannot import evaluation config: {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    try:
        spec.loader.exec_module(module)
    except ConfigError:
        sys.modules.pop(spec.name, None)
        raise
    except Exception as e:
        sys.modules.pop(spec.name, None)
        raise ConfigError(f"Failed to import evaluation config {path}: {type(e).__name__}: {e}") from e
    return module


def load_native_config(
    path: str | Path,
    model_factory: ModelFactory = create_model,
) -> EvalConfig:
    """Load an EvalConfig from a Python module.

    The module defines either ``config`` (an EvalConfig) or an ``evals`` list
    with an optional ``model``; without a model the default one is created.

    Raises:
        ConfigError: If the module cannot be imported or defines neither
    """
    path = Path(path)
    module = _import_module(path)

    config = getattr(module, "config", None)
    if isinstance(config, EvalConfig):
        return config
    if config is not None:
        raise ConfigError(f"{path}: 'config' must be an EvalConfig, got {type(config).__name__}")

    evals = getattr(module, "evals", None)
    if evals is None:
        raise ConfigError(f"{path} must define 'config' (an EvalConfig) or an 'evals' list")
    if not isinstance(evals, (list, tuple)):
        raise ConfigError(f"{path}: 'evals' must be a list, got {type(evals).__name__}")

    model = getattr(module, "model", None)
    if model is None:
        model = model_factory(DEFAULT_MODEL_PROVIDER, DEFAULT_MODEL_NAME, None)
    elif not isinstance(model, ChatModel):
        raise ConfigError(f"{path}: 'model' must be a ChatModel, got {type(model).__name__}")
    return EvalConfig(model=model, evals=list(evals))


def _load_declarative(
    path: Path,
    model_factory: ModelFactory,
    limits: Optional[LoopLimits],
) -> EvalConfig:
    doc = load_declarative_config(path)
    return declarative_to_eval_config(doc, model_factory=model_factory, default_limits=limits)


def _load_native(
    path: Path,
    model_factory: ModelFactory,
    limits: Optional[LoopLimits],
) -> EvalConfig:
    return load_native_config(path, model_factory=model_factory)


_LOADERS: Dict[ConfigSourceKind, Callable[[Path, ModelFactory, Optional[LoopLimits]], EvalConfig]] = {
    ConfigSourceKind.NATIVE: _load_native,
    ConfigSourceKind.DECLARATIVE: _load_declarative,
}


def load_eval_config(
    source: ConfigSource | str | Path,
    *,
    model_factory: ModelFactory = create_model,
    limits: Optional[LoopLimits] = None,
) -> EvalConfig:
    """Normalize a config source into an EvalConfig.

    Args:
        source: A ConfigSource, or a path whose extension picks the kind
        model_factory: Builds models named by declarative documents
        limits: Agent-loop limits for declarative prompts without their own

    Raises:
        ConfigError: If the source cannot be loaded
    """
    if not isinstance(source, ConfigSource):
        source = ConfigSource.from_path(source)
    logger.info("Loading %s evaluation config from %s", source.kind.value, source.path)
    config = _LOADERS[source.kind](source.path, model_factory, limits)
    logger.info("Loaded %d evaluations: %s", len(config.evals), ", ".join(config.names))
    return config
