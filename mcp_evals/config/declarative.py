"""Declarative (YAML) evaluation documents.

A document names a model and a list of prompts::

    model:
      provider: openai        # openai | anthropic
      name: gpt-4o
    grader:                   # optional, defaults to the model above
      provider: anthropic
      name: claude-sonnet-4-5
    limits:                   # optional
      max_iterations: 10
      time_limit_s: 60
    evals:
      - name: weather
        description: Looks up the weather
        prompt: What is the weather in New York?
        expected_result: Mentions the temperature   # optional

Each prompt becomes an agent-loop-then-grade evaluation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, List, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.models import ChatModel, create_model
from ..core.runner import LoopLimits, prompt_eval
from ..core.types import EvalConfig
from ..utils.constants import DEFAULT_MODEL_NAME, DEFAULT_MODEL_PROVIDER
from ..utils.exceptions import ConfigError

logger = logging.getLogger(__name__)

ModelFactory = Callable[[str, str, Optional[str]], ChatModel]


class ModelSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    provider: Literal["openai", "anthropic"]
    name: str = Field(min_length=1)
    api_key: Optional[str] = None


class LimitsSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_iterations: Optional[int] = Field(default=None, ge=1)
    time_limit_s: Optional[float] = Field(default=None, gt=0)


class DeclarativeEval(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    prompt: str = Field(min_length=1)
    expected_result: Optional[str] = None


class DeclarativeConfig(BaseModel):
    model: Optional[ModelSpec] = None
    grader: Optional[ModelSpec] = None
    limits: LimitsSpec = Field(default_factory=LimitsSpec)
    evals: List[DeclarativeEval] = Field(min_length=1)


def _describe(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'document'}: {err['msg']}" for err in e.errors()
    )


def parse_declarative_config(data: Any) -> DeclarativeConfig:
    """Validate a parsed document.

    Raises:
        ConfigError: If the document is not a mapping with a valid ``evals`` list
    """
    if not isinstance(data, Mapping):
        raise ConfigError('Invalid YAML config: must be a mapping with an "evals" array')
    if not isinstance(data.get("evals"), list):
        raise ConfigError('Invalid YAML config: must have an "evals" array')
    try:
        return DeclarativeConfig.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid YAML config: {_describe(e)}") from e


def load_declarative_config(path: str | Path) -> DeclarativeConfig:
    """Read and validate a YAML document.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to load YAML config {path}: {e}") from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to load YAML config {path}: {e}") from e
    return parse_declarative_config(data)


def declarative_to_eval_config(
    doc: DeclarativeConfig,
    model_factory: ModelFactory = create_model,
    default_limits: Optional[LoopLimits] = None,
) -> EvalConfig:
    """Adapt a declarative document into an EvalConfig of prompt evaluations."""
    if doc.model is not None:
        model = model_factory(doc.model.provider, doc.model.name, doc.model.api_key)
    else:
        model = model_factory(DEFAULT_MODEL_PROVIDER, DEFAULT_MODEL_NAME, None)

    grader_model = None
    if doc.grader is not None:
        grader_model = model_factory(doc.grader.provider, doc.grader.name, doc.grader.api_key)

    limits = LoopLimits() if default_limits is None else LoopLimits(**vars(default_limits))
    if doc.limits.max_iterations is not None:
        limits.max_iterations = doc.limits.max_iterations
    if doc.limits.time_limit_s is not None:
        limits.time_limit_s = doc.limits.time_limit_s

    evals = [
        prompt_eval(
            item.name,
            item.description,
            item.prompt,
            grader_model=grader_model,
            expected_result=item.expected_result,
            limits=limits,
        )
        for item in doc.evals
    ]
    logger.debug("Adapted %d declarative evals for model %s", len(evals), getattr(model, "name", model))
    return EvalConfig(model=model, evals=evals)
