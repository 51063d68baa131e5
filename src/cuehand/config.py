"""Cuehand configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cuehand.models import (
    DEFAULT_BUDGET_USD,
    DEFAULT_MAX_TOKENS,
    DEFAULT_NOT_FOUND_POLICY,
    DEFAULT_SETTLE_SECONDS,
    DEFAULT_STRATEGY,
    MODELS,
    NOT_FOUND_POLICIES,
    STRATEGIES,
)


class CuehandError(Exception):
    """Base class for every error raised by Cuehand."""

    pass


class CuehandConfigError(CuehandError):
    """Raised when configuration is invalid or missing."""

    pass


def _flag(data: dict[str, Any], key: str) -> bool:
    """Read a YAML boolean; quoted strings like "false" are rejected."""
    value = data[key]
    if not isinstance(value, bool):
        raise CuehandConfigError(
            f"{key} must be true or false, got {value!r}\n\nTo fix: write {key}: true or {key}: false without quotes"
        )
    return value


@dataclass
class CuehandConfig:
    """Configuration for a Cuehand session."""

    project_dir: Path = field(default_factory=lambda: Path(".cuehand"))

    # API
    anthropic_api_key: str = field(default="", repr=False)
    model_intent: str = MODELS["intent"]
    model_extraction: str = MODELS["extraction"]
    max_tokens: int = DEFAULT_MAX_TOKENS

    # Behavior
    strategy: str = DEFAULT_STRATEGY
    on_not_found: str = DEFAULT_NOT_FOUND_POLICY
    settle_seconds: float = DEFAULT_SETTLE_SECONDS
    budget: float = DEFAULT_BUDGET_USD

    # Content sanitation
    strip_svg: bool = True
    preserve_layout: bool = False

    @classmethod
    def from_file(cls, config_path: Path) -> CuehandConfig:
        """Load config from a YAML file."""
        if not config_path.exists():
            raise CuehandConfigError(
                f"Config file not found: {config_path}\n\nTo fix: create it or pass the options directly"
            )
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise CuehandConfigError(f"Config file is not valid YAML: {config_path}\n\n{exc}") from exc
        if not isinstance(data, dict):
            raise CuehandConfigError(f"Config file must contain a mapping: {config_path}")
        return cls._from_dict(data, config_path.parent)

    @classmethod
    def load(cls, project_dir: Path) -> CuehandConfig:
        """Load ``project_dir/config.yaml``, or defaults when there is none."""
        config_path = project_dir / "config.yaml"
        if config_path.is_file():
            return cls.from_file(config_path)
        return cls(project_dir=project_dir)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], project_dir: Path) -> CuehandConfig:
        """Create config from a dictionary."""
        config = cls()
        config.project_dir = project_dir

        api_key = data.get("anthropic_api_key") or data.get("api_key")
        if api_key:
            config.anthropic_api_key = str(api_key)

        models = data.get("models") or {}
        if "intent" in models:
            config.model_intent = str(models["intent"])
        if "extraction" in models:
            config.model_extraction = str(models["extraction"])
        if "model" in data:
            # A single model overrides both tiers
            config.model_intent = config.model_extraction = str(data["model"])

        if "max_tokens" in data:
            config.max_tokens = int(data["max_tokens"])
        if "strategy" in data:
            config.strategy = str(data["strategy"]).lower()
        if "on_not_found" in data:
            config.on_not_found = str(data["on_not_found"]).lower()
        if "settle_seconds" in data:
            config.settle_seconds = float(data["settle_seconds"])
        if "budget" in data:
            config.budget = float(data["budget"])
        if "strip_svg" in data:
            config.strip_svg = _flag(data, "strip_svg")
        if "preserve_layout" in data:
            config.preserve_layout = _flag(data, "preserve_layout")

        config.validate()
        return config

    def validate(self) -> None:
        """Check enumerated and numeric settings."""
        if self.strategy not in STRATEGIES:
            raise CuehandConfigError(
                f"Unknown strategy: {self.strategy!r}\n\nTo fix: use one of {', '.join(STRATEGIES)}"
            )
        if self.on_not_found not in NOT_FOUND_POLICIES:
            raise CuehandConfigError(
                f"Unknown on_not_found policy: {self.on_not_found!r}\n\n"
                f"To fix: use one of {', '.join(NOT_FOUND_POLICIES)}"
            )
        if self.settle_seconds < 0:
            raise CuehandConfigError("settle_seconds must not be negative")
        if self.budget < 0:
            raise CuehandConfigError("budget must not be negative (0 disables the cap)")
        if self.max_tokens <= 0:
            raise CuehandConfigError("max_tokens must be positive")
