"""API key lookup for Cuehand.

The key comes from the first source that has one, highest priority first:

1. the ``ANTHROPIC_API_KEY`` environment variable;
2. a ``.env`` file in the working directory;
3. the session's CuehandConfig (``anthropic_api_key`` in the project's
   ``config.yaml``, or set directly on the object);
4. the per-user ``~/.cuehand/config.yaml``, loaded through CuehandConfig too.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path

from cuehand.config import CuehandConfig, CuehandConfigError

logger = logging.getLogger("cuehand.credentials")

ENV_VAR = "ANTHROPIC_API_KEY"


@dataclasses.dataclass(frozen=True)
class ApiKey:
    """A resolved key plus a label naming where it was found."""

    value: str
    source: str


def global_config_path() -> Path:
    return Path.home() / ".cuehand" / "config.yaml"


def find_api_key(config: CuehandConfig | None = None) -> ApiKey | None:
    """Return the highest-priority key, or None when no source has one."""
    if value := os.environ.get(ENV_VAR):
        return ApiKey(value, f"env: {ENV_VAR}")

    if value := read_env_file(Path(".env")).get(ENV_VAR):
        return ApiKey(value, ".env file")

    if config is not None and config.anthropic_api_key:
        return ApiKey(config.anthropic_api_key, "config.yaml")

    global_path = global_config_path()
    if global_path.is_file():
        try:
            global_config = CuehandConfig.from_file(global_path)
        except CuehandConfigError as exc:
            logger.warning("Skipping %s: %s", global_path, exc)
        else:
            if global_config.anthropic_api_key:
                return ApiKey(global_config.anthropic_api_key, "~/.cuehand/config.yaml")
    return None


def resolve_api_key(config: CuehandConfig | None = None) -> str:
    """Like find_api_key(), but a missing key is a configuration error."""
    found = find_api_key(config)
    if found is None:
        raise CuehandConfigError(
            "ANTHROPIC_API_KEY not set\n\n"
            "Cuehand needs an Anthropic API key to resolve instructions.\n\n"
            "To fix:\n"
            "  export ANTHROPIC_API_KEY=sk-ant-your-key-here\n"
            "  or add anthropic_api_key to .cuehand/config.yaml"
        )
    logger.debug("Using API key from %s", found.source)
    return found.value


def mask_key(key: str) -> str:
    """Mask an API key for display. Shows first 7 and last 3 chars."""
    if len(key) <= 10:
        return "***"
    return f"{key[:7]}...{key[-3:]}"


def read_env_file(path: Path) -> dict[str, str]:
    """KEY=value pairs from a dotenv file; quotes are stripped, comments skipped."""
    if not path.is_file():
        return {}
    pairs: dict[str, str] = {}
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line.startswith("export "):
                line = line[len("export "):]
            if line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            pairs[key.strip()] = value.strip().strip("'\"")
    return pairs
