"""Provider API key loading.

Keys are read from the environment with this priority:
  1. Environment variables (highest, already set in shell)
  2. ~/.structured_agent/keys.env (user-level keys)
  3. .env in current directory (project-level)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Directory for user-level configuration
AGENT_HOME = Path.home() / ".structured_agent"
KEYS_FILE = AGENT_HOME / "keys.env"


def load_keys_env(files: list[Path] | None = None) -> None:
    """Load API keys from env files into os.environ.

    Existing env vars are NOT overwritten, and earlier files win over later
    ones.

    Args:
        files: Env files to read, in priority order. Defaults to
            ~/.structured_agent/keys.env then ./.env.
    """
    for env_file in files if files is not None else [KEYS_FILE, Path.cwd() / ".env"]:
        if env_file.is_file():
            _load_env_file(env_file)


def _load_env_file(path: Path) -> None:
    """Parse a simple KEY=VALUE .env file and set vars that aren't already set."""
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and not os.environ.get(key):
                os.environ[key] = value
                logger.debug("Loaded %s from %s", key, path)
    except OSError:
        logger.debug("Could not read %s", path)
