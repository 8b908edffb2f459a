#!/usr/bin/env python3
"""
DIAGPACK SETTINGS - Optional YAML Defaults
------------------------------------------
Loads a small settings file so that recurring runs (cron jobs, support
runbooks) don't have to repeat every flag. CLI flags always win over the
file; the file wins over built-in defaults.

Lookup order: --config PATH, then $DIAGPACK_CONFIG, then ./diagpack.yaml.

Author: DiagPack Team
Date: 2026-10-18
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from diagpack.core.errors import ValidationError

logger = logging.getLogger("diagpack.settings")

ENV_VAR = "DIAGPACK_CONFIG"
DEFAULT_FILENAME = "diagpack.yaml"

KNOWN_KEYS = {
    "type", "namespace", "domain", "output", "logs", "max_pods",
    "max_containers", "include_secret", "non_interactive",
    "health_connect_timeout", "health_total_timeout",
}


def locate(explicit: Optional[str] = None, cwd: Optional[Path] = None) -> Optional[Path]:
    """Returns the settings file to use, or None when there is none."""
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ValidationError("config", f"Settings file not found: {path}")
        return path

    env_path = os.environ.get(ENV_VAR)
    if env_path:
        path = Path(env_path).expanduser()
        if not path.is_file():
            raise ValidationError("config", f"{ENV_VAR} points to a missing file: {path}")
        return path

    candidate = (cwd or Path.cwd()) / DEFAULT_FILENAME
    return candidate if candidate.is_file() else None


def load(path: Optional[Path]) -> Dict[str, Any]:
    """Parses the settings file into a plain dict of known keys."""
    if path is None:
        return {}

    yaml = YAML(typ="safe")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.load(f)
    except (OSError, YAMLError) as e:
        raise ValidationError("config", f"Unable to read settings file {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("config", f"Settings file {path} must contain a mapping at the top level")

    settings = {}
    for key, value in data.items():
        normalized = str(key).replace("-", "_")
        if normalized not in KNOWN_KEYS:
            logger.warning(f"Ignoring unknown setting '{key}' in {path}")
            continue
        settings[normalized] = value

    logger.info(f"Loaded {len(settings)} setting(s) from {path}")
    return settings
