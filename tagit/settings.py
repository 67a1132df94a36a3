from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError


def _env_str(*names: str, default: str | None = None) -> str | None:
    for name in names:
        raw = os.getenv(name)
        if raw:
            return raw
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Registry
    consul_addr: str = _env_str("TAGIT_CONSUL_ADDR", "CONSUL_HTTP_ADDR", default="127.0.0.1:8500")
    token: str | None = _env_str("TAGIT_TOKEN", "CONSUL_HTTP_TOKEN")
    consul_timeout_s: int = _env_int("TAGIT_CONSUL_TIMEOUT_S", 10)

    # Tagging
    tag_prefix: str = os.getenv("TAGIT_TAG_PREFIX", "tagged")
    interval: str = os.getenv("TAGIT_INTERVAL", "60s")
    script_timeout_s: int = _env_int("TAGIT_SCRIPT_TIMEOUT_S", 30)

    log_level: str = os.getenv("TAGIT_LOG_LEVEL", "INFO")


settings = Settings()


DEFAULT_CONFIG_PATH = Path("~/.tagit.yaml")

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_interval(raw: str | int | float) -> float:
    """Parse a duration like ``5s``, ``1m30s`` or ``250ms`` into seconds.

    A bare number is taken as seconds. The result must be positive.
    """
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        seconds = float(raw)
    else:
        text = str(raw or "").strip()
        if not text or text == "0":
            raise ConfigError("interval is required and cannot be empty or zero")
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for m in _DURATION_PART_RE.finditer(text):
                if m.start() != pos:
                    break
                seconds += float(m.group(1)) * _UNIT_SECONDS[m.group(2)]
                pos = m.end()
            if pos != len(text):
                raise ConfigError(f"invalid interval {text!r}") from None
    if seconds <= 0:
        raise ConfigError(f"interval must be positive, got {raw!r}")
    return seconds


def load_config_file(path: str | os.PathLike[str] | None) -> dict[str, Any]:
    """Read an optional YAML config file keyed by long flag names.

    With no explicit path, ``~/.tagit.yaml`` is used if it exists.
    """
    explicit = path is not None
    p = Path(path if explicit else DEFAULT_CONFIG_PATH).expanduser()
    if not p.exists():
        if explicit:
            raise ConfigError(f"config file not found: {p}")
        return {}

    try:
        with p.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in config file {p}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {p} must be a mapping, got {type(data).__name__}")
    return {str(k).replace("_", "-"): v for k, v in data.items()}
