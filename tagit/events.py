from __future__ import annotations

import logging
import sys
from typing import Any

logger = logging.getLogger("tagit")


def _fmt_value(v: Any) -> str:
    if isinstance(v, (list, tuple, set, frozenset)):
        v = "[" + " ".join(str(x) for x in v) + "]"
    s = str(v)
    if not s or any(c.isspace() for c in s) or '"' in s or "=" in s:
        return '"' + s.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return s


def log_event(level: str, message: str, service_id: str | None = None, **fields: Any) -> None:
    """Log ``message`` followed by ``key=value`` pairs.

    ``service_id`` goes first so every line about a service can be grepped the same way.
    """
    pairs: dict[str, Any] = {}
    if service_id is not None:
        pairs["service"] = service_id
    pairs.update(fields)
    text = message
    if pairs:
        text += " " + " ".join(f"{k}={_fmt_value(v)}" for k, v in pairs.items())
    lvl = logging.getLevelName(level.upper())
    logger.log(lvl if isinstance(lvl, int) else logging.INFO, text)


class TagitHandler(logging.StreamHandler):
    def __init__(self) -> None:
        super().__init__(sys.stderr)
        self.setFormatter(logging.Formatter("time=%(asctime)s level=%(levelname)s msg=%(message)s"))


def configure_logging(level: str = "INFO") -> None:
    lvl = logging.getLevelName(level.upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO
    if not any(isinstance(h, TagitHandler) for h in logger.handlers):
        logger.addHandler(TagitHandler())
    # Lines go to our handler only.
    logger.propagate = False
    logger.setLevel(lvl)
