from __future__ import annotations

import shlex
from dataclasses import dataclass, fields

UNIT_TEMPLATE = """
[Unit]
Description=Tagit {service_id}
After=network.target
After=network-online.target
Wants=network-online.target

[Service]
Type=simple
ExecStart={exec_start}
Environment=HOME=/var/run/tagit/{service_id}
Restart=always
User={user}
Group={group}

[Install]
WantedBy=multi-user.target
"""

REQUIRED_FIELDS = ("service_id", "script", "tag_prefix", "interval", "user", "group")
OPTIONAL_FIELDS = ("token", "consul_addr")


@dataclass(frozen=True)
class UnitFields:
    service_id: str = ""
    script: str = ""
    tag_prefix: str = ""
    interval: str = ""
    user: str = ""
    group: str = ""
    token: str = ""
    consul_addr: str = ""

    @classmethod
    def from_flags(cls, flags: dict[str, str | None]) -> "UnitFields":
        """Build from ``--flag-name`` style keys, e.g. ``{"service-id": "web"}``."""
        names = {f.name for f in fields(cls)}
        values = {k.replace("-", "_"): v or "" for k, v in flags.items()}
        unit = cls(**{k: v for k, v in values.items() if k in names})
        validate_fields(unit)
        return unit


def validate_fields(unit: UnitFields) -> None:
    missing = [name for name in REQUIRED_FIELDS if not getattr(unit, name)]
    if missing:
        raise ValueError(f"missing required fields: {', '.join(missing)}")


def render_unit(unit: UnitFields) -> str:
    validate_fields(unit)
    # The script may contain spaces; systemd splits ExecStart with shell-like quoting.
    args = ["/usr/bin/tagit", "run", "-s", unit.service_id, "-x", unit.script, "-p", unit.tag_prefix, "-i", unit.interval]
    if unit.token:
        args += ["-t", unit.token]
    if unit.consul_addr:
        args += ["-c", unit.consul_addr]
    return UNIT_TEMPLATE.format(
        service_id=unit.service_id,
        exec_start=shlex.join(args),
        user=unit.user,
        group=unit.group,
    )
