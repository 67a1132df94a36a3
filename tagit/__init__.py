"""tagit: keep a Consul service's tags in sync with a script's output.

Every interval the configured script runs; each whitespace separated word it
prints becomes a ``<prefix>-<word>`` tag on the service. Tags without that
prefix, and every other field of the registration, are left as they are.
"""
from __future__ import annotations

from .consul import ConsulClient, Registration
from .errors import (
    CommandTimeout,
    ConfigError,
    ExecError,
    ExecutionFailed,
    InvalidCommand,
    RegistryError,
    RegistryUnavailable,
    ServiceNotFound,
    TagitError,
)
from .executor import CmdExecutor
from .tagger import TagIt

__all__ = [
    "CmdExecutor",
    "CommandTimeout",
    "ConfigError",
    "ConsulClient",
    "ExecError",
    "ExecutionFailed",
    "InvalidCommand",
    "Registration",
    "RegistryError",
    "RegistryUnavailable",
    "ServiceNotFound",
    "TagIt",
    "TagitError",
]
