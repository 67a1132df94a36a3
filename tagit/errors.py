from __future__ import annotations


class TagitError(Exception):
    """Base class for every failure raised by tagit."""


class ConfigError(TagitError):
    pass


class ExecError(TagitError):
    """The probe command could not produce output."""


class InvalidCommand(ExecError):
    pass


class CommandTimeout(ExecError):
    pass


class ExecutionFailed(ExecError):
    def __init__(self, message: str, returncode: int | None = None, stderr: bytes = b""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class RegistryError(TagitError):
    """The service registry could not be read or written."""


class ServiceNotFound(RegistryError):
    pass


class RegistryUnavailable(RegistryError):
    pass
