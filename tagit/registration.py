from __future__ import annotations

from typing import Iterable, Protocol

from .consul import Registration
from .errors import ServiceNotFound


class ServiceRegistry(Protocol):
    def get_service(self, service_id: str) -> Registration | None: ...

    def register_service(self, registration: Registration) -> None: ...


class RegistrationAdapter:
    """Reads a registration and writes it back with a different tag list."""

    def __init__(self, registry: ServiceRegistry):
        self.registry = registry

    def fetch(self, service_id: str) -> Registration:
        service = self.registry.get_service(service_id)
        if service is None:
            raise ServiceNotFound(f"service {service_id} not found")
        return service

    def apply(self, registration: Registration, new_tags: Iterable[str]) -> Registration:
        """Re-register ``registration`` with ``new_tags``.

        The agent API only replaces whole records, so every other field is
        carried over from the fetched snapshot.
        """
        updated = registration.model_copy(update={"tags": list(new_tags)})
        self.registry.register_service(updated)
        return updated
