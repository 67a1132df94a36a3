from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from .errors import RegistryUnavailable


class AgentWeights(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    passing: int = Field(1, alias="Passing")
    warning: int = Field(1, alias="Warning")


class Registration(BaseModel):
    """A service as the local Consul agent reports it (``AgentService``)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., alias="ID")
    name: str = Field(..., alias="Service", description="Logical service name")
    address: str = Field("", alias="Address")
    port: int = Field(0, alias="Port")
    tags: list[str] = Field(default_factory=list, alias="Tags")
    meta: dict[str, str] = Field(default_factory=dict, alias="Meta")
    weights: AgentWeights = Field(default_factory=AgentWeights, alias="Weights")
    kind: str = Field("", alias="Kind")

    @field_validator("tags", "meta", "weights", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any, info: ValidationInfo) -> Any:
        # Consul encodes empty tag lists and metadata as null.
        if v is None:
            return {"tags": [], "meta": {}, "weights": {}}[info.field_name]
        return v

    @field_validator("kind", mode="before")
    @classmethod
    def _null_kind(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_payload(self) -> dict[str, Any]:
        """Body for ``PUT /v1/agent/service/register``."""
        payload: dict[str, Any] = {
            "ID": self.id,
            "Name": self.name,
            "Tags": list(self.tags),
            "Port": self.port,
            "Address": self.address,
            "Meta": dict(self.meta),
            "Weights": {"Passing": self.weights.passing, "Warning": self.weights.warning},
        }
        if self.kind:
            payload["Kind"] = self.kind
        return payload


def _base_url(address: str) -> str:
    address = address.strip().rstrip("/")
    if "://" not in address:
        address = f"http://{address}"
    return address


class ConsulClient:
    """The two agent endpoints tagit needs, over HTTP."""

    def __init__(
        self,
        address: str = "127.0.0.1:8500",
        token: str | None = None,
        timeout_s: float = 10.0,
        http: httpx.Client | None = None,
    ):
        if not address or not address.strip():
            raise ValueError("consul address must not be empty")
        self.base_url = _base_url(address)
        try:
            httpx.URL(self.base_url)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid consul address {address!r}: {e}") from e
        self.token = token or None
        self._http = http or httpx.Client(timeout=timeout_s, follow_redirects=False)

    def close(self) -> None:
        self._http.close()

    def _headers(self) -> dict[str, str]:
        return {"X-Consul-Token": self.token} if self.token else {}

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            return self._http.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise RegistryUnavailable(f"{method} {url} failed: {type(e).__name__}: {e}") from e

    def get_service(self, service_id: str) -> Registration | None:
        """Return the agent's view of ``service_id``, or None if it is not registered."""
        resp = self._request("GET", f"/v1/agent/service/{quote(service_id, safe='')}")
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise RegistryUnavailable(f"error getting service {service_id}: HTTP {resp.status_code} {resp.text.strip()}")
        try:
            return Registration.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise RegistryUnavailable(f"unexpected response for service {service_id}: {e}") from e

    def register_service(self, registration: Registration) -> None:
        resp = self._request("PUT", "/v1/agent/service/register", json=registration.to_payload())
        if resp.status_code != 200:
            raise RegistryUnavailable(
                f"error registering service {registration.id}: HTTP {resp.status_code} {resp.text.strip()}"
            )
