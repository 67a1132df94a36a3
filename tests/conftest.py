from __future__ import annotations

import logging
from typing import Any

import pytest
from fastapi import FastAPI, HTTPException, Request
from fastapi.testclient import TestClient

from tagit.consul import ConsulClient, Registration
from tagit.events import TagitHandler


WEB_SERVICE: dict[str, Any] = {
    "ID": "web-1",
    "Service": "web",
    "Tags": ["existing-tag", "test-a", "test-b"],
    "Meta": {"version": "1.4.2", "team": "edge"},
    "Port": 8080,
    "Address": "10.0.0.5",
    "Weights": {"Passing": 10, "Warning": 1},
    "EnableTagOverride": False,
    "Datacenter": "dc1",
}


class FakeAgent:
    """In-memory stand-in for the Consul agent's service endpoints."""

    def __init__(self) -> None:
        self.services: dict[str, dict[str, Any]] = {}
        self.registrations: list[dict[str, Any]] = []
        self.required_token: str | None = None
        self.seen_tokens: list[str | None] = []


def make_agent_app(agent: FakeAgent) -> FastAPI:
    app = FastAPI()

    def _check_token(request: Request) -> None:
        token = request.headers.get("x-consul-token")
        agent.seen_tokens.append(token)
        if agent.required_token and token != agent.required_token:
            raise HTTPException(status_code=403, detail="ACL not found")

    @app.get("/v1/agent/service/{service_id}")
    def get_service(service_id: str, request: Request):
        _check_token(request)
        svc = agent.services.get(service_id)
        if svc is None:
            raise HTTPException(status_code=404, detail=f"unknown service ID: {service_id}")
        return svc

    @app.put("/v1/agent/service/register")
    async def register(request: Request):
        _check_token(request)
        body = await request.json()
        agent.registrations.append(body)
        agent.services[body["ID"]] = {
            "ID": body["ID"],
            "Service": body["Name"],
            "Tags": body.get("Tags"),
            "Meta": body.get("Meta"),
            "Port": body.get("Port", 0),
            "Address": body.get("Address", ""),
            "Weights": body.get("Weights"),
            "Kind": body.get("Kind", ""),
        }
        return None

    return app


class InMemoryRegistry:
    def __init__(self, *services: Registration) -> None:
        self.services = {s.id: s for s in services}
        self.writes: list[Registration] = []

    def get_service(self, service_id: str) -> Registration | None:
        return self.services.get(service_id)

    def register_service(self, registration: Registration) -> None:
        self.writes.append(registration)
        self.services[registration.id] = registration


class FakeExecutor:
    """Returns queued results in order; the last one repeats."""

    def __init__(self, *results: bytes | Exception) -> None:
        self.results = list(results) or [b""]
        self.calls: list[str] = []

    def execute(self, command: str) -> bytes:
        self.calls.append(command)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


def registration(**overrides: Any) -> Registration:
    data = dict(WEB_SERVICE)
    data.update(overrides)
    return Registration.model_validate(data)


@pytest.fixture
def agent() -> FakeAgent:
    a = FakeAgent()
    a.services["web-1"] = dict(WEB_SERVICE)
    return a


@pytest.fixture
def consul(agent):
    with TestClient(make_agent_app(agent)) as http:
        client = ConsulClient("http://testserver", http=http)
        yield client


@pytest.fixture
def registry() -> InMemoryRegistry:
    return InMemoryRegistry(registration())


@pytest.fixture(autouse=True)
def reset_tagit_logger():
    """Undo configure_logging() so caplog sees records in later tests."""
    logger = logging.getLogger("tagit")
    yield
    for h in [h for h in logger.handlers if isinstance(h, TagitHandler)]:
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
