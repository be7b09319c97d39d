"""
Shared pytest fixtures for vectordoc tests.

Provides a recording transport so collection tests never touch the network.
"""

from typing import Any

import pytest

from vectordoc.config import ClientConfig


class RecordingTransport:
    """
    Transport stand-in that records every envelope it is sent.

    Responses are canned per path; a path without one gets ``{"code": 0}``.
    An exception instance given as a response is raised instead.
    """

    def __init__(self, responses: dict[str, Any] | None = None, config: ClientConfig | None = None):
        self.responses = responses or {}
        self.config = config
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def request(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((path, payload))
        response = self.responses.get(path, {"code": 0})
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True

    @property
    def last_payload(self) -> dict[str, Any]:
        return self.calls[-1][1]


@pytest.fixture
def transport():
    """A fresh RecordingTransport with no canned responses."""
    return RecordingTransport()


@pytest.fixture
def config():
    """A valid config pointing at a local store."""
    return ClientConfig(url="http://localhost:8100", username="root", key="secret")


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    """Keep VECTORDOC_* settings from the developer's shell out of tests."""
    import os
    for var in list(os.environ):
        if var.startswith("VECTORDOC_"):
            monkeypatch.delenv(var, raising=False)
