"""
Protocol definitions for the transport behind a collection.

Implemented by:
- HttpClient (one httpx connection pool)
- ClientPool (round-robin over several HttpClients)
- test doubles recording the envelopes they are sent
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """Delivers a request envelope and returns the response envelope."""

    def request(self, path: str, payload: dict[str, Any]) -> dict[str, Any]: ...

    def close(self) -> None: ...
