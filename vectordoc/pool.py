"""
Round-robin pool of HTTP clients.

Requests pick the next client from a shared counter without locking. A
client found closed is replaced under a lock, checked a second time once the
lock is held so that concurrent callers replace it only once. A closed pool
hands out nothing.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Callable

from .client import HttpClient
from .config import ClientConfig
from .errors import TransportError

logger = logging.getLogger(__name__)


class ClientPool:
    """
    ``pool_size`` equivalent clients, used in turn.

    Has the same ``request()`` surface as HttpClient, so collections can
    take either.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        factory: Callable[[ClientConfig], HttpClient] = HttpClient,
    ):
        config.validate()
        self._config = config
        self._factory = factory
        self._lock = threading.Lock()
        self._closed = False
        self._debug = config.debug
        # next() on itertools.count is atomic under the GIL
        self._counter = itertools.count()
        self._clients: list[HttpClient] = []
        try:
            for _ in range(config.pool_size):
                self._clients.append(factory(config))
        except Exception:
            for client in self._clients:
                client.close()
            raise

    @property
    def config(self) -> ClientConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._clients)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def get_client(self) -> HttpClient:
        """
        Return the next client, replacing it first if it has been closed.

        Raises:
            TransportError: If the pool itself has been closed
        """
        if self._closed:
            raise TransportError("client pool is closed")
        index = next(self._counter) % len(self._clients)
        client = self._clients[index]
        if not client.is_closed:
            return client

        with self._lock:
            if self._closed:
                raise TransportError("client pool is closed")
            client = self._clients[index]
            if client.is_closed:
                logger.info("Replacing closed client %d in pool", index)
                client = self._factory(self._config)
                client.debug(self._debug)
                self._clients[index] = client
        return client

    def request(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self.get_client().request(path, payload)

    def debug(self, enabled: bool) -> None:
        with self._lock:
            self._debug = enabled
            for client in self._clients:
                client.debug(enabled)

    def close(self) -> None:
        """Close every client; the pool cannot be used afterwards."""
        with self._lock:
            self._closed = True
            for client in self._clients:
                client.close()

    def __enter__(self) -> "ClientPool":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def connect(config: ClientConfig | None = None) -> HttpClient | ClientPool:
    """
    Open a transport for ``config`` (default: resolved from the environment).

    Returns a single HttpClient for ``pool_size == 1``, otherwise a pool.
    """
    if config is None:
        from .config import load_or_env
        config = load_or_env()
    if config.pool_size == 1:
        return HttpClient(config)
    return ClientPool(config)
