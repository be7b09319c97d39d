"""Tests for vectordoc.logging_config and the Transport protocol."""

import logging
import sys
from unittest.mock import patch

import pytest

from vectordoc.client import HttpClient
from vectordoc.logging_config import configure_quiet_mode, enable_debug_mode
from vectordoc.pool import ClientPool
from vectordoc.protocol import Transport

from conftest import RecordingTransport


@pytest.fixture
def restore_loggers():
    names = ("", "vectordoc", "httpx", "httpcore")
    saved = {n: (logging.getLogger(n).level, list(logging.getLogger(n).handlers)) for n in names}
    yield
    for n, (level, handlers) in saved.items():
        log = logging.getLogger(n)
        log.setLevel(level)
        log.handlers[:] = handlers


class TestLogging:
    def test_quiet_mode(self, restore_loggers):
        configure_quiet_mode()
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING
        configure_quiet_mode(False)
        assert logging.getLogger("httpx").level == logging.NOTSET

    def test_debug_mode(self, restore_loggers):
        enable_debug_mode()
        enable_debug_mode()
        assert logging.getLogger("vectordoc").level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.DEBUG
        added = [h for h in logging.getLogger().handlers
                 if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr]
        assert len(added) == 1

    def test_library_is_silent_by_default(self):
        handlers = logging.getLogger("vectordoc").handlers
        assert any(isinstance(h, logging.NullHandler) for h in handlers)


class TestTransportProtocol:
    def test_implementations(self, config):
        with patch("vectordoc.client.httpx.Client"):
            assert isinstance(HttpClient(config), Transport)
            assert isinstance(ClientPool(config), Transport)
        assert isinstance(RecordingTransport(), Transport)

    def test_rejects_other_objects(self):
        assert not isinstance(object(), Transport)
