"""Shared pytest fixtures for the zabbix-sender test suite."""

import threading

import pytest

from zabbix_sender.collector import MockCollector, accept_all
from zabbix_sender.protocol import DEFAULT_HEADER


@pytest.fixture()
def start_collector():
    """Return a factory that starts a MockCollector on an ephemeral port.

    The factory returns ``(collector, port)``. Every collector started
    through it is stopped at teardown.
    """
    started = []

    def _start(responder=accept_all, header=DEFAULT_HEADER):
        collector = MockCollector("127.0.0.1", 0, threading.Event(), responder, header)
        collector.start_in_background()
        started.append(collector)
        return collector, collector.server_address[1]

    yield _start

    for collector in started:
        collector.stop()


@pytest.fixture()
def clean_env(monkeypatch):
    """Remove every env var the config loader reads."""
    for name in (
        "ZABBIX_SERVER",
        "ZABBIX_SERVER_PORT",
        "SENDER_TIMEOUT",
        "PROTOCOL_HEADER",
        "PROTOCOL_VERSION",
    ):
        monkeypatch.delenv(name, raising=False)
