"""Unit test environment helpers."""

import os

import pytest

from tests._support.fakes import FakeConnection, FakeDatabase


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Keep unit tests independent of the caller's SCHEMA_SYNC_/OTEL environment."""
    for name in list(os.environ):
        if name.startswith("SCHEMA_SYNC_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT", raising=False)
    yield


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def fake_db(fake_conn):
    return FakeDatabase(fake_conn)
