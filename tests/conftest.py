"""Shared test fixtures for the userservice test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from userservice.api.app import create_app
from userservice.api.context import AppContext
from userservice.config.models.storage import StorageConfig
from userservice.config.settings import Settings, set_toml_config
from userservice.observability.telemetry import TelemetryProviders
from userservice.users.stores.inmemory import InMemoryUserStore


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            original = self.original_env[key]
            if original is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = original


@pytest.fixture
def env_override() -> Callable[[dict[str, str]], EnvOverrideContext]:
    """Temporarily set environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"USERSERVICE_DEBUG": "true"}):
                ...
    """
    return EnvOverrideContext


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate every test from ambient configuration.

    Clears the cached settings and the TOML layer, and removes database
    URLs inherited from the developer's shell.
    """
    from userservice.config import get_settings

    for var in ("DATABASE_URL", "USERSERVICE_DATABASE_URL", "USERSERVICE_ENV"):
        monkeypatch.delenv(var, raising=False)

    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Drop structlog configuration that may hold a captured stream."""
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def settings() -> Settings:
    """Settings for an in-memory service."""
    return Settings(storage=StorageConfig(backend="inmemory"))


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """Collects finished spans synchronously."""
    return InMemorySpanExporter()


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    """Collects metrics on demand."""
    return InMemoryMetricReader()


@pytest.fixture
def telemetry(
    span_exporter: InMemorySpanExporter,
    metric_reader: InMemoryMetricReader,
) -> Generator[TelemetryProviders, None, None]:
    """Tracer and meter providers backed by in-memory exporters."""
    tracer_provider = TracerProvider()
    tracer_provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    meter_provider = MeterProvider(metric_readers=[metric_reader])

    providers = TelemetryProviders(
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
    )
    yield providers
    providers.shutdown()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    """In-memory user store."""
    return InMemoryUserStore()


@pytest.fixture
def app_context(
    settings: Settings,
    user_store: InMemoryUserStore,
    telemetry: TelemetryProviders,
) -> AppContext:
    """Application context wired to in-memory collaborators."""
    return AppContext(settings=settings, store=user_store, telemetry=telemetry)


@pytest.fixture
def app(app_context: AppContext) -> FastAPI:
    """Fully configured application."""
    return create_app(app_context)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client. Server exceptions become 500 responses, as in production."""
    return TestClient(app, raise_server_exceptions=False)
