"""Shared fixtures: in-memory stand-ins for the Google services."""

import pytest
import yaml

from gcloud_logging_mcp.connection import server_factory
from gcloud_logging_mcp.dispatcher import Dispatcher
from gcloud_logging_mcp.gcp import LogRecord
from gcloud_logging_mcp.models import ServerConfig
from gcloud_logging_mcp.session import SessionState


class FakeCredentialProvider:
    """Fails the first ``failures`` calls, then returns ``credentials``."""

    def __init__(self, failures: int = 0, credentials: object = "fake-credentials"):
        self.failures = failures
        self.credentials = credentials
        self.calls = 0
        self.scopes: list[list[str]] = []

    async def acquire(self, scopes):
        self.calls += 1
        self.scopes.append(list(scopes))
        if self.calls <= self.failures:
            raise RuntimeError("metadata server unavailable")
        return self.credentials


class FakeDirectory:
    def __init__(self, projects=None, error: Exception | None = None):
        self.projects = projects or []
        self.error = error
        self.calls = 0

    async def search_projects(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.projects)


class FakeLogStore:
    def __init__(self, records=None, error: Exception | None = None):
        self.records = records or []
        self.error = error
        self.queries = []
        self.credentials = []

    async def list_entries(self, query, credentials=None):
        self.queries.append(query)
        self.credentials.append(credentials)
        if self.error:
            raise self.error
        return list(self.records)[: query.page_size]


@pytest.fixture
def server_config():
    return ServerConfig(retry_delay=0)


@pytest.fixture
def credential_provider():
    return FakeCredentialProvider()


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def log_store():
    return FakeLogStore(
        records=[
            LogRecord(
                timestamp="2024-05-02T10:00:00+00:00",
                severity="ERROR",
                resource={"type": "gce_instance", "labels": {"zone": "us-central1-a"}},
                payload="disk full",
            ),
            LogRecord(
                timestamp="2024-05-02T09:00:00+00:00",
                severity="ERROR",
                resource={"type": "cloud_run_revision", "labels": {}},
                payload={"message": "timeout", "latency_ms": 30000},
            ),
            LogRecord(
                timestamp="2024-05-02T08:00:00+00:00",
                severity="WARNING",
                resource=None,
                payload="slow start",
            ),
        ]
    )


@pytest.fixture
def dispatcher(credential_provider, directory, log_store, server_config):
    return Dispatcher(
        credentials=credential_provider,
        directory=directory,
        logs=log_store,
        config=server_config,
    )


@pytest.fixture
def factory(dispatcher):
    """Builds a per-connection MCP server around the shared dispatcher."""
    return server_factory(dispatcher)


@pytest.fixture
def state():
    return SessionState()


@pytest.fixture
def sample_config_yaml(tmp_path):
    """A config file selecting the sse transport."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        yaml.dump(
            {
                "transport": "sse",
                "port": 4000,
                "credential_retries": 1,
                "retry_delay": 0.5,
            }
        )
    )
    return config_file
