"""Google Cloud collaborators: credentials, project directory, log store.

The dispatcher only depends on the three protocols below. The Google
implementations wrap the blocking client libraries with ``asyncio.to_thread``
so other connections keep being served while a call is in flight.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, Sequence

logger = logging.getLogger(__name__)

NEWEST_FIRST = "timestamp desc"


@dataclass(frozen=True)
class LogQuery:
    """A Cloud Logging entry query."""

    project_id: str
    filter: str | None = None
    page_size: int = 10
    order_by: str = NEWEST_FIRST


@dataclass
class LogRecord:
    """A log entry reduced to the fields the server reports."""

    timestamp: str | None
    severity: str | None
    resource: dict[str, Any] | None
    payload: Any = None


class CredentialProvider(Protocol):
    async def acquire(self, scopes: Sequence[str]) -> Any: ...


class DirectoryService(Protocol):
    async def search_projects(self) -> list[str]: ...


class LogStore(Protocol):
    async def list_entries(self, query: LogQuery, credentials: Any = None) -> list[LogRecord]: ...


class GoogleCredentialProvider:
    """Application Default Credentials via google-auth."""

    async def acquire(self, scopes: Sequence[str]) -> Any:
        import google.auth

        credentials, _project = await asyncio.to_thread(
            google.auth.default, scopes=list(scopes)
        )
        return credentials


class ResourceManagerDirectory:
    """Project search via the Resource Manager v3 API."""

    def __init__(self, client: Any = None):
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            from google.cloud.resourcemanager_v3 import ProjectsClient

            self._client = ProjectsClient()
        return self._client

    def _search(self) -> list[str]:
        client = self._get_client()
        return [project_to_json(project) for project in client.search_projects()]

    async def search_projects(self) -> list[str]:
        return await asyncio.to_thread(self._search)


class CloudLoggingStore:
    """Entry listing via google-cloud-logging."""

    def __init__(self, client_factory: Any = None):
        self._client_factory = client_factory

    def _make_client(self, project_id: str, credentials: Any) -> Any:
        if self._client_factory is not None:
            return self._client_factory(project=project_id, credentials=credentials)

        from google.cloud import logging as gcp_logging

        return gcp_logging.Client(project=project_id, credentials=credentials)

    def _list(self, query: LogQuery, credentials: Any) -> list[LogRecord]:
        client = self._make_client(query.project_id, credentials)
        entries = client.list_entries(
            resource_names=[f"projects/{query.project_id}"],
            filter_=query.filter or None,
            order_by=query.order_by,
            page_size=query.page_size,
            max_results=query.page_size,
        )
        return [entry_to_record(entry) for entry in entries]

    async def list_entries(self, query: LogQuery, credentials: Any = None) -> list[LogRecord]:
        return await asyncio.to_thread(self._list, query, credentials)


def project_to_json(project: Any) -> str:
    """Serialize a Resource Manager project as a compact JSON string."""
    to_json = getattr(type(project), "to_json", None)
    if to_json is not None:
        return to_json(project, indent=None)
    return json.dumps(project, default=str)


def _resource_to_dict(resource: Any) -> dict[str, Any] | None:
    if resource is None:
        return None
    if isinstance(resource, dict):
        return resource
    return {
        "type": getattr(resource, "type", None),
        "labels": dict(getattr(resource, "labels", None) or {}),
    }


def entry_to_record(entry: Any) -> LogRecord:
    """Convert a google-cloud-logging entry into a LogRecord."""
    timestamp = getattr(entry, "timestamp", None)
    if isinstance(timestamp, datetime):
        timestamp = timestamp.isoformat()
    payload = getattr(entry, "payload", None)
    if payload is not None and not isinstance(payload, (str, dict, list, int, float, bool)):
        payload = str(payload)
    return LogRecord(
        timestamp=timestamp,
        severity=getattr(entry, "severity", None),
        resource=_resource_to_dict(getattr(entry, "resource", None)),
        payload=payload,
    )
