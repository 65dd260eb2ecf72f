"""Todoist provider adapter."""

from __future__ import annotations

import logging
import uuid
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError

from tasklink.contracts.config import DEFAULT_API_URL
from tasklink.contracts.exceptions import AuthenticationError, ProviderError, TaskNotFoundError
from tasklink.contracts.provider import Provider
from tasklink.contracts.task import RemoteTask
from tasklink.providers.todoist._retrying_transport import RetryingTransport

_LOG = logging.getLogger(__name__)

_FILTER_PAGE_SIZE = 200


class TodoistProvider(Provider):
    """Talks to the Todoist REST API over a pooled httpx client."""

    def __init__(
        self,
        *,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max_retries
        self._inner_transport = transport
        self._client: httpx.AsyncClient | None = None
        self._project_names: dict[str, str] = {}

    async def __aenter__(self) -> TodoistProvider:
        self._client = httpx.AsyncClient(
            base_url=self._api_url,
            headers={"Authorization": f"Bearer {self._token}"},
            transport=RetryingTransport(transport=self._inner_transport, max_retries=self._max_retries),
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            timeout=httpx.Timeout(self._timeout),
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_task(self, task_id: str) -> RemoteTask:
        payload = await self._request("GET", f"/tasks/{task_id}", task_id=task_id)
        return self._parse_task(payload)

    async def close_task(self, task_id: str) -> None:
        await self._request("POST", f"/tasks/{task_id}/close", task_id=task_id)

    async def reopen_task(self, task_id: str) -> None:
        await self._request("POST", f"/tasks/{task_id}/reopen", task_id=task_id)

    async def create_task(self, content: str) -> RemoteTask:
        payload = await self._request("POST", "/tasks", json={"content": content})
        return self._parse_task(payload)

    async def fetch_project_name(self, project_id: str) -> str:
        cached = self._project_names.get(project_id)
        if cached is not None:
            return cached
        payload = await self._request("GET", f"/projects/{project_id}")
        name = payload.get("name") if isinstance(payload, dict) else None
        if not isinstance(name, str):
            raise ProviderError(f"Project {project_id} response missing name")
        self._project_names[project_id] = name
        return name

    async def fetch_tasks_by_filter(self, query: str) -> list[RemoteTask]:
        tasks: list[RemoteTask] = []
        cursor: str | None = None
        while True:
            params: dict[str, Any] = {"query": query, "limit": _FILTER_PAGE_SIZE}
            if cursor:
                params["cursor"] = cursor
            payload = await self._request("GET", "/tasks/filter", params=params)
            if isinstance(payload, list):
                return [self._parse_task(item) for item in payload]
            if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
                raise ProviderError("Filter response is missing results")
            tasks.extend(self._parse_task(item) for item in payload["results"])
            cursor = payload.get("next_cursor")
            if not cursor:
                break
        _LOG.debug("Filter %r matched %d task(s)", query, len(tasks))
        return tasks

    async def _request(
        self,
        method: str,
        path: str,
        *,
        task_id: str | None = None,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        if self._client is None:
            raise ProviderError("Provider is not initialized. Use 'async with'.")

        headers = {"X-Request-Id": str(uuid.uuid4())} if method == "POST" else None
        try:
            response = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderError(f"{method} {path} failed: {exc}") from exc

        _LOG.debug("%s %s -> %d", method, path, response.status_code)
        if response.status_code == 404 and task_id is not None:
            raise TaskNotFoundError(task_id)
        if response.status_code in {401, 403}:
            raise AuthenticationError("Todoist rejected the API token")
        if response.status_code >= 400:
            raise ProviderError(f"{method} {path} returned HTTP {response.status_code}")

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{method} {path} returned invalid JSON") from exc

    @staticmethod
    def _parse_task(payload: Any) -> RemoteTask:
        if not isinstance(payload, dict):
            raise ProviderError("Task response is not an object")
        try:
            return RemoteTask.model_validate(payload)
        except ValidationError as exc:
            raise ProviderError(f"Unexpected task payload: {exc}") from exc
