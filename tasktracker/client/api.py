from __future__ import annotations

import datetime as _dt
from types import TracebackType
from typing import Any

import httpx
from pydantic.alias_generators import to_camel

from tasktracker.errors import ApiUnavailable, error_for_status
from tasktracker.models.task import Task


def _to_wire_body(fields: dict[str, Any]) -> dict[str, Any]:
    body: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, _dt.date):
            value = value.isoformat()
        body[to_camel(key)] = value
    return body


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200] or f"HTTP {resp.status_code}"
    if isinstance(data, dict):
        for key in ("error", "detail", "message"):
            if data.get(key):
                return str(data[key])
    return f"HTTP {resp.status_code}"


class TaskApiClient:
    """Thin client for the task HTTP API.

    Non-2xx responses are raised as ``ValidationError``/``NotFound``/
    ``StoreError``; transport failures as ``ApiUnavailable``. Pass ``http`` to
    reuse an existing ``httpx.Client`` (tests hand in a ``TestClient``).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        timeout: float = 10.0,
        http: httpx.Client | None = None,
    ) -> None:
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> TaskApiClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiUnavailable(f"cannot reach task API: {exc}") from exc
        if resp.status_code >= 400:
            raise error_for_status(resp.status_code, _error_message(resp))
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiUnavailable("task API returned invalid JSON") from exc

    def list_tasks(
        self,
        status: str | None = None,
        category: str | None = None,
        priority: int | None = None,
    ) -> list[Task]:
        params: dict[str, str] = {}
        if status:
            params["status"] = status
        if category:
            params["category"] = category
        if priority is not None:
            params["priority"] = str(priority)
        data = self._request("GET", "/tasks", params=params)
        return [Task.model_validate(item) for item in data]

    def get_task(self, task_id: str) -> Task:
        return Task.model_validate(self._request("GET", f"/tasks/{task_id}"))

    def create_task(self, fields: dict[str, Any]) -> Task:
        return Task.model_validate(self._request("POST", "/tasks", json=_to_wire_body(fields)))

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        data = self._request("PUT", f"/tasks/{task_id}", json=_to_wire_body(changes))
        return Task.model_validate(data)

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")


__all__ = ["TaskApiClient"]
