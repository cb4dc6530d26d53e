"""
Minimal Asana API client (1.0) using stdlib urllib.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Iterable
from typing import Any

PROJECT_OPT_FIELDS = ("name", "due_date", "created_at", "owner.name", "notes", "archived")
TASK_OPT_FIELDS = ("name", "due_on", "assignee.name", "completed", "created_at", "notes")


class AsanaAPIError(Exception):
    """Non-2xx response from the Asana API."""

    def __init__(self, status: int, reason: str = "") -> None:
        self.status = status
        self.reason = reason
        super().__init__(f"Asana API error: {status} {reason}".rstrip())


class AsanaClient:
    def __init__(self, base_url: str, token: str, timeout: int = 8) -> None:
        self.base_api = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    # ----- Helpers -----
    def _url(self, path: str, params: dict[str, Any] | None = None) -> str:
        url = self.base_api + path
        if params:
            url += "?" + urllib.parse.urlencode(params, safe=",")
        return url

    def _get_json(self, url: str) -> Any:
        req = urllib.request.Request(
            url,
            headers={
                "Authorization": f"Bearer {self.token}",
                "Content-Type": "application/json",
                "User-Agent": "ReleaseTracker/1.0",
            },
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # nosec B310
                data = resp.read()
        except urllib.error.HTTPError as e:
            e.close()
            raise AsanaAPIError(e.code, str(e.reason or "")) from e
        return json.loads(data.decode("utf-8"))

    def _get_data(self, url: str) -> list[dict[str, Any]]:
        payload = self._get_json(url)
        data = payload.get("data") if isinstance(payload, dict) else None
        return list(data) if isinstance(data, list) else []

    # ----- Public APIs -----
    def list_projects(
        self, workspace_id: str, opt_fields: Iterable[str] = PROJECT_OPT_FIELDS
    ) -> list[dict[str, Any]]:
        url = self._url(
            "/projects",
            {"workspace": workspace_id, "opt_fields": ",".join(opt_fields)},
        )
        return self._get_data(url)

    def list_project_tasks(
        self, project_gid: str, opt_fields: Iterable[str] = TASK_OPT_FIELDS
    ) -> list[dict[str, Any]]:
        url = self._url(
            f"/projects/{urllib.parse.quote(str(project_gid))}/tasks",
            {"opt_fields": ",".join(opt_fields)},
        )
        return self._get_data(url)
