"""Jira REST v2 client wrapper with retries."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from zendesk_jira_sync.core.config import settings
from zendesk_jira_sync.core.exceptions import JiraRequestError

logger = logging.getLogger(__name__)

RETRY_STATUSES = {429, 500, 502, 503, 504}


class JiraClient:
    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_token: str | None = None,
        email: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (settings.jira_base_url if base_url is None else base_url).rstrip("/")
        self.api_token = settings.JIRA_TOKEN if api_token is None else api_token
        self.email = settings.JIRA_EMAIL if email is None else email
        self.timeout = 25.0
        self.max_retries = 3
        self._transport = transport

    def _http_client(self) -> httpx.Client:
        headers = {"Accept": "application/json"}
        auth: tuple[str, str] | None = None
        # Cloud sites authenticate with email + API token, server/DC with a personal access token.
        if self.email.strip():
            auth = (self.email, self.api_token)
        else:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return httpx.Client(timeout=self.timeout, auth=auth, headers=headers, transport=self._transport)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        backoff = 0.5
        with self._http_client() as client:
            for attempt in range(1, self.max_retries + 1):
                try:
                    response = client.request(method, url, **kwargs)
                    if response.status_code in RETRY_STATUSES and attempt < self.max_retries:
                        logger.debug("Jira %s %s returned %s, retrying", method, path, response.status_code)
                        time.sleep(backoff)
                        backoff *= 2
                        continue
                    response.raise_for_status()
                    if not response.content:
                        return {}
                    return response.json()
                except httpx.HTTPStatusError as exc:
                    status = exc.response.status_code
                    raise JiraRequestError(
                        f"Jira {method} {path} failed: {status} {exc.response.text[:300]}",
                        status_code=status,
                    ) from exc
                except httpx.HTTPError as exc:
                    if attempt >= self.max_retries:
                        raise JiraRequestError(f"Jira {method} {path} failed: {exc}") from exc
                    time.sleep(backoff)
                    backoff *= 2
        return {}

    def search(
        self,
        *,
        jql: str,
        fields: list[str],
        max_results: int = 50,
        start_at: int = 0,
    ) -> dict[str, Any]:
        data = self._request(
            "POST",
            "/rest/api/2/search",
            json={
                "jql": jql,
                "startAt": start_at,
                "maxResults": max_results,
                "fields": fields,
            },
        )
        return data if isinstance(data, dict) else {}

    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> bool:
        key = (issue_key or "").strip()
        if not key:
            return False
        self._request("PUT", f"/rest/api/2/issue/{key}", json={"fields": fields})
        return True

    def get_myself(self) -> dict[str, Any]:
        data = self._request("GET", "/rest/api/2/myself")
        return data if isinstance(data, dict) else {}

    def get_project_versions(self, project_key: str) -> list[dict[str, Any]]:
        key = (project_key or "").strip()
        if not key:
            return []
        data = self._request("GET", f"/rest/api/2/project/{key}/versions")
        if isinstance(data, list):
            return [item for item in data if isinstance(item, dict)]
        return []
