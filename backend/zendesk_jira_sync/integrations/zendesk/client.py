"""Zendesk REST v2 client wrapper with retries."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from zendesk_jira_sync.core.config import settings
from zendesk_jira_sync.core.exceptions import ZendeskRequestError

logger = logging.getLogger(__name__)

RETRY_STATUSES = {429, 500, 502, 503, 504}
MAX_SEARCH_PAGES = 10


class ZendeskClient:
    def __init__(
        self,
        *,
        base_url: str | None = None,
        email: str | None = None,
        api_token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (settings.zendesk_base_url if base_url is None else base_url).rstrip("/")
        self.email = settings.ZENDESK_EMAIL if email is None else email
        self.api_token = settings.ZENDESK_APITOKEN if api_token is None else api_token
        self.timeout = 25.0
        self.max_retries = 3
        self._transport = transport

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        # search pagination hands back absolute next_page urls
        url = path if path.startswith(("http://", "https://")) else f"{self.base_url}{path}"
        backoff = 0.5
        with httpx.Client(
            timeout=self.timeout,
            auth=(f"{self.email}/token", self.api_token),
            headers={"Accept": "application/json", "Content-Type": "application/json"},
            transport=self._transport,
        ) as client:
            for attempt in range(1, self.max_retries + 1):
                try:
                    response = client.request(method, url, **kwargs)
                    if response.status_code in RETRY_STATUSES and attempt < self.max_retries:
                        retry_after = response.headers.get("Retry-After", "")
                        delay = float(retry_after) if retry_after.isdigit() else backoff
                        logger.debug("Zendesk %s %s returned %s, retrying in %ss", method, path, response.status_code, delay)
                        time.sleep(delay)
                        backoff *= 2
                        continue
                    response.raise_for_status()
                    if not response.content:
                        return {}
                    return response.json()
                except httpx.HTTPStatusError as exc:
                    status = exc.response.status_code
                    raise ZendeskRequestError(
                        f"Zendesk {method} {path} failed: {status} {exc.response.text[:300]}",
                        status_code=status,
                    ) from exc
                except httpx.HTTPError as exc:
                    if attempt >= self.max_retries:
                        raise ZendeskRequestError(f"Zendesk {method} {path} failed: {exc}") from exc
                    time.sleep(backoff)
                    backoff *= 2
        return {}

    def search(self, query: str) -> list[dict[str, Any]] | None:
        """Run a search and follow ``next_page``; ``None`` when the response carries no results."""
        data = self._request("GET", "/api/v2/search", params={"query": query})
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            return None

        rows: list[dict[str, Any]] = []
        pages = 1
        while True:
            rows.extend(item for item in data.get("results") or [] if isinstance(item, dict))
            next_page = data.get("next_page")
            if not next_page or pages >= MAX_SEARCH_PAGES:
                break
            data = self._request("GET", str(next_page))
            if not isinstance(data, dict):
                break
            pages += 1
        return rows

    def get_ticket(self, ticket_id: int) -> dict[str, Any]:
        data = self._request("GET", f"/api/v2/tickets/{ticket_id}")
        ticket = data.get("ticket") if isinstance(data, dict) else None
        return ticket if isinstance(ticket, dict) else {}

    def create_ticket(self, ticket: dict[str, Any]) -> dict[str, Any]:
        data = self._request("POST", "/api/v2/tickets", json={"ticket": ticket})
        created = data.get("ticket") if isinstance(data, dict) else None
        return created if isinstance(created, dict) else {}

    def delete_ticket(self, ticket_id: int) -> None:
        self._request("DELETE", f"/api/v2/tickets/{ticket_id}")

    def update_many(self, tickets: list[dict[str, Any]]) -> dict[str, Any]:
        data = self._request("PUT", "/api/v2/tickets/update_many", json={"tickets": tickets})
        return data if isinstance(data, dict) else {}

    def ping(self) -> bool:
        self._request("GET", "/api/v2/tickets.json", params={"page[size]": 1})
        return True
