"""Issue lookups used by the poll engine."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from zendesk_jira_sync.core.config import Settings
from zendesk_jira_sync.integrations.jira.client import JiraClient
from zendesk_jira_sync.integrations.jira.mapper import map_issue_projection, parse_updated
from zendesk_jira_sync.integrations.jira.schemas import IssueProjection

logger = logging.getLogger(__name__)

PROJECTION_FIELDS = ["issuetype", "resolution", "fixVersions"]
RECENT_FIELDS = ["summary", "status", "updated", "issuetype", "resolution", "fixVersions"]

_EPOCH = dt.datetime.min.replace(tzinfo=dt.timezone.utc)


def _chunks(keys: Sequence[str], size: int) -> Iterable[list[str]]:
    step = max(1, size)
    for index in range(0, len(keys), step):
        yield list(keys[index : index + step])


def _key_clause(keys: Sequence[str]) -> str:
    quoted = ", ".join(f'"{key}"' for key in keys)
    return f"issuekey in ({quoted})"


def _projections(payload: dict[str, Any]) -> list[IssueProjection]:
    rows: list[IssueProjection] = []
    for issue in list(payload.get("issues") or []):
        if not isinstance(issue, dict):
            continue
        try:
            rows.append(map_issue_projection(issue))
        except ValueError:
            logger.warning("Skipping Jira issue without key: %s", issue.get("id"))
    return rows


class IssueGateway:
    def __init__(
        self,
        client: JiraClient,
        *,
        batch_size: int = 50,
        recent_window_minutes: int = 2,
        recent_max_results: int = 10,
    ) -> None:
        self.client = client
        self.batch_size = batch_size
        self.recent_window_minutes = recent_window_minutes
        self.recent_max_results = recent_max_results

    @classmethod
    def from_settings(cls, config: Settings) -> "IssueGateway":
        return cls(
            JiraClient(),
            batch_size=config.JIRA_SEARCH_BATCH_SIZE,
            recent_window_minutes=config.JIRA_RECENT_WINDOW_MINUTES,
            recent_max_results=config.JIRA_RECENT_MAX_RESULTS,
        )

    def fetch_by_keys(self, keys: Sequence[str]) -> list[IssueProjection]:
        if not keys:
            return []

        issues: list[IssueProjection] = []
        for batch in _chunks(keys, self.batch_size):
            payload = self.client.search(
                jql=_key_clause(batch),
                fields=PROJECTION_FIELDS,
                max_results=len(batch),
            )
            issues.extend(_projections(payload))
        logger.info("Fetched %s Jira issues for %s keys", len(issues), len(keys))
        return issues

    def fetch_recently_changed(self, tracked_keys: Sequence[str]) -> list[IssueProjection]:
        """Tracked issues updated inside the recency window, newest first.

        Every batch is asked for up to ``recent_max_results`` issues; the cap is
        applied once the batches are merged and ordered by ``updated``.
        """
        keys = list(tracked_keys)
        if not keys:
            return []

        rows: list[tuple[dt.datetime, IssueProjection]] = []
        recency = f"updated >= -{self.recent_window_minutes}m"
        for batch in _chunks(keys, self.batch_size):
            payload = self.client.search(
                jql=f"{_key_clause(batch)} AND {recency} ORDER BY updated DESC",
                fields=RECENT_FIELDS,
                max_results=self.recent_max_results,
            )
            for issue in list(payload.get("issues") or []):
                if not isinstance(issue, dict):
                    continue
                updated = (issue.get("fields") or {}).get("updated")
                logger.debug("%s: updated at %s", issue.get("key"), updated)
                try:
                    projection = map_issue_projection(issue)
                except ValueError:
                    logger.warning("Skipping Jira issue without key: %s", issue.get("id"))
                    continue
                rows.append((parse_updated(updated) or _EPOCH, projection))

        rows.sort(key=lambda row: row[0], reverse=True)
        issues = [projection for _updated, projection in rows[: max(0, self.recent_max_results)]]
        if issues:
            logger.info("Recently updated Jira issues: %s", [issue.key for issue in issues])
        return issues

    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> bool:
        logger.info("Updating Jira issue %s: %s", issue_key, fields)
        return self.client.update_issue(issue_key, fields)
