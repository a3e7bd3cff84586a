"""Mapping utilities from Jira issue payloads to issue projections."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Union

from zendesk_jira_sync.integrations.jira.schemas import UNRESOLVED, IssueProjection

logger = logging.getLogger(__name__)

# Jira reports the resolution as null, a bare name, or a resolution object.
RawResolution = Union[str, None, dict[str, Any]]


def resolution_display_name(raw: RawResolution) -> str:
    if raw is None:
        return UNRESOLVED
    if isinstance(raw, str):
        return raw.strip() or UNRESOLVED
    if isinstance(raw, dict):
        name = str(raw.get("name") or "").strip()
        if name:
            return name
        logger.warning("Jira resolution without a name: %s", raw)
        return UNRESOLVED
    return str(raw)


def map_fix_versions(fields: dict[str, Any]) -> tuple[str, ...]:
    names: list[str] = []
    for version in list(fields.get("fixVersions") or []):
        if isinstance(version, dict):
            name = str(version.get("name") or "").strip()
        else:
            name = str(version or "").strip()
        if name:
            names.append(name)
    return tuple(names)


def map_issue_projection(issue: dict[str, Any]) -> IssueProjection:
    fields = issue.get("fields") or {}
    issue_key = str(issue.get("key") or "").strip()
    if not issue_key:
        raise ValueError("missing_issue_key")

    issue_type = str(((fields.get("issuetype") or {}).get("name") or "")).strip()
    return IssueProjection(
        key=issue_key,
        type=issue_type,
        resolution=resolution_display_name(fields.get("resolution")),
        fix_versions=map_fix_versions(fields),
    )


def parse_updated(value: Any) -> dt.datetime | None:
    text = str(value or "").strip()
    if not text:
        return None
    for fmt in ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z"):
        try:
            return dt.datetime.strptime(text, fmt).astimezone(dt.timezone.utc)
        except ValueError:
            continue
    try:
        parsed = dt.datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Could not parse Jira datetime: %s", value)
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)
