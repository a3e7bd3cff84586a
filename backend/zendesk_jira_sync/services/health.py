"""Connectivity checks against the Zendesk and Jira APIs."""

from __future__ import annotations

import logging

from zendesk_jira_sync.core.exceptions import SyncServiceException
from zendesk_jira_sync.integrations.jira.client import JiraClient
from zendesk_jira_sync.integrations.zendesk.client import ZendeskClient

logger = logging.getLogger(__name__)


def check_connectivity(
    zendesk: ZendeskClient | None = None,
    jira: JiraClient | None = None,
) -> dict[str, bool]:
    zendesk = zendesk or ZendeskClient()
    jira = jira or JiraClient()
    status = {"zendesk": False, "jira": False}

    try:
        status["zendesk"] = zendesk.ping()
    except SyncServiceException as exc:
        logger.warning("Zendesk API unreachable: %s", exc)

    try:
        jira.get_myself()
        status["jira"] = True
    except SyncServiceException as exc:
        logger.warning("Jira API unreachable: %s", exc)

    return status
