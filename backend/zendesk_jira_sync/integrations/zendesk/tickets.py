"""Zendesk ticket access for the Jira field sync."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from zendesk_jira_sync.core.config import Settings
from zendesk_jira_sync.core.exceptions import ZendeskException
from zendesk_jira_sync.integrations.zendesk.client import ZendeskClient
from zendesk_jira_sync.integrations.zendesk.schemas import TicketUpdate, ZendeskCustomField, ZendeskTicket

logger = logging.getLogger(__name__)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def normalize_issue_key(value: Any) -> str | None:
    """Reduce a linked-issue field value to the bare key, e.g. ``.../browse/DB-40467`` -> ``DB-40467``."""
    text = str(value or "").strip()
    if "/" in text:
        text = text[text.rfind("/") + 1 :].strip()
    return text or None


class TicketGateway:
    def __init__(
        self,
        client: ZendeskClient,
        *,
        linked_field_id: int,
        recent_window_seconds: int = 60,
        update_batch_size: int = 100,
    ) -> None:
        self.client = client
        self.linked_field_id = linked_field_id
        self.recent_window_seconds = recent_window_seconds
        self.update_batch_size = update_batch_size

    @classmethod
    def from_settings(cls, config: Settings) -> "TicketGateway":
        return cls(
            ZendeskClient(),
            linked_field_id=int(config.JIRA_OR_GITHUB_CUSTOM_FIELD_ID or 0),
            recent_window_seconds=config.ZENDESK_RECENT_WINDOW_SECONDS,
            update_batch_size=config.ZENDESK_UPDATE_BATCH_SIZE,
        )

    def build_query(self, *, recent: bool = False, now: dt.datetime | None = None) -> str:
        parts = ["type:ticket", "status<closed"]
        if recent:
            since = (now or _utcnow()) - dt.timedelta(seconds=self.recent_window_seconds)
            parts.append(f"updated>{since.astimezone(dt.timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')}")
        parts.append(f"custom_field_{self.linked_field_id}:*")
        return " ".join(parts)

    def search_linked_tickets(self, *, recent: bool = False) -> list[ZendeskTicket]:
        """Open tickets with the linked-issue field set; failures come back as an empty list."""
        query = self.build_query(recent=recent)
        try:
            rows = self.client.search(query)
        except ZendeskException as exc:
            logger.warning("Error polling Zendesk: %s", exc)
            return []
        if rows is None:
            logger.warning("Zendesk search returned no results payload for query %s", query)
            return []
        if not rows:
            logger.info("No tickets found by query %s", query)
            return []

        tickets = [ZendeskTicket.model_validate(row) for row in rows]
        logger.info(
            "Tickets that are not closed that have a JIRA field set%s: %s",
            " and were recently updated" if recent else "",
            [ticket.id for ticket in tickets],
        )
        return tickets

    def linked_issue_key(self, ticket: ZendeskTicket) -> str | None:
        return normalize_issue_key(ticket.custom_field_value(self.linked_field_id))

    def get_ticket(self, ticket_id: int) -> ZendeskTicket:
        payload = self.client.get_ticket(ticket_id)
        if not payload:
            raise ZendeskException(f"failed to get the ticket by id {ticket_id}", error_code="ZENDESK_TICKET_NOT_FOUND", status_code=404)
        return ZendeskTicket.model_validate(payload)

    def create_ticket(
        self,
        *,
        subject: str,
        comment: str,
        priority: str = "normal",
        custom_fields: list[ZendeskCustomField] | None = None,
    ) -> ZendeskTicket:
        body: dict[str, Any] = {
            "subject": subject,
            "comment": {"body": comment},
            "priority": priority,
        }
        if custom_fields:
            body["custom_fields"] = [field.model_dump() for field in custom_fields]
        payload = self.client.create_ticket(body)
        if not payload:
            raise ZendeskException("Zendesk did not return the created ticket", error_code="ZENDESK_CREATE_FAILED", status_code=502)
        return ZendeskTicket.model_validate(payload)

    def delete_ticket(self, ticket_id: int) -> None:
        self.client.delete_ticket(ticket_id)

    def update_tickets(self, updates: list[TicketUpdate]) -> int:
        if not updates:
            return 0
        size = max(1, self.update_batch_size)
        for index in range(0, len(updates), size):
            batch = updates[index : index + size]
            logger.info("Updating JIRA props for zendesk tickets %s", [item.model_dump() for item in batch])
            self.client.update_many([item.model_dump() for item in batch])
        logger.info("Updated tickets: %s", [item.id for item in updates])
        return len(updates)
