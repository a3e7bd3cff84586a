"""One poll -> diff -> write-back reconciliation cycle between Jira and Zendesk."""

from __future__ import annotations

import datetime as dt
import logging
import re
import time
from collections.abc import Iterable
from dataclasses import dataclass

from zendesk_jira_sync.core.config import Settings
from zendesk_jira_sync.core.exceptions import TicketMappingError
from zendesk_jira_sync.integrations.jira.issues import IssueGateway
from zendesk_jira_sync.integrations.jira.schemas import IssueProjection
from zendesk_jira_sync.integrations.zendesk.schemas import TicketUpdate, ZendeskCustomField, ZendeskTicket
from zendesk_jira_sync.integrations.zendesk.tickets import TicketGateway
from zendesk_jira_sync.sync.cache import ReconciliationCache
from zendesk_jira_sync.sync.schemas import CycleMode, CycleResult, CycleStatus, TicketSelection

logger = logging.getLogger(__name__)

ISSUE_KEY_RE = re.compile(r"^[A-Z][A-Z0-9_]*-\d+$")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclass(frozen=True)
class TicketFieldIds:
    """Zendesk custom field ids the engine reads from and writes to."""

    linked_issue: int
    issue_type: int
    resolution: int
    fix_versions: int

    @classmethod
    def from_settings(cls, config: Settings) -> "TicketFieldIds":
        return cls(
            linked_issue=int(config.JIRA_OR_GITHUB_CUSTOM_FIELD_ID or 0),
            issue_type=int(config.JIRA_TYPE_FIELD_ID or 0),
            resolution=int(config.JIRA_RESOLUTION_FIELD_ID or 0),
            fix_versions=int(config.JIRA_FIX_VERSIONS_FIELD_ID or 0),
        )


def merge_tickets(*groups: Iterable[ZendeskTicket]) -> list[ZendeskTicket]:
    merged: dict[object, ZendeskTicket] = {}
    for group in groups:
        for ticket in group:
            identity = ticket.id if ticket.id is not None else id(ticket)
            merged.setdefault(identity, ticket)
    return list(merged.values())


def merge_issues(*groups: Iterable[IssueProjection]) -> list[IssueProjection]:
    merged: dict[str, IssueProjection] = {}
    for group in groups:
        for issue in group:
            merged[issue.key] = issue
    return list(merged.values())


class PollEngine:
    """Owns the reconciliation cache and runs cycles against it.

    ``run_cycle`` lets gateway and mapping errors propagate; the scheduler is
    the boundary that catches and logs them. Cache entries written before a
    failure are kept, so the next cycle starts from what was already observed.
    """

    def __init__(
        self,
        ticket_gateway: TicketGateway,
        issue_gateway: IssueGateway,
        field_ids: TicketFieldIds,
        *,
        cache: ReconciliationCache | None = None,
        selection: TicketSelection = TicketSelection.considered,
    ) -> None:
        self.tickets = ticket_gateway
        self.issues = issue_gateway
        self.field_ids = field_ids
        self.cache = cache if cache is not None else ReconciliationCache()
        self.selection = selection

    @classmethod
    def from_settings(cls, config: Settings) -> "PollEngine":
        return cls(
            TicketGateway.from_settings(config),
            IssueGateway.from_settings(config),
            TicketFieldIds.from_settings(config),
            selection=TicketSelection(config.SYNC_TICKET_SELECTION),
        )

    def run_cycle(self, mode: CycleMode, *, sequence: int = 0) -> CycleResult:
        started = time.monotonic()
        result = CycleResult(sequence=sequence, mode=mode, started_at=_utcnow())
        logger.info("Checking for tickets to update (cycle=%s mode=%s)", sequence, mode.value)

        if mode == CycleMode.recent:
            tickets, issues = self._gather_recent()
        else:
            tickets, issues = self._gather_full()
        result.tickets_considered = len(tickets)
        result.issues_fetched = len(issues)

        changed = self._diff(issues)
        result.issues_changed = len(changed)
        if not changed:
            if issues:
                logger.info("No JIRAs are different than what is available in cache.")
            return self._finish(result, started, CycleStatus.noop)
        logger.info("JIRAs different than available in cache: %s", changed)

        selected = self._select(tickets, set(changed), {issue.key for issue in issues})
        updates = [self._build_update(ticket) for ticket in selected]
        if updates:
            self.tickets.update_tickets(updates)
        result.tickets_updated = len(updates)
        return self._finish(result, started, CycleStatus.ok)

    def _finish(self, result: CycleResult, started: float, status: CycleStatus) -> CycleResult:
        result.status = status
        result.finished_at = _utcnow()
        result.duration_ms = int((time.monotonic() - started) * 1000)
        return result

    def issue_keys(self, tickets: Iterable[ZendeskTicket]) -> list[str]:
        """Linked issue keys in first-seen order, each once."""
        keys: list[str] = []
        seen: set[str] = set()
        for ticket in tickets:
            key = self.tickets.linked_issue_key(ticket)
            if not key:
                logger.warning("Ticket %s has no usable JIRA key in its link field", ticket.id)
                continue
            if not ISSUE_KEY_RE.match(key):
                logger.warning("Ticket %s links %r, which is not a JIRA issue key", ticket.id, key)
                continue
            if key in seen:
                continue
            seen.add(key)
            keys.append(key)
        return keys

    def _gather_full(self) -> tuple[list[ZendeskTicket], list[IssueProjection]]:
        tickets = self.tickets.search_linked_tickets()
        if not tickets:
            logger.info("No tickets to update.")
            return [], []

        keys = self.issue_keys(tickets)
        logger.info("JIRAS to get: %s", keys)
        return tickets, self.issues.fetch_by_keys(keys)

    def _gather_recent(self) -> tuple[list[ZendeskTicket], list[IssueProjection]]:
        # Tickets touched lately catch link-field edits; tracked issues touched lately
        # catch Jira-side edits on tickets nobody touched.
        tickets = self.tickets.search_linked_tickets(recent=True)
        keys = self.issue_keys(tickets)

        recently_changed = self.issues.fetch_recently_changed(self.cache.keys())
        if recently_changed:
            tickets = merge_tickets(tickets, self.tickets.search_linked_tickets())

        ticket_issues = self.issues.fetch_by_keys(keys)
        return tickets, merge_issues(ticket_issues, recently_changed)

    def _diff(self, issues: Iterable[IssueProjection]) -> list[str]:
        changed: list[str] = []
        for issue in issues:
            if self.cache.observe(issue) and issue.key not in changed:
                changed.append(issue.key)
        return changed

    def _select(
        self,
        tickets: Iterable[ZendeskTicket],
        changed: set[str],
        considered: set[str],
    ) -> list[ZendeskTicket]:
        wanted = changed | considered if self.selection == TicketSelection.considered else changed
        return [ticket for ticket in tickets if self.tickets.linked_issue_key(ticket) in wanted]

    def _build_update(self, ticket: ZendeskTicket) -> TicketUpdate:
        if ticket.id is None:
            raise TicketMappingError("Ticket selected for update has no id")
        key = self.tickets.linked_issue_key(ticket)
        projection = self.cache.get(key) if key else None
        if projection is None:
            raise TicketMappingError(f"No cached JIRA state for {key!r}", ticket_id=ticket.id)

        return TicketUpdate(
            id=ticket.id,
            custom_fields=[
                ZendeskCustomField(id=self.field_ids.issue_type, value=projection.type),
                ZendeskCustomField(id=self.field_ids.resolution, value=projection.resolution),
                ZendeskCustomField(id=self.field_ids.fix_versions, value=projection.fix_versions_value),
            ],
        )
