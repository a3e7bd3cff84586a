from __future__ import annotations

import sys
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

import pytest  # noqa: E402

from zendesk_jira_sync.integrations.jira.issues import IssueGateway  # noqa: E402
from zendesk_jira_sync.integrations.jira.schemas import IssueProjection  # noqa: E402
from zendesk_jira_sync.integrations.zendesk.schemas import TicketUpdate, ZendeskCustomField, ZendeskTicket  # noqa: E402
from zendesk_jira_sync.integrations.zendesk.tickets import TicketGateway  # noqa: E402
from zendesk_jira_sync.sync.engine import PollEngine, TicketFieldIds  # noqa: E402

FIELD_IDS = TicketFieldIds(linked_issue=360001, issue_type=360002, resolution=360003, fix_versions=360004)


class FakeTicketGateway(TicketGateway):
    def __init__(self) -> None:
        super().__init__(client=None, linked_field_id=FIELD_IDS.linked_issue)  # type: ignore[arg-type]
        self.open_tickets: list[ZendeskTicket] = []
        self.recent_tickets: list[ZendeskTicket] = []
        self.searches: list[bool] = []
        self.updates: list[list[TicketUpdate]] = []
        self.fail_updates = False

    def add(self, ticket_id: int | None, link: str, *, recent: bool = False) -> ZendeskTicket:
        ticket = ZendeskTicket(
            id=ticket_id,
            status="open",
            custom_fields=[ZendeskCustomField(id=FIELD_IDS.linked_issue, value=link)],
        )
        self.open_tickets.append(ticket)
        if recent:
            self.recent_tickets.append(ticket)
        return ticket

    def search_linked_tickets(self, *, recent: bool = False) -> list[ZendeskTicket]:
        self.searches.append(recent)
        return list(self.recent_tickets if recent else self.open_tickets)

    def update_tickets(self, updates: list[TicketUpdate]) -> int:
        if self.fail_updates:
            raise RuntimeError("update_many failed")
        self.updates.append(list(updates))
        return len(updates)


class FakeIssueGateway(IssueGateway):
    def __init__(self) -> None:
        super().__init__(client=None)  # type: ignore[arg-type]
        self.remote: dict[str, IssueProjection] = {}
        self.recently_changed: list[str] = []
        self.fetches: list[list[str]] = []
        self.recent_queries: list[list[str]] = []

    def put(self, key: str, issue_type: str = "Bug", resolution: str = "Unresolved", fix_versions: tuple[str, ...] = ()) -> IssueProjection:
        projection = IssueProjection(key=key, type=issue_type, resolution=resolution, fix_versions=fix_versions)
        self.remote[key] = projection
        return projection

    def fetch_by_keys(self, keys):  # noqa: ANN001
        keys = list(keys)
        if not keys:
            return []
        self.fetches.append(keys)
        return [self.remote[key] for key in keys if key in self.remote]

    def fetch_recently_changed(self, tracked_keys):  # noqa: ANN001
        tracked = list(tracked_keys)
        if not tracked:
            return []
        self.recent_queries.append(tracked)
        return [self.remote[key] for key in self.recently_changed if key in tracked and key in self.remote]


@pytest.fixture
def ticket_gateway() -> FakeTicketGateway:
    return FakeTicketGateway()


@pytest.fixture
def issue_gateway() -> FakeIssueGateway:
    return FakeIssueGateway()


@pytest.fixture
def engine(ticket_gateway: FakeTicketGateway, issue_gateway: FakeIssueGateway) -> PollEngine:
    return PollEngine(ticket_gateway, issue_gateway, FIELD_IDS)
