"""End-to-end check against live systems: link a fresh Zendesk ticket to a Jira issue
and wait for the running sync service to mirror the issue fields onto it."""

from __future__ import annotations

import argparse
import sys
import time

from zendesk_jira_sync.core.config import settings
from zendesk_jira_sync.core.logging import setup_logging
from zendesk_jira_sync.integrations.jira.issues import IssueGateway
from zendesk_jira_sync.integrations.zendesk.schemas import ZendeskCustomField
from zendesk_jira_sync.integrations.zendesk.tickets import TicketGateway
from zendesk_jira_sync.sync.engine import TicketFieldIds


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("issue_key", help="Jira issue to link, e.g. SUP-1488")
    parser.add_argument("--wait", type=int, default=90, help="seconds to wait for the sync service")
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL)
    settings.validate_required()
    field_ids = TicketFieldIds.from_settings(settings)
    tickets = TicketGateway.from_settings(settings)
    issues = IssueGateway.from_settings(settings)

    expected = issues.fetch_by_keys([args.issue_key])
    if not expected:
        print(f"[failed] Jira issue {args.issue_key} not found")
        return 1
    issue = expected[0]

    ticket = tickets.create_ticket(
        subject="Ticket for testing jira to zendesk sync server",
        comment=f"Linked to {issue.key} by smoke_sync.py",
        custom_fields=[ZendeskCustomField(id=field_ids.linked_issue, value=issue.key)],
    )
    assert ticket.id is not None
    print(f"[created] ticket={ticket.id} issue={issue.key}")

    try:
        time.sleep(args.wait)
        synced = tickets.get_ticket(ticket.id)
        observed = {
            "type": synced.custom_field_value(field_ids.issue_type),
            "resolution": synced.custom_field_value(field_ids.resolution),
            "fix_versions": synced.custom_field_value(field_ids.fix_versions),
        }
        wanted = {
            "type": issue.type,
            "resolution": issue.resolution,
            "fix_versions": issue.fix_versions_value,
        }
        mismatched = {name: (observed[name], value) for name, value in wanted.items() if observed[name] != value}
        if mismatched:
            print(f"[failed] mismatched fields (observed, expected): {mismatched}")
            return 1
        print(f"[done] ticket {ticket.id} mirrors {issue.key}: {observed}")
        return 0
    finally:
        tickets.delete_ticket(ticket.id)
        print(f"[deleted] ticket={ticket.id}")


if __name__ == "__main__":
    sys.exit(main())
