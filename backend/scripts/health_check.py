"""Verify connectivity to the Zendesk and Jira APIs with the current environment."""

from __future__ import annotations

import sys

from zendesk_jira_sync.core.logging import setup_logging
from zendesk_jira_sync.services.health import check_connectivity


def main() -> int:
    setup_logging()
    status = check_connectivity()
    for name, ok in status.items():
        print(f"[{name}] {'reachable' if ok else 'unreachable'}")
    return 0 if all(status.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
