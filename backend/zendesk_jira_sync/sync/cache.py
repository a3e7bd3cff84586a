"""Last observed Jira state per issue key."""

from __future__ import annotations

from zendesk_jira_sync.integrations.jira.schemas import IssueProjection


def has_changed(cached: IssueProjection | None, fresh: IssueProjection) -> bool:
    if cached is None:
        return True
    return (
        cached.type != fresh.type
        or cached.resolution != fresh.resolution
        or cached.fix_versions_value != fresh.fix_versions_value
    )


class ReconciliationCache:
    """Issue key -> last projection seen by this process.

    Entries are never evicted. Only the poll engine writes to it, and only one
    cycle runs at a time, so reads and writes need no locking.
    """

    def __init__(self) -> None:
        self._entries: dict[str, IssueProjection] = {}

    def get(self, key: str) -> IssueProjection | None:
        return self._entries.get(key)

    def set(self, key: str, projection: IssueProjection) -> None:
        self._entries[key] = projection

    def keys(self) -> list[str]:
        return list(self._entries)

    def observe(self, projection: IssueProjection) -> bool:
        """Store ``projection`` if it differs from the cached entry; return whether it did."""
        if not has_changed(self._entries.get(projection.key), projection):
            return False
        self._entries[projection.key] = projection
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
