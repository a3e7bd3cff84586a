"""Comparison-ready projection of a Jira issue."""

from __future__ import annotations

from dataclasses import dataclass

UNRESOLVED = "Unresolved"
NO_FIX_VERSIONS = "None"


@dataclass(frozen=True)
class IssueProjection:
    key: str
    type: str
    resolution: str = UNRESOLVED
    fix_versions: tuple[str, ...] = ()

    @property
    def fix_versions_value(self) -> str:
        """Fix versions as written to Zendesk: comma joined in Jira's order, ``"None"`` when empty."""
        if not self.fix_versions:
            return NO_FIX_VERSIONS
        return ",".join(self.fix_versions)
