from __future__ import annotations

import pytest

from zendesk_jira_sync.core.exceptions import TicketMappingError
from zendesk_jira_sync.integrations.jira.mapper import map_issue_projection
from zendesk_jira_sync.sync.engine import PollEngine, merge_issues
from zendesk_jira_sync.sync.schemas import CycleMode, CycleStatus, TicketSelection


def _fields(update) -> dict[int, object]:  # noqa: ANN001
    return {field.id: field.value for field in update.custom_fields}


def test_first_full_cycle_writes_every_linked_ticket(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "K-1")
    issue_gateway.put("K-1", issue_type="Bug", resolution="Unresolved")

    result = engine.run_cycle(CycleMode.full, sequence=1)

    assert result.status == CycleStatus.ok
    assert result.sequence == 1
    assert result.issues_changed == 1
    assert result.tickets_updated == 1
    [batch] = ticket_gateway.updates
    assert [update.id for update in batch] == [1]
    ids = engine.field_ids
    assert _fields(batch[0]) == {
        ids.issue_type: "Bug",
        ids.resolution: "Unresolved",
        ids.fix_versions: "None",
    }


def test_resolution_object_change_is_written_as_name(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "K-1")
    issue_gateway.put("K-1")
    engine.run_cycle(CycleMode.full)

    issue_gateway.remote["K-1"] = map_issue_projection(
        {
            "key": "K-1",
            "fields": {
                "issuetype": {"name": "Bug"},
                "resolution": {"id": "1", "name": "Fixed"},
                "fixVersions": [],
            },
        }
    )
    result = engine.run_cycle(CycleMode.full)

    assert result.issues_changed == 1
    assert _fields(ticket_gateway.updates[-1][0])[engine.field_ids.resolution] == "Fixed"
    assert engine.cache.get("K-1").resolution == "Fixed"


def test_duplicate_links_fetch_each_key_once_in_first_seen_order(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "K-2")
    ticket_gateway.add(2, "K-1")
    ticket_gateway.add(3, "https://jira.example.com/browse/K-2")
    ticket_gateway.add(4, "K-1")
    issue_gateway.put("K-1")
    issue_gateway.put("K-2")

    result = engine.run_cycle(CycleMode.full)

    assert issue_gateway.fetches == [["K-2", "K-1"]]
    assert result.tickets_considered == 4
    assert sorted(update.id for update in ticket_gateway.updates[0]) == [1, 2, 3, 4]


def test_second_full_cycle_without_remote_change_writes_nothing(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "K-1")
    ticket_gateway.add(2, "K-2")
    issue_gateway.put("K-1")
    issue_gateway.put("K-2", fix_versions=("7.0",))

    engine.run_cycle(CycleMode.full)
    second = engine.run_cycle(CycleMode.full)

    assert len(ticket_gateway.updates) == 1
    assert second.status == CycleStatus.noop
    assert second.issues_changed == 0
    assert second.tickets_updated == 0


def test_no_tickets_is_a_noop_without_issue_fetch(engine, ticket_gateway, issue_gateway) -> None:
    result = engine.run_cycle(CycleMode.full)

    assert result.status == CycleStatus.noop
    assert issue_gateway.fetches == []
    assert ticket_gateway.updates == []


def test_tickets_without_link_value_are_skipped(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "   ")
    ticket_gateway.add(2, "K-1")
    issue_gateway.put("K-1")

    engine.run_cycle(CycleMode.full)

    assert issue_gateway.fetches == [["K-1"]]
    assert [update.id for update in ticket_gateway.updates[0]] == [2]


def test_github_links_stay_out_of_the_issue_query(engine, ticket_gateway, issue_gateway, caplog) -> None:
    ticket_gateway.add(1, "DOC-4116")
    ticket_gateway.add(2, "https://github.com/acme/widgets/issues/123")
    issue_gateway.put("DOC-4116")

    with caplog.at_level("WARNING"):
        result = engine.run_cycle(CycleMode.full)

    assert result.status == CycleStatus.ok
    assert issue_gateway.fetches == [["DOC-4116"]]
    assert [update.id for update in ticket_gateway.updates[0]] == [1]
    assert "not a JIRA issue key" in caplog.text
    assert "123" not in engine.cache


def test_fix_versions_written_in_jira_order(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "DOC-4116")
    issue_gateway.put("DOC-4116", issue_type="Task", resolution="Task Complete", fix_versions=("6.0", "5.1"))

    engine.run_cycle(CycleMode.full)

    assert _fields(ticket_gateway.updates[0][0])[engine.field_ids.fix_versions] == "6.0,5.1"


def test_considered_selection_updates_tickets_of_unchanged_issues(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "K-1")
    ticket_gateway.add(2, "K-2")
    issue_gateway.put("K-1")
    issue_gateway.put("K-2")
    engine.run_cycle(CycleMode.full)

    issue_gateway.put("K-1", resolution="Done")
    result = engine.run_cycle(CycleMode.full)

    assert result.issues_changed == 1
    assert sorted(update.id for update in ticket_gateway.updates[-1]) == [1, 2]


def test_changed_selection_updates_only_changed_issue_tickets(engine, ticket_gateway, issue_gateway) -> None:
    engine = PollEngine(ticket_gateway, issue_gateway, engine.field_ids, selection=TicketSelection.changed)
    ticket_gateway.add(1, "K-1")
    ticket_gateway.add(2, "K-2")
    issue_gateway.put("K-1")
    issue_gateway.put("K-2")
    engine.run_cycle(CycleMode.full)

    issue_gateway.put("K-1", resolution="Done")
    engine.run_cycle(CycleMode.full)

    assert [update.id for update in ticket_gateway.updates[-1]] == [1]


def test_ticket_without_id_aborts_write_back(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "K-1")
    ticket_gateway.add(None, "K-1")
    issue_gateway.put("K-1")

    with pytest.raises(TicketMappingError):
        engine.run_cycle(CycleMode.full)

    assert ticket_gateway.updates == []
    # cache keeps what was observed before the failure
    assert "K-1" in engine.cache


def test_failed_update_keeps_cache_and_next_cycle_is_noop(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "K-1")
    issue_gateway.put("K-1")
    ticket_gateway.fail_updates = True

    with pytest.raises(RuntimeError):
        engine.run_cycle(CycleMode.full)

    ticket_gateway.fail_updates = False
    result = engine.run_cycle(CycleMode.full)
    assert result.status == CycleStatus.noop
    assert engine.cache.get("K-1").type == "Bug"


def test_recent_cycle_picks_up_relinked_ticket(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "K-1")
    issue_gateway.put("K-1")
    issue_gateway.put("K-9", issue_type="Task")
    engine.run_cycle(CycleMode.full)

    ticket_gateway.add(2, "K-9", recent=True)
    result = engine.run_cycle(CycleMode.recent)

    assert ticket_gateway.searches[-1] is True
    assert issue_gateway.fetches[-1] == ["K-9"]
    assert result.issues_changed == 1
    assert [update.id for update in ticket_gateway.updates[-1]] == [2]


def test_recent_cycle_catches_jira_change_on_untouched_ticket(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "K-1")
    ticket_gateway.add(2, "K-2")
    issue_gateway.put("K-1")
    issue_gateway.put("K-2")
    engine.run_cycle(CycleMode.full)

    issue_gateway.put("K-2", fix_versions=("1.0",))
    issue_gateway.recently_changed = ["K-2"]
    result = engine.run_cycle(CycleMode.recent)

    # recent search, then the full search because a tracked issue moved
    assert ticket_gateway.searches[-2:] == [True, False]
    assert issue_gateway.recent_queries[-1] == ["K-1", "K-2"]
    assert result.issues_changed == 1
    [update] = ticket_gateway.updates[-1]
    assert update.id == 2
    assert _fields(update)[engine.field_ids.fix_versions] == "1.0"


def test_recent_cycle_with_nothing_new_is_a_noop(engine, ticket_gateway, issue_gateway) -> None:
    ticket_gateway.add(1, "K-1")
    issue_gateway.put("K-1")
    engine.run_cycle(CycleMode.full)

    result = engine.run_cycle(CycleMode.recent)

    assert result.status == CycleStatus.noop
    assert ticket_gateway.searches[-1] is True
    assert len(ticket_gateway.updates) == 1


def test_recent_cycle_on_cold_cache_does_not_query_tracked_issues(engine, ticket_gateway, issue_gateway) -> None:
    result = engine.run_cycle(CycleMode.recent)

    assert result.status == CycleStatus.noop
    assert issue_gateway.recent_queries == []
    assert issue_gateway.fetches == []


def test_merge_issues_last_copy_wins(issue_gateway) -> None:
    older = issue_gateway.put("K-1", resolution="Unresolved")
    newer = issue_gateway.put("K-1", resolution="Fixed")
    other = issue_gateway.put("K-2")

    merged = merge_issues([older, other], [newer])

    assert merged == [newer, other]
