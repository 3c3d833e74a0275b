"""초안/보관 레코드 버전 보존 정리 패스를 검증합니다."""

import pytest

from sweeper.services.retention_policy import RetentionPolicy
from sweeper.services.retention_service import (
    ARCHIVED_RETENTION,
    DRAFT_RETENTION,
    ArchivedRetentionPruner,
    DraftRetentionPruner,
    _RetentionPass,
    delete_archived_versions,
)
from tests.conftest import add_live, add_versions, count_rows, remaining_versions


def test_draft_pass_keeps_last_ten_versions(db, store, namer):
    add_live(db, 1)
    add_versions(db, 1, range(1, 16))

    result = DraftRetentionPruner(store, namer, RetentionPolicy(keep_versions=10)).run("Article")

    assert result.pass_name == DRAFT_RETENTION
    assert result.table == "Article_Versions"
    assert result.cleared == 5
    assert remaining_versions(db, 1) == list(range(6, 16))


@pytest.mark.parametrize("total,keep", [(1, 3), (3, 3), (4, 3), (12, 3), (7, 1)])
def test_draft_pass_leaves_keep_versions_when_history_is_longer(db, store, namer, total, keep):
    add_live(db, 1)
    add_versions(db, 1, range(1, total + 1))

    DraftRetentionPruner(store, namer, RetentionPolicy(keep_versions=keep)).run("Article")

    expected = list(range(max(total - keep, 0) + 1, total + 1))
    assert remaining_versions(db, 1) == expected


def test_draft_pass_pages_through_all_live_records(db, store, namer):
    add_live(db, *range(1, 8))
    for record_id in range(1, 8):
        add_versions(db, record_id, range(1, 6))

    result = DraftRetentionPruner(store, namer, RetentionPolicy(keep_versions=2), page_size=3).run("Article")

    assert result.cleared == 7 * 3
    for record_id in range(1, 8):
        assert remaining_versions(db, record_id) == [4, 5]


def test_draft_pass_ignores_records_without_live_row(db, store, namer):
    add_live(db, 1)
    add_versions(db, 1, range(1, 6))
    add_versions(db, 2, range(1, 6))

    DraftRetentionPruner(store, namer, RetentionPolicy(keep_versions=2)).run("Article")

    assert remaining_versions(db, 1) == [4, 5]
    assert remaining_versions(db, 2) == [1, 2, 3, 4, 5]


def test_draft_pass_is_idempotent(db, store, namer):
    add_live(db, 1, 2)
    add_versions(db, 1, range(1, 9))
    add_versions(db, 2, range(1, 4))
    pruner = DraftRetentionPruner(store, namer, RetentionPolicy(keep_versions=3))

    assert pruner.run("Article").cleared == 5
    assert pruner.run("Article").cleared == 0


def test_dry_run_count_matches_real_deletion(db, store, namer):
    add_live(db, 1, 2)
    add_versions(db, 1, range(1, 13))
    add_versions(db, 2, range(1, 5))
    add_versions(db, 3, range(1, 8))
    before = count_rows(db)

    dry = ArchivedRetentionPruner(store, namer, RetentionPolicy(keep_versions=2, dry_run=True)).run("Article")
    assert count_rows(db) == before
    assert dry.dry_run is True

    real = ArchivedRetentionPruner(store, namer, RetentionPolicy(keep_versions=2)).run("Article")
    assert real.cleared == dry.cleared == 10 + 2 + 5
    assert count_rows(db) == before - real.cleared


def test_archived_pass_keeps_history_window_for_deleted_records(db, store, namer):
    add_live(db, 1)
    add_versions(db, 1, range(1, 6))
    add_versions(db, 2, range(1, 6))

    result = ArchivedRetentionPruner(store, namer, RetentionPolicy(keep_versions=2)).run("Article")

    assert result.pass_name == ARCHIVED_RETENTION
    assert result.cleared == 6
    assert remaining_versions(db, 1) == [4, 5]
    assert remaining_versions(db, 2) == [4, 5]


def test_archived_pass_with_keep_zero_visits_every_record(db, store, namer):
    for record_id in range(1, 6):
        add_versions(db, record_id, range(1, 4))

    result = ArchivedRetentionPruner(store, namer, RetentionPolicy(keep_versions=0), page_size=2).run("Article")

    assert result.cleared == 15
    assert count_rows(db) == 0


def test_archived_pass_after_draft_pass_is_a_noop(db, store, namer):
    add_live(db, 1)
    add_versions(db, 1, range(1, 9))
    policy = RetentionPolicy(keep_versions=4)

    DraftRetentionPruner(store, namer, policy).run("Article")
    assert ArchivedRetentionPruner(store, namer, policy).run("Article").cleared == 0


def test_delete_archived_versions_wipes_history_of_deleted_records(db, store, namer):
    add_live(db, 1)
    add_versions(db, 1, range(1, 4))
    add_versions(db, 2, range(1, 4))

    dry = delete_archived_versions(store, namer, "Article", RetentionPolicy(dry_run=True))
    assert dry.cleared == 3
    assert remaining_versions(db, 2) == [1, 2, 3]

    result = delete_archived_versions(store, namer, "Article", RetentionPolicy())
    assert result.cleared == 3
    assert remaining_versions(db, 1) == [1, 2, 3]
    assert remaining_versions(db, 2) == []


def _cleared_messages(caplog):
    return [record.getMessage() for record in caplog.records if "Cleared" in record.getMessage()]


def test_dry_run_pass_logs_prefixed_count_and_table(db, store, namer, caplog):
    add_live(db, 1)
    add_versions(db, 1, range(1, 16))

    with caplog.at_level("INFO", logger="sweeper"):
        DraftRetentionPruner(store, namer, RetentionPolicy(keep_versions=10, dry_run=True)).run("Article")

    assert _cleared_messages(caplog) == [
        "[sweeper] (dry-run): Cleared 5 old versions (before last 10) from table Article_Versions"
    ]


def test_mutating_pass_logs_count_without_prefix(db, store, namer, caplog):
    add_versions(db, 2, range(1, 9))

    with caplog.at_level("INFO", logger="sweeper"):
        ArchivedRetentionPruner(store, namer, RetentionPolicy(keep_versions=2)).run("Article")

    assert _cleared_messages(caplog) == [
        "[sweeper] Cleared 6 old archived versions (before last 2) from table Article_Versions"
    ]


def test_delete_archived_versions_logs_count(db, store, namer, caplog):
    add_versions(db, 2, range(1, 4))

    with caplog.at_level("INFO", logger="sweeper"):
        delete_archived_versions(store, namer, "Article", RetentionPolicy(dry_run=True))

    assert _cleared_messages(caplog) == ["[sweeper] (dry-run): Cleared 3 rows from Article_Versions for deleted records"]


def test_nothing_logged_when_nothing_cleared(db, store, namer, caplog):
    add_live(db, 1)
    add_versions(db, 1, range(1, 4))
    policy = RetentionPolicy(keep_versions=10)

    with caplog.at_level("INFO", logger="sweeper"):
        DraftRetentionPruner(store, namer, policy).run("Article")
        ArchivedRetentionPruner(store, namer, policy).run("Article")
        delete_archived_versions(store, namer, "Article", policy)

    assert _cleared_messages(caplog) == []


def test_pass_without_record_pages_cannot_be_instantiated(store, namer):
    class _NoPages(_RetentionPass):
        pass_name = "no_pages"

    with pytest.raises(TypeError):
        _NoPages(store, namer, RetentionPolicy())
