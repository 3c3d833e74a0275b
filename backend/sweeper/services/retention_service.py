"""버전 이력 보존 정리(경계 계산, 초안/보관 레코드 정리, 서브테이블 고아 행 정리) 도메인 서비스입니다."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from sqlalchemy import and_, delete, func, select

from sweeper.services.retention_policy import RetentionPolicy
from sweeper.services.schema_namer import SchemaNamer
from sweeper.services.version_store import (
    DEFAULT_PAGE_SIZE,
    ID_COLUMN,
    RECORD_ID_COLUMN,
    VERSION_COLUMN,
    VersionStore,
    live_table,
    version_table,
)

logger = logging.getLogger(__name__)

DRAFT_RETENTION = "draft_retention"
ARCHIVED_RETENTION = "archived_retention"
ORPHANED_SUBTABLES = "orphaned_subtables"
ARCHIVED_WIPE = "archived_wipe"


@dataclass
class PassResult:
    record_type: str
    pass_name: str
    table: str
    cleared: int = 0
    dry_run: bool = False

    def to_dict(self):
        return {
            "record_type": self.record_type,
            "pass_name": self.pass_name,
            "table": self.table,
            "cleared": self.cleared,
            "dry_run": self.dry_run,
        }


def delete_or_count(store: VersionStore, target, predicate, dry_run: bool) -> int:
    # 드라이런 집계와 실제 삭제는 같은 조건식을 쓴다.
    if dry_run:
        stmt = select(func.count()).select_from(target).where(predicate)
        return int(store.scalar(stmt) or 0)
    return store.execute_statement(delete(target).where(predicate))


class BoundaryResolver:
    def __init__(self, store: VersionStore):
        self.store = store

    def resolve(self, version_table_name: str, record_id, keep_versions: int):
        """최신순 `keep_versions` 번째 다음 버전(삭제 가능한 가장 최신 버전)을 반환한다. 없으면 None."""
        versions = version_table(version_table_name)
        stmt = (
            select(versions.c[VERSION_COLUMN])
            .where(versions.c[RECORD_ID_COLUMN] == record_id)
            .order_by(versions.c[VERSION_COLUMN].desc())
            .limit(1)
            .offset(max(keep_versions, 0))
        )
        return self.store.scalar(stmt)


class _RetentionPass(ABC):
    pass_name = ""
    message = ""

    def __init__(self, store: VersionStore, namer: SchemaNamer, policy: RetentionPolicy,
                 page_size: int = DEFAULT_PAGE_SIZE):
        self.store = store
        self.namer = namer
        self.policy = policy
        self.page_size = page_size
        self.resolver = BoundaryResolver(store)

    def prune_record(self, version_table_name: str, record_id) -> int:
        bound = self.resolver.resolve(version_table_name, record_id, self.policy.keep_versions)
        # 보존 개수보다 버전이 적은 레코드는 대상이 아니다.
        if bound is None:
            return 0
        versions = version_table(version_table_name)
        predicate = and_(
            versions.c[RECORD_ID_COLUMN] == record_id,
            versions.c[VERSION_COLUMN] <= bound,
        )
        return delete_or_count(self.store, versions, predicate, self.policy.dry_run)

    @abstractmethod
    def record_pages(self, record_type: str):
        ...

    def run(self, record_type: str) -> PassResult:
        base_table = self.namer.table_name(record_type)
        versioned_table = self.namer.version_table_name(base_table)
        result = PassResult(
            record_type=record_type,
            pass_name=self.pass_name,
            table=versioned_table,
            dry_run=self.policy.dry_run,
        )
        for page in self.record_pages(record_type):
            for record_id in page:
                result.cleared += self.prune_record(versioned_table, record_id)

        if result.cleared:
            logger.info(
                "[sweeper] %sCleared %s %s (before last %s) from table %s",
                self.policy.message_prefix,
                result.cleared,
                self.message,
                self.policy.keep_versions,
                versioned_table,
            )
        return result


class DraftRetentionPruner(_RetentionPass):
    pass_name = DRAFT_RETENTION
    message = "old versions"

    def record_pages(self, record_type: str):
        return self.store.iter_live_record_pages(self.namer.table_name(record_type), self.page_size)


class ArchivedRetentionPruner(_RetentionPass):
    """활성 여부와 관계없이 버전 테이블에 남은 모든 레코드의 이력을 정리한다."""

    pass_name = ARCHIVED_RETENTION
    message = "old archived versions"

    def record_pages(self, record_type: str):
        versioned_table = self.namer.version_table_name(self.namer.table_name(record_type))
        return self.store.iter_versioned_record_ids(versioned_table, self.page_size)


class OrphanedSubtablePruner:
    def __init__(self, store: VersionStore, namer: SchemaNamer, policy: RetentionPolicy):
        self.store = store
        self.namer = namer
        self.policy = policy

    def run(self, record_type: str) -> List[PassResult]:
        base_versions = version_table(self.namer.version_table_name(self.namer.table_name(record_type)))
        results = []
        for sub_table in self.namer.subclass_tables(record_type):
            versioned_table = self.namer.version_table_name(sub_table)
            sub_versions = version_table(versioned_table)
            matching_base = (
                select(base_versions.c[ID_COLUMN])
                .where(
                    base_versions.c[RECORD_ID_COLUMN] == sub_versions.c[RECORD_ID_COLUMN],
                    base_versions.c[VERSION_COLUMN] == sub_versions.c[VERSION_COLUMN],
                )
                .correlate(sub_versions)
            )
            count = delete_or_count(self.store, sub_versions, ~matching_base.exists(), self.policy.dry_run)
            if count:
                logger.info(
                    "[sweeper] %sCleared %s rows from %s",
                    self.policy.message_prefix,
                    count,
                    versioned_table,
                )
            results.append(
                PassResult(
                    record_type=record_type,
                    pass_name=ORPHANED_SUBTABLES,
                    table=versioned_table,
                    cleared=count,
                    dry_run=self.policy.dry_run,
                )
            )
        return results


def delete_archived_versions(store: VersionStore, namer: SchemaNamer, record_type: str,
                             policy: RetentionPolicy) -> PassResult:
    """활성 행이 없는 레코드의 기준 테이블 이력을 모두 지운다. 정기 작업에는 포함되지 않는다."""
    base_table = namer.table_name(record_type)
    versioned_table = namer.version_table_name(base_table)
    live = live_table(base_table)
    versions = version_table(versioned_table)
    live_row = select(live.c[ID_COLUMN]).where(live.c[ID_COLUMN] == versions.c[RECORD_ID_COLUMN]).correlate(versions)
    count = delete_or_count(store, versions, ~live_row.exists(), policy.dry_run)
    if count:
        logger.info(
            "[sweeper] %sCleared %s rows from %s for deleted records",
            policy.message_prefix,
            count,
            versioned_table,
        )
    return PassResult(
        record_type=record_type,
        pass_name=ARCHIVED_WIPE,
        table=versioned_table,
        cleared=count,
        dry_run=policy.dry_run,
    )
