"""레코드 타입별 버전 정리 패스를 순서대로 실행하고 결과를 집계합니다."""

import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from sweeper.exceptions import StoreQueryError, StoreUnavailableError
from sweeper.services.retention_policy import RetentionPolicy
from sweeper.services.retention_service import (
    ArchivedRetentionPruner,
    DraftRetentionPruner,
    OrphanedSubtablePruner,
    PassResult,
)
from sweeper.services.schema_namer import SchemaNamer
from sweeper.services.snapshot_service import SnapshotLedger, SnapshotPruner, SnapshotResult, SqlSnapshotLedger
from sweeper.services.version_store import DEFAULT_PAGE_SIZE, VersionStore

logger = logging.getLogger(__name__)


@dataclass
class PruneReport:
    mode: str
    keep_versions: int
    record_types: List[str] = field(default_factory=list)
    passes: List[PassResult] = field(default_factory=list)
    snapshots: List[SnapshotResult] = field(default_factory=list)

    @property
    def total_cleared(self) -> int:
        return sum(row.cleared for row in self.passes)

    @property
    def total_snapshots_cleared(self) -> int:
        return sum(row.cleared for row in self.snapshots)

    def cleared_for(self, pass_name: str, table: str | None = None) -> int:
        return sum(
            row.cleared
            for row in self.passes
            if row.pass_name == pass_name and (table is None or row.table == table)
        )

    def to_dict(self):
        return {
            "mode": self.mode,
            "keep_versions": self.keep_versions,
            "record_types": list(self.record_types),
            "passes": [row.to_dict() for row in self.passes],
            "snapshots": [row.to_dict() for row in self.snapshots],
            "total_cleared": self.total_cleared,
            "total_snapshots_cleared": self.total_snapshots_cleared,
        }


class PruneJob:
    """기준 versioned 타입마다 스냅샷 원장, 초안, 보관, 서브테이블 고아 행 순서로 정리한다."""

    def __init__(
        self,
        store: VersionStore,
        namer: SchemaNamer,
        policy: RetentionPolicy,
        ledger: SnapshotLedger | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.store = store
        self.namer = namer
        self.policy = policy
        self.ledger = ledger
        self.page_size = page_size

    def record_types(self) -> List[str]:
        excluded = self.ledger.excluded_record_types if self.ledger is not None else ()
        return [row.name for row in self.namer.base_record_types(exclude=excluded)]

    def run(self) -> PruneReport:
        self.store.ping()
        report = PruneReport(mode=self.policy.mode.value, keep_versions=self.policy.keep_versions)
        for record_type in self.record_types():
            try:
                self.flush_record_type(record_type, report)
            except (OperationalError, InterfaceError) as exc:
                raise StoreUnavailableError(
                    f"Store became unavailable while flushing {record_type}: {exc}",
                    record_type=record_type,
                ) from exc
            except DBAPIError as exc:
                raise StoreQueryError(
                    f"Statement failed while flushing {record_type}: {exc}",
                    record_type=record_type,
                ) from exc

        logger.info("[sweeper] %sFlush complete!", self.policy.message_prefix)
        return report

    def flush_record_type(self, record_type: str, report: PruneReport) -> None:
        prefix = self.policy.message_prefix
        report.record_types.append(record_type)

        if self.ledger is not None and not self.policy.fast:
            snapshot_pruner = SnapshotPruner(self.store, self.namer, self.ledger, self.policy, self.page_size)
            report.snapshots.append(snapshot_pruner.run(record_type))

        logger.info("[sweeper] %sBeginning flush for %s", prefix, record_type)

        # 활성 레코드 순회는 대용량 테이블에서 느릴 수 있어 fast 모드에서는 건너뛴다.
        if not self.policy.fast:
            draft = DraftRetentionPruner(self.store, self.namer, self.policy, self.page_size)
            report.passes.append(draft.run(record_type))

        archived = ArchivedRetentionPruner(self.store, self.namer, self.policy, self.page_size)
        report.passes.append(archived.run(record_type))

        orphans = OrphanedSubtablePruner(self.store, self.namer, self.policy)
        report.passes.extend(orphans.run(record_type))

        logger.info("[sweeper] %sDone flushing %s", prefix, record_type)


def create_prune_job(db, policy: RetentionPolicy, config) -> PruneJob:
    """설정 객체에서 스키마 레지스트리와 원장 사용 여부를 읽어 작업을 구성한다."""
    namer = SchemaNamer.from_config(config.SWEEPER_RECORD_TYPES)
    ledger = None
    if config.SWEEPER_SNAPSHOTS_ENABLED:
        ledger = SqlSnapshotLedger(db, excluded_record_types=config.SWEEPER_SNAPSHOT_EXCLUDED_TYPES)
    return PruneJob(
        VersionStore(db),
        namer,
        policy,
        ledger=ledger,
        page_size=config.SWEEPER_PAGE_SIZE,
    )
