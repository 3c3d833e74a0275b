"""스냅샷 원장(콘텐츠 해시 기반 보조 변경 로그)을 보존 개수 기준으로 정리하는 도메인 서비스입니다."""

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sweeper.models.snapshot import SnapshotEntry, SnapshotItem
from sweeper.services.retention_policy import RetentionPolicy
from sweeper.services.schema_namer import SchemaNamer
from sweeper.services.version_store import DEFAULT_PAGE_SIZE, VersionStore

logger = logging.getLogger(__name__)


class ActivityType(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"
    ADD_RELATION = "ADD_RELATION"
    REMOVE_RELATION = "REMOVE_RELATION"


@dataclass
class LedgerEntry:
    entry_id: int
    origin_hash: str
    activity_type: str
    last_edited: datetime | None = None


class SnapshotLedger(Protocol):
    excluded_record_types: Iterable[str]

    def fetch_related_entries(self, record_type: str, record_id) -> List[LedgerEntry]:
        ...

    def compute_content_hash(self, record_type: str, record_id) -> str:
        ...

    def delete_entry(self, entry_id) -> None:
        ...


def hash_object(record_type: str, record_id) -> str:
    return hashlib.md5(f"{record_type}{record_id}".encode("utf-8")).hexdigest()


class SqlSnapshotLedger:
    def __init__(self, db: Session, excluded_record_types: Iterable[str] = ("SnapshotEvent",)):
        self.db = db
        self.excluded_record_types = tuple(excluded_record_types)

    def compute_content_hash(self, record_type: str, record_id) -> str:
        return hash_object(record_type, record_id)

    def fetch_related_entries(self, record_type: str, record_id) -> List[LedgerEntry]:
        object_hash = self.compute_content_hash(record_type, record_id)
        stmt = (
            select(SnapshotEntry)
            .join(SnapshotItem, SnapshotItem.entry_id == SnapshotEntry.entry_id)
            .where(SnapshotItem.object_hash == object_hash)
            .distinct()
            .order_by(SnapshotEntry.last_edited.desc(), SnapshotEntry.entry_id.desc())
        )
        return [
            LedgerEntry(
                entry_id=row.entry_id,
                origin_hash=row.origin_hash,
                activity_type=row.activity_type,
                last_edited=row.last_edited,
            )
            for row in self.db.execute(stmt).scalars().all()
        ]

    def delete_entry(self, entry_id) -> None:
        try:
            self.db.execute(delete(SnapshotItem).where(SnapshotItem.entry_id == entry_id))
            self.db.execute(delete(SnapshotEntry).where(SnapshotEntry.entry_id == entry_id))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise


@dataclass
class ObjectError:
    record_id: object
    message: str

    def to_dict(self):
        return {"record_id": self.record_id, "message": self.message}


@dataclass
class SnapshotResult:
    record_type: str
    cleared: int = 0
    kept: int = 0
    objects: int = 0
    dry_run: bool = False
    errors: List[ObjectError] = field(default_factory=list)

    def to_dict(self):
        return {
            "record_type": self.record_type,
            "cleared": self.cleared,
            "kept": self.kept,
            "objects": self.objects,
            "dry_run": self.dry_run,
            "errors": [error.to_dict() for error in self.errors],
        }


class SnapshotPruner:
    def __init__(self, store: VersionStore, namer: SchemaNamer, ledger: SnapshotLedger,
                 policy: RetentionPolicy, page_size: int = DEFAULT_PAGE_SIZE):
        self.store = store
        self.namer = namer
        self.ledger = ledger
        self.policy = policy
        self.page_size = page_size

    def prune_object(self, record_type: str, record_id):
        """객체 하나의 원장 항목을 최신순으로 보며 (삭제 수, 보존 수)를 반환한다.

        객체 자신의 전체 버전(origin 해시 일치, 삭제 아님)만 개수에 포함하고,
        보존 개수를 넘은 뒤의 항목은 관계 변경 항목까지 모두 지운다.
        """
        entries = self.ledger.fetch_related_entries(record_type, record_id)
        object_hash = self.ledger.compute_content_hash(record_type, record_id)

        full_versions = 0
        cleared = 0
        kept = 0
        for entry in entries:
            is_full_version = (
                entry.origin_hash == object_hash
                and entry.activity_type != ActivityType.DELETED.value
            )
            if is_full_version:
                full_versions += 1

            if full_versions <= self.policy.keep_versions:
                kept += 1
                continue

            cleared += 1
            if not self.policy.dry_run:
                self.ledger.delete_entry(entry.entry_id)
        return cleared, kept

    def run(self, record_type: str) -> SnapshotResult:
        prefix = self.policy.message_prefix
        logger.info("[sweeper] %sBeginning snapshot flush for %s", prefix, record_type)
        result = SnapshotResult(record_type=record_type, dry_run=self.policy.dry_run)

        for page in self.store.iter_live_record_pages(self.namer.table_name(record_type), self.page_size):
            for record_id in page:
                result.objects += 1
                try:
                    cleared, kept = self.prune_object(record_type, record_id)
                except Exception as exc:
                    # 실패한 구문이 남긴 트랜잭션을 정리한 뒤 다음 객체로 진행한다.
                    self.store.rollback()
                    logger.warning(
                        "[sweeper] %sException during parsing of object %s: %s (%s)",
                        prefix,
                        record_type,
                        record_id,
                        exc,
                    )
                    result.errors.append(ObjectError(record_id=record_id, message=str(exc)))
                    continue

                result.cleared += cleared
                result.kept += kept
                logger.info("[sweeper] %sCleared %s snapshots for %s: %s", prefix, cleared, record_type, record_id)
                logger.info("[sweeper] %sKept %s snapshots for %s: %s", prefix, kept, record_type, record_id)

        logger.info("[sweeper] %sCleared %s snapshots for %s", prefix, result.cleared, record_type)
        logger.info("[sweeper] %sKept %s snapshots for %s", prefix, result.kept, record_type)
        return result
