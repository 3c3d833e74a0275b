"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from sweeper.models.snapshot import SnapshotEntry, SnapshotItem

__all__ = ["SnapshotEntry", "SnapshotItem"]
