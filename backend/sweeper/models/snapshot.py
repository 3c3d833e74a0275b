"""스냅샷 원장(변경 이력 보조 로그) 테이블의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from sweeper.database import Base


class SnapshotEntry(Base):
    __tablename__ = "snapshot_entry"

    entry_id = Column(Integer, primary_key=True, autoincrement=True)
    origin_hash = Column(String(64), nullable=False)  # 변경의 기준 객체 해시
    activity_type = Column(String(20), nullable=False)  # CREATED/UPDATED/DELETED/ADD_RELATION/REMOVE_RELATION
    last_edited = Column(DateTime, nullable=False, server_default=func.now())

    items = relationship("SnapshotItem", back_populates="entry")

    __table_args__ = (
        Index("idx_snapshot_entry_origin", "origin_hash", "last_edited"),
    )


class SnapshotItem(Base):
    __tablename__ = "snapshot_item"

    item_id = Column(Integer, primary_key=True, autoincrement=True)
    entry_id = Column(Integer, ForeignKey("snapshot_entry.entry_id"), nullable=False)
    object_hash = Column(String(64), nullable=False)  # 변경에 포함된 객체 해시

    entry = relationship("SnapshotEntry", back_populates="items")

    __table_args__ = (
        Index("idx_snapshot_item_object", "object_hash"),
    )
