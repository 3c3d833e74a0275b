"""버전 정리 작업 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from typing import Any, List

from pydantic import BaseModel


class PassResultOut(BaseModel):
    record_type: str
    pass_name: str
    table: str
    cleared: int
    dry_run: bool


class ObjectErrorOut(BaseModel):
    record_id: Any
    message: str


class SnapshotResultOut(BaseModel):
    record_type: str
    cleared: int
    kept: int
    objects: int
    dry_run: bool
    errors: List[ObjectErrorOut] = []


class PruneReportOut(BaseModel):
    mode: str
    keep_versions: int
    record_types: List[str]
    passes: List[PassResultOut]
    snapshots: List[SnapshotResultOut]
    total_cleared: int
    total_snapshots_cleared: int
