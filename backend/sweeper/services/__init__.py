"""서비스 레이어 패키지 초기화 모듈입니다."""

from sweeper.services import (
    retention_policy,
    schema_namer,
    version_store,
    retention_service,
    snapshot_service,
    prune_job,
)
