"""버전 이력 정리 API 라우터입니다. 실행 모드를 검증하고 정리 작업을 서비스 레이어로 위임합니다."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from sweeper.config import settings
from sweeper.database import get_db
from sweeper.exceptions import ConfigurationError, StoreQueryError, StoreUnavailableError
from sweeper.middleware.auth_middleware import require_roles
from sweeper.schemas.prune import PruneReportOut
from sweeper.services.prune_job import create_prune_job
from sweeper.services.retention_policy import RetentionPolicy

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


@router.post("/prune-versions", response_model=PruneReportOut)
def prune_versions(
    run: str | None = None,
    keep: int | None = Query(None, ge=1),
    db: Session = Depends(get_db),
    _claims: dict = Depends(require_roles("admin")),
):
    try:
        # 저장소에 접근하기 전에 실행 모드를 먼저 검증한다.
        policy = RetentionPolicy.for_mode(run, keep_versions=keep, default_keep=settings.SWEEPER_KEEP_VERSIONS)
        job = create_prune_job(db, policy, settings)
        report = job.run()
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except StoreQueryError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return report.to_dict()
