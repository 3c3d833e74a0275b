"""FastAPI 애플리케이션 진입점. 유지보수 API 라우터를 등록합니다."""

from fastapi import FastAPI

from sweeper.config import settings
from sweeper.database import Base, engine
import sweeper.models  # noqa: F401 - 모델 import로 metadata 등록
from sweeper.routers import maintenance

app = FastAPI(
    title="Version Sweeper",
    description="버전 이력 테이블의 보존 개수 정리와 고아 행 정리를 수행하는 유지보수 서비스",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(maintenance.router)


@app.on_event("startup")
def ensure_schema():
    # 스냅샷 원장을 쓰는 경우에만 원장 테이블을 생성합니다.
    if settings.SWEEPER_SNAPSHOTS_ENABLED:
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "Version Sweeper"}
