"""환경 변수 기반 스위퍼 설정을 중앙에서 관리합니다."""

from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class RecordTypeConfig(BaseModel):
    table: str | None = None
    parent: str | None = None
    versioned: bool = True


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./sweeper.db"
    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Retention
    SWEEPER_KEEP_VERSIONS: int = 10
    SWEEPER_PAGE_SIZE: int = 100
    # 레코드 타입 이름 -> {table, parent, versioned}. parent 가 없는 versioned 타입만 기준 타입으로 순회한다.
    SWEEPER_RECORD_TYPES: Dict[str, RecordTypeConfig] = {}

    # Snapshot ledger
    SWEEPER_SNAPSHOTS_ENABLED: bool = False
    SWEEPER_SNAPSHOT_EXCLUDED_TYPES: List[str] = ["SnapshotEvent"]

    class Config:
        # 실행 cwd와 무관하게 backend/.env를 로드한다.
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
