"""스위퍼 작업에서 사용하는 예외 계층입니다."""


class SweeperError(Exception):
    """스위퍼 예외의 기본 클래스"""


class ConfigurationError(SweeperError, ValueError):
    """실행 모드나 스키마 설정 오류. 저장소 접근 전에 발생한다."""


class StoreError(SweeperError):
    def __init__(self, message: str, record_type: str | None = None):
        super().__init__(message)
        self.record_type = record_type


class StoreUnavailableError(StoreError):
    """저장소 연결 불가 또는 작업 도중 연결 끊김"""


class StoreQueryError(StoreError):
    """연결은 정상이지만 구문이 실패한 경우(테이블 누락, 권한 등)"""
