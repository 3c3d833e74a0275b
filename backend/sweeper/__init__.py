"""버전 이력 보존 개수 정리와 고아 행 정리를 수행하는 유지보수 패키지입니다."""
