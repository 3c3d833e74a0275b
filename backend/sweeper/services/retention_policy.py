"""실행 모드와 버전 보존 정책 값 객체를 정의합니다."""

from dataclasses import dataclass
from enum import Enum

from sweeper.exceptions import ConfigurationError

DEFAULT_KEEP_VERSIONS = 10
DRY_RUN_PREFIX = "(dry-run): "


class RunMode(str, Enum):
    DRY = "dry"
    YES = "yes"
    FAST = "fast"


def parse_run_mode(value) -> RunMode:
    if isinstance(value, RunMode):
        return value
    try:
        return RunMode(value)
    except ValueError:
        raise ConfigurationError(
            "Please provide the 'run' argument with either 'yes', 'dry', or 'fast'"
        ) from None


@dataclass(frozen=True)
class RetentionPolicy:
    keep_versions: int = DEFAULT_KEEP_VERSIONS
    dry_run: bool = False
    fast: bool = False

    @classmethod
    def for_mode(cls, mode, keep_versions: int | None = None, default_keep: int = DEFAULT_KEEP_VERSIONS):
        run_mode = parse_run_mode(mode)
        # 명시된 keep 값이 양수가 아니면 기본값을 쓴다.
        keep = keep_versions if keep_versions and keep_versions > 0 else default_keep
        return cls(
            keep_versions=keep,
            dry_run=run_mode is RunMode.DRY,
            fast=run_mode is RunMode.FAST,
        )

    @property
    def mode(self) -> RunMode:
        if self.dry_run:
            return RunMode.DRY
        if self.fast:
            return RunMode.FAST
        return RunMode.YES

    @property
    def message_prefix(self) -> str:
        return DRY_RUN_PREFIX if self.dry_run else ""
