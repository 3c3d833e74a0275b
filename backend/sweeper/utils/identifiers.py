"""테이블/컬럼 식별자 검증 유틸리티."""

from __future__ import annotations

import re

from sweeper.exceptions import ConfigurationError

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
MAX_IDENTIFIER_LENGTH = 64


def validate_identifier(name: str | None, kind: str = "identifier") -> str:
    """스키마 조회로 얻은 이름을 SQL 식별자로 쓰기 전에 검증한다."""
    if not isinstance(name, str) or not IDENTIFIER_RE.match(name):
        raise ConfigurationError(f"Invalid {kind}: {name!r}")
    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise ConfigurationError(f"{kind} too long: {name!r}")
    return name
