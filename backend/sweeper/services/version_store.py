"""스위퍼가 저장소에 접근하는 최소 조회/실행 인터페이스입니다.

모든 구문은 SQLAlchemy Core 표현식으로 만들고 값은 항상 바인드 파라미터로 전달한다.
테이블 이름은 스키마 조회에서 오므로 식별자 검증을 거친 뒤 dialect가 인용한다.
"""

from contextlib import contextmanager
from typing import Iterator, List

from sqlalchemy import column, select, table, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session

from sweeper.exceptions import StoreUnavailableError
from sweeper.utils.identifiers import validate_identifier

ID_COLUMN = "ID"
RECORD_ID_COLUMN = "RecordID"
VERSION_COLUMN = "Version"
LAST_EDITED_COLUMN = "LastEdited"

DEFAULT_PAGE_SIZE = 100


def live_table(name: str):
    return table(validate_identifier(name, "table name"), column(ID_COLUMN))


def version_table(name: str):
    return table(
        validate_identifier(name, "table name"),
        column(ID_COLUMN),
        column(RECORD_ID_COLUMN),
        column(VERSION_COLUMN),
        column(LAST_EDITED_COLUMN),
    )


class VersionStore:
    def __init__(self, db: Session):
        self.db = db

    def ping(self) -> None:
        try:
            self.db.execute(text("SELECT 1"))
        except DBAPIError as exc:
            raise StoreUnavailableError(f"No working store connection: {exc}") from exc

    def execute_query(self, stmt) -> list:
        return list(self.db.execute(stmt).all())

    def scalar(self, stmt):
        return self.db.execute(stmt).scalar()

    def rollback(self) -> None:
        self.db.rollback()

    def execute_statement(self, stmt) -> int:
        # 단일 구문 단위로만 커밋한다. 작업 전체의 원자성은 호출자가 책임진다.
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return max(result.rowcount or 0, 0)

    @contextmanager
    def page_scope(self):
        """페이지 처리가 끝나면 세션에 쌓인 객체를 비운다."""
        try:
            yield
        finally:
            self.db.expunge_all()

    def enumerate_live_records(self, table_name: str, page_offset: int, page_size: int) -> List[int]:
        live = live_table(table_name)
        stmt = (
            select(live.c[ID_COLUMN])
            .order_by(live.c[ID_COLUMN])
            .limit(page_size)
            .offset(page_offset)
        )
        return list(self.db.execute(stmt).scalars().all())

    def iter_live_record_pages(self, table_name: str, page_size: int = DEFAULT_PAGE_SIZE) -> Iterator[List[int]]:
        offset = 0
        while True:
            with self.page_scope():
                ids = self.enumerate_live_records(table_name, offset, page_size)
                if not ids:
                    return
                yield ids
            if len(ids) < page_size:
                return
            offset += page_size

    def iter_versioned_record_ids(self, table_name: str, page_size: int = DEFAULT_PAGE_SIZE) -> Iterator[List[int]]:
        # 처리 중 이력이 모두 지워진 RecordID가 있어도 건너뛰지 않도록 keyset 방식으로 순회한다.
        versions = version_table(table_name)
        record_id = versions.c[RECORD_ID_COLUMN]
        last_id = None
        while True:
            stmt = select(record_id).distinct().order_by(record_id).limit(page_size)
            if last_id is not None:
                stmt = stmt.where(record_id > last_id)
            with self.page_scope():
                ids = list(self.db.execute(stmt).scalars().all())
                if not ids:
                    return
                yield ids
            if len(ids) < page_size:
                return
            last_id = ids[-1]
