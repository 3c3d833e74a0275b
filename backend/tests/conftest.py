from datetime import datetime, timedelta

import pytest
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, create_engine, insert, select, func
from sqlalchemy.orm import declarative_base, sessionmaker

import sweeper.models  # noqa: F401 - 원장 모델을 metadata에 등록
from sweeper.database import Base
from sweeper.services.schema_namer import SchemaNamer
from sweeper.services.version_store import VersionStore

VersionedBase = declarative_base()


class Article(VersionedBase):
    __tablename__ = "Article"
    __versioned__ = True

    ID = Column(Integer, primary_key=True)
    ClassName = Column(String(50), nullable=False)
    Title = Column(String(200))

    __mapper_args__ = {"polymorphic_on": ClassName, "polymorphic_identity": "Article"}


class NewsArticle(Article):
    __tablename__ = "NewsArticle"

    ID = Column(Integer, ForeignKey("Article.ID"), primary_key=True)
    Source = Column(String(200))

    __mapper_args__ = {"polymorphic_identity": "NewsArticle"}


class Tag(VersionedBase):
    __tablename__ = "Tag"

    ID = Column(Integer, primary_key=True)
    Name = Column(String(50))


def _versions_table(name: str, *extra):
    return Table(
        f"{name}_Versions",
        VersionedBase.metadata,
        Column("ID", Integer, primary_key=True, autoincrement=True),
        Column("RecordID", Integer, nullable=False, index=True),
        Column("Version", Integer, nullable=False),
        Column("LastEdited", DateTime),
        *extra,
    )


ArticleVersions = _versions_table("Article", Column("Title", String(200)))
NewsArticleVersions = _versions_table("NewsArticle", Column("Source", String(200)))

BASE_TIME = datetime(2026, 1, 1, 9, 0, 0)


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'sweeper_test.db'}", connect_args={"check_same_thread": False})
    VersionedBase.metadata.create_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db):
    return VersionStore(db)


@pytest.fixture
def namer():
    return SchemaNamer.from_declarative(VersionedBase)


def add_live(db, *record_ids, news=False):
    for record_id in record_ids:
        if news:
            db.add(NewsArticle(ID=record_id, Title=f"News {record_id}", Source="wire"))
        else:
            db.add(Article(ID=record_id, Title=f"Article {record_id}"))
    db.commit()


def add_versions(db, record_id, versions, news=False):
    rows = [
        {
            "RecordID": record_id,
            "Version": version,
            "LastEdited": BASE_TIME + timedelta(minutes=version),
            "Title": f"Article {record_id} v{version}",
        }
        for version in versions
    ]
    db.execute(insert(ArticleVersions), rows)
    if news:
        db.execute(
            insert(NewsArticleVersions),
            [
                {
                    "RecordID": record_id,
                    "Version": version,
                    "LastEdited": BASE_TIME + timedelta(minutes=version),
                    "Source": "wire",
                }
                for version in versions
            ],
        )
    db.commit()


def add_sub_versions(db, record_id, versions):
    db.execute(
        insert(NewsArticleVersions),
        [{"RecordID": record_id, "Version": version, "Source": "wire"} for version in versions],
    )
    db.commit()


def remaining_versions(db, record_id, table=ArticleVersions):
    stmt = select(table.c.Version).where(table.c.RecordID == record_id).order_by(table.c.Version)
    return list(db.execute(stmt).scalars().all())


def count_rows(db, table=ArticleVersions):
    return db.execute(select(func.count()).select_from(table)).scalar()
