"""레코드 타입 이름을 물리 테이블과 상속 체인 테이블 목록으로 매핑합니다."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

from sweeper.exceptions import ConfigurationError
from sweeper.utils.identifiers import validate_identifier

VERSIONS_SUFFIX = "_Versions"


@dataclass(frozen=True)
class RecordType:
    name: str
    table: str
    parent: str | None = None
    versioned: bool = True


class SchemaNamer:
    """레코드 타입과 물리 테이블 조회. 부모가 없는 타입이 기준 테이블을 갖고 하위 타입마다 서브테이블이 하나씩 붙는다."""

    def __init__(self, record_types: Iterable[RecordType] = ()):
        self._types: Dict[str, RecordType] = {}
        self._children: Dict[str, List[str]] = {}
        for record_type in record_types:
            self.register(record_type)

    def register(self, record_type: RecordType) -> RecordType:
        validate_identifier(record_type.name, "record type name")
        validate_identifier(record_type.table, "table name")
        if record_type.parent is not None:
            validate_identifier(record_type.parent, "record type name")
        if record_type.name in self._types:
            raise ConfigurationError(f"Record type registered twice: {record_type.name}")
        self._types[record_type.name] = record_type
        self._children.setdefault(record_type.name, [])
        if record_type.parent is not None:
            self._children.setdefault(record_type.parent, []).append(record_type.name)
        return record_type

    def get(self, name: str) -> RecordType:
        try:
            return self._types[name]
        except KeyError:
            raise ConfigurationError(f"Unknown record type: {name}") from None

    def table_name(self, name: str) -> str:
        return self.get(name).table

    def inheritance_chain(self, name: str) -> List[str]:
        chain: List[str] = []
        self._collect_tables(name, chain)
        return chain

    def _collect_tables(self, name: str, chain: List[str]) -> None:
        table = self.get(name).table
        # 단일 테이블 상속은 부모와 같은 테이블을 쓰므로 한 번만 넣는다.
        if table not in chain:
            chain.append(table)
        for child in self._children.get(name, []):
            self._collect_tables(child, chain)

    def subclass_tables(self, name: str) -> List[str]:
        base_table = self.table_name(name)
        return [table for table in self.inheritance_chain(name) if table != base_table]

    @staticmethod
    def version_table_name(table: str) -> str:
        return f"{validate_identifier(table, 'table name')}{VERSIONS_SUFFIX}"

    def base_record_types(self, exclude: Iterable[str] = ()) -> List[RecordType]:
        excluded = set(exclude)
        rows = []
        for record_type in self._types.values():
            if record_type.parent is not None:
                continue
            if not record_type.versioned or record_type.name in excluded:
                continue
            rows.append(record_type)
        return rows

    def validate(self) -> None:
        for record_type in self._types.values():
            if record_type.parent is not None and record_type.parent not in self._types:
                raise ConfigurationError(
                    f"Record type {record_type.name} has unknown parent {record_type.parent}"
                )

    @classmethod
    def from_config(cls, mapping: Mapping[str, object]) -> "SchemaNamer":
        namer = cls()
        for name, raw in mapping.items():
            if hasattr(raw, "model_dump"):
                raw = raw.model_dump()
            raw = dict(raw or {})
            namer.register(
                RecordType(
                    name=name,
                    table=raw.get("table") or name,
                    parent=raw.get("parent"),
                    versioned=bool(raw.get("versioned", True)),
                )
            )
        namer.validate()
        return namer

    @classmethod
    def from_declarative(cls, base) -> "SchemaNamer":
        """SQLAlchemy declarative base의 매퍼 상속 트리에서 레지스트리를 만든다.

        `__versioned__ = True` 가 선언된 루트 매퍼만 versioned 타입으로 본다.
        """
        namer = cls()
        mappers = sorted(base.registry.mappers, key=lambda m: m.class_.__name__)
        roots = [mapper for mapper in mappers if mapper.inherits is None]
        for root in roots:
            versioned = bool(getattr(root.class_, "__versioned__", False))
            namer._register_mapper(root, parent=None, versioned=versioned)
        return namer

    def _register_mapper(self, mapper, parent: str | None, versioned: bool) -> None:
        table = mapper.local_table
        self.register(
            RecordType(
                name=mapper.class_.__name__,
                table=table.name,
                parent=parent,
                versioned=versioned,
            )
        )
        for child in sorted(mapper.self_and_descendants, key=lambda m: m.class_.__name__):
            if child.inherits is mapper:
                self._register_mapper(child, parent=mapper.class_.__name__, versioned=versioned)

