# [파일 설명]
# - 목적: CREATE TABLE/CREATE VIEW DDL 스크립트를 sqlglot으로 파싱해 컬럼 디스크립터를 만든다.
# - 제공 기능: NOT NULL/DEFAULT/AUTO_INCREMENT/IDENTITY/COMMENT 제약 해석과 enum 값 추출을 제공한다.
# - 입력/출력: DDL 문자열과 방언을 받아 SchemaSource 인터페이스로 결과를 제공한다.
# - 주의 사항: 쿼리로 정의된 뷰는 컬럼 목록이 없으므로 디스크립터를 만들지 않는다.
# - 연관 모듈: generator, API 레이어(/mcp/generate/ddl)에서 사용된다.
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from sqlglot import exp, parse
from sqlglot.errors import ParseError, TokenError

from typegen.services.descriptors import ColumnDescriptor, Entity
from typegen.services.errors import ConfigurationError, SchemaParseError
from typegen.services.magic_comments import has_ignore_directive, has_table_ignore_directive
from typegen.services.safe_text import summarize_text
from typegen.services.type_mappings import ENUM_LITERAL_PATTERN

logger = logging.getLogger(__name__)

SUPPORTED_DIALECTS = ("mysql", "postgres", "sqlite")

CREATE_ENUM_TYPE_PATTERN = re.compile(
    r"CREATE\s+TYPE\s+(?:\w+\.)?\"?(\w+)\"?\s+AS\s+ENUM\s*\(([^)]*)\)\s*;?",
    re.IGNORECASE,
)

SERIAL_TYPES = frozenset(
    {
        exp.DataType.Type.SERIAL,
        exp.DataType.Type.SMALLSERIAL,
        exp.DataType.Type.BIGSERIAL,
    }
)


@dataclass
class _ColumnState:
    name: str
    raw_type: str
    is_nullable: bool = True
    is_primary_key: bool = False
    is_integer: bool = False
    default_literal: str | None = None
    is_auto_generated: bool = False
    enum_values: tuple[str, ...] | None = None
    comment: str = ""


@dataclass
class _TableState:
    entity: Entity
    comment: str = ""
    columns: list[_ColumnState] = field(default_factory=list)


def default_from_expression(node: exp.Expression) -> tuple[str | None, bool]:
    if isinstance(node, exp.Null):
        return None, False
    if isinstance(node, exp.Literal):
        return node.name, False
    if isinstance(node, exp.Boolean):
        return ("true" if node.this else "false"), False
    if isinstance(node, exp.Neg) and isinstance(node.this, exp.Literal):
        return f"-{node.this.name}", False
    if isinstance(node, exp.Cast):
        return default_from_expression(node.this)
    return None, True


class DdlSource:
    views_enabled = True

    def __init__(self, ddl: str, dialect: str = "mysql") -> None:
        if dialect not in SUPPORTED_DIALECTS:
            raise ConfigurationError(f"Unsupported DDL dialect: {dialect}")
        self.dialect = dialect
        summary = summarize_text(ddl)
        logger.info(
            "ddl_source: dialect=%s ddl_len=%s ddl_hash=%s",
            dialect,
            summary["len"],
            summary["sha256_8"],
        )
        self._enum_types: dict[str, tuple[str, ...]] = {}
        self._tables: dict[str, _TableState] = {}
        self._load(ddl)

    def _load(self, ddl: str) -> None:
        for match in CREATE_ENUM_TYPE_PATTERN.finditer(ddl):
            labels = tuple(
                label.group(1).replace("''", "'")
                for label in ENUM_LITERAL_PATTERN.finditer(match.group(2))
            )
            self._enum_types[match.group(1).lower()] = labels
        ddl = CREATE_ENUM_TYPE_PATTERN.sub("", ddl)

        try:
            statements = parse(ddl, read=self.dialect)
        except ParseError as exc:
            location = exc.errors[0] if exc.errors else {}
            raise SchemaParseError(
                "DDL could not be parsed at line {}, column {}: {}".format(
                    location.get("line"), location.get("col"), location.get("description")
                )
            ) from exc
        except TokenError as exc:
            raise SchemaParseError("DDL could not be tokenized.") from exc

        for statement in statements:
            if isinstance(statement, exp.Create):
                self._load_create(statement)
            elif isinstance(statement, exp.Comment):
                self._load_comment(statement)

    def _load_create(self, statement: exp.Create) -> None:
        kind = (statement.args.get("kind") or "").upper()
        if kind not in ("TABLE", "VIEW"):
            return
        target = statement.this
        table = target.this if isinstance(target, exp.Schema) else target
        if not isinstance(table, exp.Table):
            return

        entity_kind = "view" if kind == "VIEW" else "table"
        state = _TableState(entity=Entity(name=table.name, kind=entity_kind))
        properties = statement.args.get("properties")
        if properties is not None:
            for prop in properties.expressions:
                if isinstance(prop, exp.SchemaCommentProperty):
                    state.comment = prop.this.name

        if isinstance(target, exp.Schema) and kind == "TABLE":
            primary_keys: set[str] = set()
            for node in target.expressions:
                if isinstance(node, exp.ColumnDef):
                    state.columns.append(self._column_state(node))
                elif isinstance(node, exp.PrimaryKey):
                    primary_keys.update(part.name for part in node.expressions)
            for column in state.columns:
                if column.name in primary_keys:
                    column.is_primary_key = True
                    column.is_nullable = False
            self._mark_rowid_alias(state)

        self._tables[state.entity.name] = state

    def _load_comment(self, statement: exp.Comment) -> None:
        kind = (statement.args.get("kind") or "").upper()
        text_node = statement.args.get("expression")
        if text_node is None:
            return
        target = statement.this
        if kind == "TABLE" and target.name in self._tables:
            self._tables[target.name].comment = text_node.name
        elif kind == "COLUMN" and isinstance(target, exp.Column):
            state = self._tables.get(target.table)
            if state is None:
                return
            for column in state.columns:
                if column.name == target.name:
                    column.comment = text_node.name

    def _column_state(self, node: exp.ColumnDef) -> _ColumnState:
        data_type = node.args.get("kind")
        raw_type = ""
        if isinstance(data_type, exp.DataType):
            # sqlite's generator folds most types into INTEGER/TEXT/REAL
            if self.dialect == "sqlite":
                raw_type = data_type.sql()
            else:
                raw_type = data_type.sql(dialect=self.dialect)
        column = _ColumnState(name=node.name, raw_type=raw_type)

        if isinstance(data_type, exp.DataType):
            column.is_integer = data_type.this == exp.DataType.Type.INT
            if data_type.this in SERIAL_TYPES:
                column.is_auto_generated = True
                column.is_nullable = False
            if data_type.is_type(exp.DataType.Type.ENUM):
                column.enum_values = tuple(value.name for value in data_type.expressions)
            elif data_type.this == exp.DataType.Type.USERDEFINED:
                type_name = str(data_type.args.get("kind") or raw_type).strip('"').lower()
                if type_name in self._enum_types:
                    column.enum_values = self._enum_types[type_name]

        for constraint in node.args.get("constraints") or []:
            self._apply_constraint(column, constraint.args.get("kind"))
        if column.is_auto_generated:
            column.default_literal = None
        return column

    def _apply_constraint(self, column: _ColumnState, kind: exp.Expression | None) -> None:
        if isinstance(kind, exp.NotNullColumnConstraint):
            column.is_nullable = bool(kind.args.get("allow_null"))
        elif isinstance(kind, exp.PrimaryKeyColumnConstraint):
            column.is_primary_key = True
            column.is_nullable = False
        elif isinstance(
            kind,
            (
                exp.AutoIncrementColumnConstraint,
                exp.GeneratedAsIdentityColumnConstraint,
                exp.ComputedColumnConstraint,
            ),
        ):
            column.is_auto_generated = True
        elif isinstance(kind, exp.DefaultColumnConstraint):
            literal, generated = default_from_expression(kind.this)
            column.default_literal = literal
            column.is_auto_generated = column.is_auto_generated or generated
        elif isinstance(kind, exp.CommentColumnConstraint):
            column.comment = kind.this.name

    def _mark_rowid_alias(self, state: _TableState) -> None:
        if self.dialect != "sqlite":
            return
        primary_keys = [column for column in state.columns if column.is_primary_key]
        if len(primary_keys) == 1 and primary_keys[0].is_integer:
            primary_keys[0].is_auto_generated = True
            primary_keys[0].default_literal = None

    def list_entities(self) -> list[Entity]:
        entities = []
        for state in self._tables.values():
            if has_table_ignore_directive(state.comment):
                logger.info("list_entities: dialect=%s skipped=%s", self.dialect, state.entity.name)
                continue
            entities.append(state.entity)
        return entities

    def describe_columns(self, entity_name: str) -> list[ColumnDescriptor]:
        state = self._tables.get(entity_name)
        if state is None or has_table_ignore_directive(state.comment):
            return []
        descriptors = [
            ColumnDescriptor(
                name=column.name,
                raw_type=column.raw_type,
                is_nullable=column.is_nullable,
                default_literal=column.default_literal,
                is_auto_generated=column.is_auto_generated,
                enum_values=column.enum_values,
                embedded_directives=column.comment,
            )
            for column in state.columns
            if not has_ignore_directive(column.comment)
        ]
        logger.info(
            "describe_columns: dialect=%s entity=%s columns=%s",
            self.dialect,
            entity_name,
            len(descriptors),
        )
        return descriptors

    def resolve_enum_values(self, entity_name: str, column_name: str) -> list[str]:
        state = self._tables.get(entity_name)
        if state is None:
            return []
        for column in state.columns:
            if column.name == column_name:
                return list(column.enum_values or ())
        return []
