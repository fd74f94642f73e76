# [파일 설명]
# - 목적: MySQL/PostgreSQL/SQLite 카탈로그를 조회해 엔티티와 컬럼 디스크립터를 만든다.
# - 제공 기능: 테이블/뷰 목록, 컬럼 메타데이터 정규화, ignore 지시어 처리, enum 값 해석을 제공한다.
# - 입력/출력: 이미 연결된 DB-API 커넥션(QueryRunner)을 받아 ColumnDescriptor 목록을 반환한다.
# - 주의 사항: 커넥션 생성/종료는 호출자가 담당한다. SQLite는 주석을 지원하지 않는다.
# - 연관 모듈: generator에서 SchemaSource로 사용된다.
from __future__ import annotations

import logging
import re
from typing import Any, Protocol

from typegen.services.descriptors import ColumnDescriptor, Entity
from typegen.services.magic_comments import has_ignore_directive, has_table_ignore_directive
from typegen.services.type_mappings import (
    TypeCategory,
    classify,
    normalize_type_token,
    parse_enum_literal_values,
)

logger = logging.getLogger(__name__)

FUNCTION_CALL_PATTERN = re.compile(r"^[A-Za-z_][\w.]*\s*\(.*\)$", re.DOTALL)
NUMERIC_DEFAULT_PATTERN = re.compile(r"^\(?\s*(-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\s*\)?$")
QUOTED_DEFAULT_PATTERN = re.compile(r"^'((?:[^']|'')*)'$", re.DOTALL)
POSTGRES_CAST_PATTERN = re.compile(r"^(.*?)::[\w\s\"\[\].]+$", re.DOTALL)
BOOLEAN_DEFAULTS = frozenset({"true", "false"})
CURRENT_KEYWORDS = (
    "current_timestamp",
    "current_date",
    "current_time",
    "localtimestamp",
    "localtime",
    "now()",
)


class QueryRunner(Protocol):
    def fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]: ...


class DbApiRunner:
    """Runs catalog queries on a PEP 249 connection.

    Queries are written with ``?`` placeholders and rewritten for
    ``format``/``pyformat`` drivers such as psycopg or PyMySQL.
    """

    def __init__(self, connection: Any, paramstyle: str = "qmark") -> None:
        self.connection = connection
        self.paramstyle = paramstyle

    def _prepare(self, sql: str) -> str:
        if self.paramstyle in ("format", "pyformat"):
            return sql.replace("%", "%%").replace("?", "%s")
        return sql

    def fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(self._prepare(sql), params)
            columns = [description[0].lower() for description in cursor.description or ()]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()


def unquote_sql_literal(value: str) -> str | None:
    match = QUOTED_DEFAULT_PATTERN.match(value)
    if match:
        return match.group(1).replace("''", "'")
    return None


def is_function_default(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered.startswith(CURRENT_KEYWORDS):
        return True
    if lowered.startswith("(") and lowered.endswith(")"):
        return not NUMERIC_DEFAULT_PATTERN.match(lowered)
    return bool(FUNCTION_CALL_PATTERN.match(lowered))


# [함수 설명]
# - 목적: 카탈로그 기본값 텍스트를 (리터럴, 자동 생성 여부)로 분류한다.
# - 입력: raw_default: str | None
# - 출력: (default_literal, is_auto_generated) 튜플
# - 에러 처리: 알 수 없는 표현식은 자동 생성 기본값으로 취급한다.
# - 결정론: 동일 입력에 대해 항상 동일 결과를 반환한다.
def parse_sql_default(raw_default: Any) -> tuple[str | None, bool]:
    if raw_default is None:
        return None, False
    value = str(raw_default).strip()
    if not value or value.upper() == "NULL":
        return None, False
    unquoted = unquote_sql_literal(value)
    if unquoted is not None:
        return unquoted, False
    numeric = NUMERIC_DEFAULT_PATTERN.match(value)
    if numeric:
        return numeric.group(1), False
    if value.lower() in BOOLEAN_DEFAULTS:
        return value.lower(), False
    if is_function_default(value):
        return None, True
    # bare words such as MySQL's unquoted string defaults
    return value, False


class MySqlSource:
    dialect = "mysql"
    views_enabled = True

    def __init__(self, runner: QueryRunner, database: str) -> None:
        self.runner = runner
        self.database = database

    def list_entities(self) -> list[Entity]:
        rows = self.runner.fetch_all(
            """
            SELECT table_name AS table_name, table_type AS table_type,
                   table_comment AS table_comment
            FROM information_schema.tables
            WHERE table_schema = ? AND table_type IN ('BASE TABLE', 'VIEW')
            ORDER BY table_name
            """,
            (self.database,),
        )
        entities = []
        for row in rows:
            if has_table_ignore_directive(row.get("table_comment") or ""):
                logger.info("list_entities: dialect=mysql skipped=%s", row["table_name"])
                continue
            kind = "view" if row["table_type"] == "VIEW" else "table"
            entities.append(Entity(name=row["table_name"], kind=kind))
        return entities

    def _column_rows(self, entity_name: str) -> list[dict[str, Any]]:
        return self.runner.fetch_all(
            """
            SELECT column_name AS column_name, column_default AS column_default,
                   extra AS extra, is_nullable AS is_nullable,
                   column_type AS column_type, column_comment AS column_comment
            FROM information_schema.columns
            WHERE table_schema = ? AND table_name = ?
            ORDER BY ordinal_position
            """,
            (self.database, entity_name),
        )

    def describe_columns(self, entity_name: str) -> list[ColumnDescriptor]:
        descriptors = []
        for row in self._column_rows(entity_name):
            comment = row.get("column_comment") or ""
            if has_ignore_directive(comment):
                continue
            raw_type = row["column_type"]
            extra = (row.get("extra") or "").lower()
            default_literal, is_auto_generated = parse_sql_default(row.get("column_default"))
            if "auto_increment" in extra or "generated" in extra:
                default_literal, is_auto_generated = None, True
            enum_values = None
            if normalize_type_token(raw_type, self.dialect) == "enum":
                enum_values = tuple(parse_enum_literal_values(raw_type))
            descriptors.append(
                ColumnDescriptor(
                    name=row["column_name"],
                    raw_type=raw_type,
                    is_nullable=row["is_nullable"] == "YES",
                    default_literal=default_literal,
                    is_auto_generated=is_auto_generated,
                    enum_values=enum_values,
                    embedded_directives=comment,
                )
            )
        logger.info(
            "describe_columns: dialect=mysql entity=%s columns=%s", entity_name, len(descriptors)
        )
        return descriptors

    def resolve_enum_values(self, entity_name: str, column_name: str) -> list[str]:
        for row in self._column_rows(entity_name):
            if row["column_name"] == column_name:
                return parse_enum_literal_values(row["column_type"])
        return []


class PostgresSource:
    dialect = "postgres"
    views_enabled = True

    def __init__(self, runner: QueryRunner, schema: str = "public") -> None:
        self.runner = runner
        self.schema = schema
        self._enum_cache: dict[str, tuple[str, ...]] = {}

    def list_entities(self) -> list[Entity]:
        rows = self.runner.fetch_all(
            """
            SELECT c.relname AS table_name, c.relkind AS relkind,
                   obj_description(c.oid, 'pg_class') AS table_comment
            FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE n.nspname = ? AND c.relkind IN ('r', 'p', 'v', 'm')
            ORDER BY c.relname
            """,
            (self.schema,),
        )
        entities = []
        for row in rows:
            if has_table_ignore_directive(row.get("table_comment") or ""):
                logger.info("list_entities: dialect=postgres skipped=%s", row["table_name"])
                continue
            kind = "view" if row["relkind"] in ("v", "m") else "table"
            entities.append(Entity(name=row["table_name"], kind=kind))
        return entities

    def _column_rows(self, entity_name: str) -> list[dict[str, Any]]:
        return self.runner.fetch_all(
            """
            SELECT col.column_name AS column_name, col.column_default AS column_default,
                   col.is_nullable AS is_nullable, col.data_type AS data_type,
                   col.udt_name AS udt_name, col.is_identity AS is_identity,
                   col.is_generated AS is_generated,
                   col_description(c.oid, col.ordinal_position::int) AS column_comment
            FROM information_schema.columns col
            JOIN pg_namespace n ON n.nspname = col.table_schema
            JOIN pg_class c ON c.relname = col.table_name AND c.relnamespace = n.oid
            WHERE col.table_schema = ? AND col.table_name = ?
            ORDER BY col.ordinal_position
            """,
            (self.schema, entity_name),
        )

    def _enum_labels(self, udt_name: str) -> tuple[str, ...]:
        if udt_name not in self._enum_cache:
            rows = self.runner.fetch_all(
                """
                SELECT e.enumlabel AS enumlabel
                FROM pg_enum e
                WHERE e.enumtypid = (
                    SELECT t.oid FROM pg_type t WHERE t.typname = ? LIMIT 1
                )
                ORDER BY e.enumsortorder
                """,
                (udt_name,),
            )
            self._enum_cache[udt_name] = tuple(row["enumlabel"] for row in rows)
        return self._enum_cache[udt_name]

    def describe_columns(self, entity_name: str) -> list[ColumnDescriptor]:
        descriptors = []
        for row in self._column_rows(entity_name):
            comment = row.get("column_comment") or ""
            if has_ignore_directive(comment):
                continue
            raw_type = row["data_type"]
            default_literal, is_auto_generated = parse_postgres_default(row.get("column_default"))
            if row.get("is_identity") == "YES" or row.get("is_generated") == "ALWAYS":
                default_literal, is_auto_generated = None, True
            enum_values = None
            if classify(raw_type, self.dialect) == TypeCategory.ENUM:
                labels = self._enum_labels(row.get("udt_name") or "")
                enum_values = labels or None
            descriptors.append(
                ColumnDescriptor(
                    name=row["column_name"],
                    raw_type=raw_type,
                    is_nullable=row["is_nullable"] == "YES",
                    default_literal=default_literal,
                    is_auto_generated=is_auto_generated,
                    enum_values=enum_values,
                    embedded_directives=comment,
                )
            )
        logger.info(
            "describe_columns: dialect=postgres entity=%s columns=%s",
            entity_name,
            len(descriptors),
        )
        return descriptors

    def resolve_enum_values(self, entity_name: str, column_name: str) -> list[str]:
        for row in self._column_rows(entity_name):
            if row["column_name"] == column_name:
                return list(self._enum_labels(row.get("udt_name") or ""))
        return []


def parse_postgres_default(raw_default: Any) -> tuple[str | None, bool]:
    if raw_default is None:
        return None, False
    value = str(raw_default).strip()
    cast = POSTGRES_CAST_PATTERN.match(value)
    if cast and not value.lower().startswith("nextval"):
        value = cast.group(1).strip()
    return parse_sql_default(value)


class SqliteSource:
    dialect = "sqlite"
    views_enabled = True

    def __init__(self, runner: QueryRunner) -> None:
        self.runner = runner

    def list_entities(self) -> list[Entity]:
        rows = self.runner.fetch_all(
            """
            SELECT name AS name, type AS type
            FROM sqlite_master
            WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%'
            ORDER BY name
            """
        )
        return [Entity(name=row["name"], kind=row["type"]) for row in rows]

    def _column_rows(self, entity_name: str) -> list[dict[str, Any]]:
        return self.runner.fetch_all(
            """
            SELECT name AS name, type AS type, "notnull" AS "notnull",
                   dflt_value AS dflt_value, pk AS pk
            FROM pragma_table_info(?)
            ORDER BY cid
            """,
            (entity_name,),
        )

    def describe_columns(self, entity_name: str) -> list[ColumnDescriptor]:
        rows = self._column_rows(entity_name)
        primary_keys = [row for row in rows if row["pk"]]
        rowid_alias = None
        if len(primary_keys) == 1 and (primary_keys[0]["type"] or "").upper() == "INTEGER":
            rowid_alias = primary_keys[0]["name"]

        descriptors = []
        for row in rows:
            default_literal, is_auto_generated = parse_sql_default(row["dflt_value"])
            if row["name"] == rowid_alias:
                default_literal, is_auto_generated = None, True
            descriptors.append(
                ColumnDescriptor(
                    name=row["name"],
                    raw_type=row["type"] or "",
                    is_nullable=not row["notnull"] and not row["pk"],
                    default_literal=default_literal,
                    is_auto_generated=is_auto_generated,
                )
            )
        logger.info(
            "describe_columns: dialect=sqlite entity=%s columns=%s", entity_name, len(descriptors)
        )
        return descriptors

    def resolve_enum_values(self, entity_name: str, column_name: str) -> list[str]:
        return []
