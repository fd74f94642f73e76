import pytest

from typegen.services.ddl_source import DdlSource
from typegen.services.descriptors import Entity
from typegen.services.errors import ConfigurationError, SchemaParseError
from typegen.services.type_mappings import TypeCategory, classify

MYSQL_DDL = """
CREATE TABLE users (
  id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
  email VARCHAR(255) NOT NULL COMMENT '@zod(z.string().email())',
  nickname VARCHAR(64) NULL,
  role ENUM('admin', 'member') NOT NULL DEFAULT 'member',
  score INT DEFAULT 0,
  secret VARCHAR(10) COMMENT 'internal @ignore',
  created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE legacy (id INT) COMMENT='@@ignore';
CREATE VIEW active_users AS SELECT id, email FROM users;
"""


def test_mysql_ddl_lists_tables_and_views() -> None:
    source = DdlSource(MYSQL_DDL, dialect="mysql")

    assert source.list_entities() == [
        Entity(name="users", kind="table"),
        Entity(name="active_users", kind="view"),
    ]
    assert source.describe_columns("legacy") == []
    assert source.describe_columns("active_users") == []


def test_mysql_ddl_column_constraints() -> None:
    source = DdlSource(MYSQL_DDL, dialect="mysql")
    columns = {column.name: column for column in source.describe_columns("users")}

    assert "secret" not in columns
    assert columns["id"].is_auto_generated is True
    assert columns["id"].is_nullable is False
    assert columns["email"].is_nullable is False
    assert columns["email"].embedded_directives == "@zod(z.string().email())"
    assert columns["nickname"].is_nullable is True
    assert columns["role"].enum_values == ("admin", "member")
    assert columns["role"].default_literal == "member"
    assert classify(columns["role"].raw_type, "mysql") == TypeCategory.ENUM
    assert columns["score"].default_literal == "0"
    assert columns["score"].is_nullable is True
    assert columns["created_at"].is_auto_generated is True
    assert columns["created_at"].default_literal is None
    assert source.resolve_enum_values("users", "role") == ["admin", "member"]


def test_postgres_ddl_resolves_enum_types_and_comments() -> None:
    ddl = """
    CREATE TYPE mood AS ENUM ('happy', 'sad');
    CREATE TABLE people (
      id SERIAL PRIMARY KEY,
      seq BIGSERIAL,
      feeling mood NOT NULL DEFAULT 'happy',
      name TEXT
    );
    COMMENT ON COLUMN people.name IS '@ts(PersonName)';
    """
    source = DdlSource(ddl, dialect="postgres")
    columns = {column.name: column for column in source.describe_columns("people")}

    assert columns["id"].is_auto_generated is True
    assert columns["seq"].is_auto_generated is True
    assert columns["seq"].is_nullable is False
    assert columns["feeling"].enum_values == ("happy", "sad")
    assert columns["feeling"].default_literal == "happy"
    assert columns["name"].embedded_directives == "@ts(PersonName)"


def test_sqlite_integer_primary_key_is_rowid_alias() -> None:
    source = DdlSource(
        "CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT NOT NULL);", dialect="sqlite"
    )
    columns = {column.name: column for column in source.describe_columns("notes")}

    assert columns["id"].is_auto_generated is True
    assert columns["body"].is_nullable is False


def test_unparseable_ddl_raises_schema_parse_error() -> None:
    with pytest.raises(SchemaParseError):
        DdlSource("CREATE TABLE broken (id INT", dialect="mysql")


def test_unsupported_dialect_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        DdlSource("CREATE TABLE t (id INT);", dialect="oracle")
