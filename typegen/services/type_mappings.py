from __future__ import annotations

import re
from enum import Enum
from typing import Literal

Dialect = Literal["mysql", "postgres", "sqlite", "prisma"]

DIALECTS: tuple[str, ...] = ("mysql", "postgres", "sqlite", "prisma")


class TypeCategory(str, Enum):
    DATE = "date"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    BIGINT = "bigint"
    DECIMAL = "decimal"
    ENUM = "enum"
    JSON = "json"
    UNKNOWN = "unknown"


DATE_TYPES: dict[str, frozenset[str]] = {
    "mysql": frozenset({"date", "datetime", "timestamp"}),
    "postgres": frozenset(
        {
            "date",
            "timestamp",
            "timestamptz",
            "timestamp with time zone",
            "timestamp without time zone",
        }
    ),
    "sqlite": frozenset({"date", "datetime"}),
    "prisma": frozenset({"DateTime"}),
}

# "json" is co-listed for some dialects; is_json_type is checked first.
STRING_TYPES: dict[str, frozenset[str]] = {
    "mysql": frozenset(
        {"tinytext", "text", "mediumtext", "longtext", "json", "time", "char", "varchar"}
    ),
    "postgres": frozenset(
        {
            "text",
            "character varying",
            "varchar",
            "char",
            "character",
            "bpchar",
            "json",
            "jsonb",
            "uuid",
            "time",
            "timetz",
            "time with time zone",
            "time without time zone",
            "interval",
            "name",
            "citext",
            "inet",
            "cidr",
            "macaddr",
        }
    ),
    "sqlite": frozenset(
        {
            "text",
            "character",
            "varchar",
            "varying character",
            "nchar",
            "native character",
            "nvarchar",
            "clob",
            "json",
        }
    ),
    "prisma": frozenset({"String", "Bytes", "Json"}),
}

NUMBER_TYPES: dict[str, frozenset[str]] = {
    "mysql": frozenset(
        {"tinyint", "smallint", "mediumint", "int", "integer", "float", "double", "bit", "year"}
    ),
    "postgres": frozenset(
        {
            "smallint",
            "integer",
            "int",
            "int2",
            "int4",
            "real",
            "float4",
            "float8",
            "double precision",
            "smallserial",
            "serial",
            "bigserial",
            "bit",
            "bit varying",
        }
    ),
    "sqlite": frozenset(
        {
            "integer",
            "real",
            "numeric",
            "double",
            "double precision",
            "float",
            "int",
            "int2",
            "mediumint",
            "tinyint",
            "smallint",
        }
    ),
    "prisma": frozenset({"Int", "Float"}),
}

BIGINT_TYPES: dict[str, frozenset[str]] = {
    "mysql": frozenset({"bigint"}),
    "postgres": frozenset({"bigint", "int8"}),
    "sqlite": frozenset({"bigint", "unsigned big int", "int8"}),
    "prisma": frozenset({"BigInt"}),
}

DECIMAL_TYPES: dict[str, frozenset[str]] = {
    "mysql": frozenset({"decimal", "numeric"}),
    "postgres": frozenset({"decimal", "numeric", "money"}),
    "sqlite": frozenset({"decimal"}),
    "prisma": frozenset({"Decimal"}),
}

BOOLEAN_TYPES: dict[str, frozenset[str]] = {
    "mysql": frozenset({"boolean", "bool"}),
    "postgres": frozenset({"boolean", "bool"}),
    "sqlite": frozenset({"boolean"}),
    "prisma": frozenset({"Boolean"}),
}

ENUM_TYPES: dict[str, frozenset[str]] = {
    "mysql": frozenset({"enum"}),
    "postgres": frozenset({"enum", "user-defined"}),
    "sqlite": frozenset(),
    "prisma": frozenset(),
}

CATEGORY_TABLES: tuple[tuple[TypeCategory, dict[str, frozenset[str]]], ...] = (
    (TypeCategory.DATE, DATE_TYPES),
    (TypeCategory.BIGINT, BIGINT_TYPES),
    (TypeCategory.DECIMAL, DECIMAL_TYPES),
    (TypeCategory.NUMBER, NUMBER_TYPES),
    (TypeCategory.BOOLEAN, BOOLEAN_TYPES),
    (TypeCategory.STRING, STRING_TYPES),
    (TypeCategory.ENUM, ENUM_TYPES),
)

ENUM_LITERAL_PATTERN = re.compile(r"'((?:[^']|'')*)'")
MYSQL_BOOLEAN_PATTERN = re.compile(r"^\s*tinyint\s*\(\s*1\s*\)", re.IGNORECASE)


def normalize_type_token(raw_type: str, dialect: str) -> str:
    """Return the lookup key for the classification tables.

    SQL dialects are lower-cased and lose any ``(...)`` suffix; MySQL also
    drops trailing modifiers such as ``unsigned``. Prisma types keep their case.
    """
    token = raw_type.split("(", 1)[0].strip()
    if dialect == "prisma":
        return token
    token = token.lower()
    if dialect == "mysql":
        token = token.split(" ", 1)[0]
    return token


def is_json_type(raw_type: str) -> bool:
    return "json" in raw_type.lower()


def classify(raw_type: str, dialect: str) -> TypeCategory:
    if dialect not in DIALECTS:
        raise ValueError(f"Unknown dialect: {dialect}")
    if is_json_type(raw_type):
        return TypeCategory.JSON
    if dialect == "mysql" and MYSQL_BOOLEAN_PATTERN.match(raw_type):
        return TypeCategory.BOOLEAN

    token = normalize_type_token(raw_type, dialect)
    for category, table in CATEGORY_TABLES:
        if token in table[dialect]:
            return category
    return TypeCategory.UNKNOWN


def parse_enum_literal_values(raw_type: str) -> list[str]:
    """Extract the quoted members of ``enum('a','b')`` style type text."""
    open_index = raw_type.find("(")
    close_index = raw_type.rfind(")")
    if open_index == -1 or close_index <= open_index:
        return []
    body = raw_type[open_index + 1 : close_index]
    return [match.group(1).replace("''", "'") for match in ENUM_LITERAL_PATTERN.finditer(body)]
