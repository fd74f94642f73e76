from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

EntityKind = Literal["table", "view"]


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    raw_type: str
    is_nullable: bool
    default_literal: str | None = None
    is_auto_generated: bool = False
    # None means "not an enum column"; an empty tuple is an enum with no values left.
    enum_values: tuple[str, ...] | None = None
    embedded_directives: str = ""

    @property
    def has_literal_default(self) -> bool:
        return self.default_literal is not None and not self.is_auto_generated


@dataclass(frozen=True)
class Entity:
    name: str
    kind: EntityKind = "table"

    @property
    def is_read_only(self) -> bool:
        return self.kind == "view"


@dataclass(frozen=True)
class EnumDeclaration:
    name: str
    values: tuple[str, ...]


class SchemaSource(Protocol):
    dialect: str
    views_enabled: bool

    def list_entities(self) -> list[Entity]: ...

    def describe_columns(self, entity_name: str) -> list[ColumnDescriptor]: ...

    def resolve_enum_values(self, entity_name: str, column_name: str) -> list[str]: ...
