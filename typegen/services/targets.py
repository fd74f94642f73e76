from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Union


class Role(str, Enum):
    FULL = "full"
    INSERTABLE = "insertable"
    UPDATEABLE = "updateable"
    SELECTABLE = "selectable"


TABLE_ROLES: tuple[Role, ...] = (Role.FULL, Role.INSERTABLE, Role.UPDATEABLE, Role.SELECTABLE)


@dataclass(frozen=True)
class ZodTarget:
    use_date_type: bool = False
    use_trim: bool = False
    nullish: bool = False
    required_string: bool = False
    boolean_union: bool = False
    version: int = 3
    header: str | None = None
    folder: str = "."
    suffix: str = "zod"
    override_types: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TsTarget:
    enum_type: Literal["union", "enum"] = "union"
    model_type: Literal["interface", "type"] = "interface"
    header: str | None = None
    folder: str = "."
    suffix: str = ""
    override_types: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class KyselyTarget:
    schema_name: str = "DB"
    header: str | None = None
    folder: str = "."
    out_file: str | None = None
    override_types: dict[str, str] = field(default_factory=dict)


Target = Union[ZodTarget, TsTarget, KyselyTarget]


def target_name(target: Target) -> str:
    if isinstance(target, ZodTarget):
        return "zod"
    if isinstance(target, TsTarget):
        return "ts"
    return "kysely"


@dataclass(frozen=True)
class ResolvedType:
    expression: str
    nullable: bool
    optional: bool
    generated: bool = False
    overridden: bool = False
    enum_name: str | None = None
    enum_values: tuple[str, ...] | None = None
