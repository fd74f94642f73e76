# [파일 설명]
# - 목적: 엔티티 하나의 컬럼 디스크립터를 타깃별 선언 텍스트로 조립한다.
# - 제공 기능: Zod 스키마, TypeScript 인터페이스, Kysely 인터페이스와 통합 DB 인터페이스를 생성한다.
# - 입력/출력: Entity와 ColumnDescriptor 목록을 받아 TypeScript 소스 문자열을 반환한다.
# - 주의 사항: 뷰는 읽기 전용 선언만 생성한다. 필드 순서는 입력 순서를 그대로 따른다.
# - 연관 모듈: type_resolver로 필드 표현식을 계산하고 generator에서 호출된다.
from __future__ import annotations

from typegen.services.descriptors import ColumnDescriptor, Entity, EnumDeclaration
from typegen.services.naming import camel_case as to_camel_case
from typegen.services.naming import is_identifier, pascal_case, property_key, snake_case
from typegen.services.targets import (
    TABLE_ROLES,
    KyselyTarget,
    ResolvedType,
    Role,
    Target,
    TsTarget,
    ZodTarget,
)
from typegen.services.type_resolver import quote_literal, resolve

DEFAULT_KYSELY_HEADER = (
    "import { ColumnType, Insertable, Selectable, Updateable } from 'kysely';\n\n"
)

KYSELY_JSON_TYPES = """// JSON type definitions
export type Json = ColumnType<JsonValue, string, string>;

export type JsonArray = JsonValue[];

export type JsonObject = {
  [x: string]: JsonValue | undefined;
};

export type JsonPrimitive = boolean | number | string | null;

export type JsonValue = JsonArray | JsonObject | JsonPrimitive;

export type Generated<T> = T extends ColumnType<infer S, infer I, infer U>
  ? ColumnType<S, I | undefined, U>
  : ColumnType<T, T | undefined, T>

export type Decimal = ColumnType<string, number | string, number | string>

export type BigInt = ColumnType<string, number | string, number | string>

"""

NULL_SUFFIX = " | null"

ZOD_SCHEMA_PREFIXES: dict[Role, str] = {
    Role.FULL: "",
    Role.INSERTABLE: "insertable_",
    Role.UPDATEABLE: "updateable_",
    Role.SELECTABLE: "selectable_",
}

TS_DECLARATION_PREFIXES: dict[Role, str] = {
    Role.FULL: "",
    Role.INSERTABLE: "Insertable",
    Role.UPDATEABLE: "Updateable",
    Role.SELECTABLE: "Selectable",
}


class EnumAccumulator:
    """Collects named TypeScript enum declarations per entity, first registration wins."""

    def __init__(self) -> None:
        self._declarations: dict[str, dict[str, EnumDeclaration]] = {}

    def register(self, entity_name: str, name: str, values: tuple[str, ...]) -> None:
        declarations = self._declarations.setdefault(entity_name, {})
        if name not in declarations:
            declarations[name] = EnumDeclaration(name=name, values=values)

    def declarations_for(self, entity_name: str) -> list[EnumDeclaration]:
        return list(self._declarations.get(entity_name, {}).values())


def default_zod_header(version: int) -> str:
    module = "zod" if version == 3 else "zod/v4"
    return f"import {{ z }} from '{module}';\n\n"


def file_header(header: str | None) -> str:
    if not header:
        return ""
    return header.rstrip("\n") + "\n\n"


def field_key(name: str, camel_case: bool) -> str:
    return property_key(to_camel_case(name) if camel_case else name)


def entity_key(name: str, camel_case: bool) -> str:
    return to_camel_case(name) if camel_case else name


def interface_name(entity: Entity) -> str:
    suffix = "View" if entity.is_read_only else ""
    return f"{pascal_case(entity.name)}{suffix}"


def render_entity(
    entity: Entity,
    columns: list[ColumnDescriptor],
    target: Target,
    *,
    dialect: str,
    magic_comments: bool = True,
    camel_case: bool = False,
    enums: EnumAccumulator | None = None,
) -> str:
    renderer = _EntityRenderer(entity, columns, dialect, magic_comments, camel_case)
    if isinstance(target, ZodTarget):
        return renderer.zod(target)
    if isinstance(target, TsTarget):
        return renderer.ts(target, enums if enums is not None else EnumAccumulator())
    return renderer.kysely(target)


# [함수 설명]
# - 목적: 엔티티별 Kysely 블록을 하나의 DB 파일로 통합한다.
# - 입력: (Entity, 블록 텍스트) 목록, KyselyTarget, camel_case 여부
# - 출력: 헤더, JSON 타입 정의, 모든 블록, DB 인터페이스를 포함한 텍스트
# - 에러 처리: 없음
# - 결정론: DB 인터페이스 항목은 최종 키 기준으로 정렬한다.
def render_kysely_database(
    blocks: list[tuple[Entity, str]],
    target: KyselyTarget,
    *,
    camel_case: bool = False,
) -> str:
    header = file_header(target.header) if target.header else DEFAULT_KYSELY_HEADER
    content = header + KYSELY_JSON_TYPES
    for _, block in blocks:
        content += block + "\n"

    entries = sorted(
        (entity_key(entity.name, camel_case), interface_name(entity)) for entity, _ in blocks
    )
    content += f"\n// Database Interface\nexport interface {target.schema_name} {{\n"
    for key, name in entries:
        content += f"  {property_key(key)}: {name};\n"
    content += "}\n"
    return content


class _EntityRenderer:
    def __init__(
        self,
        entity: Entity,
        columns: list[ColumnDescriptor],
        dialect: str,
        magic_comments: bool,
        camel_case: bool,
    ) -> None:
        self.entity = entity
        self.columns = columns
        self.dialect = dialect
        self.magic_comments = magic_comments
        self.camel_case = camel_case

    def _resolve_all(self, role: Role, target: Target) -> list[tuple[str, ResolvedType]]:
        return [
            (
                field_key(column.name, self.camel_case),
                resolve(
                    column,
                    role,
                    target,
                    dialect=self.dialect,
                    magic_comments=self.magic_comments,
                ),
            )
            for column in self.columns
        ]

    def zod(self, target: ZodTarget) -> str:
        header = file_header(target.header) if target.header else default_zod_header(
            target.version
        )
        snake = snake_case(self.entity.name)
        type_name = pascal_case(self.entity.name)

        if self.entity.is_read_only:
            content = header + "// View schema (read-only)\n"
            content += self._zod_object(f"{snake}_view", Role.SELECTABLE, target)
            content += (
                f"export type {type_name}ViewType = z.infer<typeof {snake}_view>\n"
            )
            return content

        content = header
        for role in TABLE_ROLES:
            content += self._zod_object(f"{ZOD_SCHEMA_PREFIXES[role]}{snake}", role, target)
        for role in TABLE_ROLES:
            prefix = TS_DECLARATION_PREFIXES[role]
            schema = f"{ZOD_SCHEMA_PREFIXES[role]}{snake}"
            content += f"export type {prefix}{type_name}Type = z.infer<typeof {schema}>\n"
        return content

    def _zod_object(self, schema_name: str, role: Role, target: ZodTarget) -> str:
        lines = [f"export const {schema_name} = z.object({{"]
        for key, resolved in self._resolve_all(role, target):
            lines.append(f"  {key}: {resolved.expression},")
        lines.append("})")
        return "\n".join(lines) + "\n\n"

    def ts(self, target: TsTarget, enums: EnumAccumulator) -> str:
        type_name = interface_name(self.entity)
        if self.entity.is_read_only:
            fields = self._resolve_all(Role.SELECTABLE, target)
            self._collect_enums(fields, enums)
            content = file_header(target.header)
            content += f"// TypeScript interface for {self.entity.name} (view - read-only)\n"
            content += self._render_enums(enums)
            content += self._ts_declaration(type_name, fields, target)
            return content

        declarations = []
        for role in TABLE_ROLES:
            fields = self._resolve_all(role, target)
            self._collect_enums(fields, enums)
            declarations.append(
                self._ts_declaration(f"{TS_DECLARATION_PREFIXES[role]}{type_name}", fields, target)
            )

        content = file_header(target.header)
        content += f"// TypeScript interfaces for {self.entity.name}\n\n"
        content += self._render_enums(enums)
        content += "\n".join(declarations)
        return content

    def _collect_enums(
        self, fields: list[tuple[str, ResolvedType]], enums: EnumAccumulator
    ) -> None:
        for _, resolved in fields:
            if resolved.enum_name is not None and resolved.enum_values is not None:
                enums.register(self.entity.name, resolved.enum_name, resolved.enum_values)

    def _render_enums(self, enums: EnumAccumulator) -> str:
        content = ""
        for declaration in enums.declarations_for(self.entity.name):
            content += f"export enum {declaration.name} {{\n"
            for value in declaration.values:
                member = value if is_identifier(value) else quote_literal(value)
                content += f"  {member} = {quote_literal(value)},\n"
            content += "}\n\n"
        return content

    def _ts_declaration(
        self, name: str, fields: list[tuple[str, ResolvedType]], target: TsTarget
    ) -> str:
        if target.model_type == "type":
            lines = [f"export type {name} = {{"]
        else:
            lines = [f"export interface {name} {{"]
        for key, resolved in fields:
            marker = "?" if resolved.optional and not resolved.overridden else ""
            lines.append(f"  {key}{marker}: {resolved.expression};")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def kysely(self, target: KyselyTarget) -> str:
        type_name = interface_name(self.entity)
        name = self.entity.name

        if self.entity.is_read_only:
            content = f"// Kysely type definitions for {name} (view)\n\n"
            content += f"// This interface defines the structure of the '{name}' view (read-only)\n"
            content += f"export interface {type_name} {{\n"
            for key, resolved in self._resolve_all(Role.SELECTABLE, target):
                content += f"  {key}: {resolved.expression};\n"
            content += "}\n\n"
            content += f"// Helper types for {name} (view - read-only)\n"
            content += f"export type Selectable{type_name} = Selectable<{type_name}>;\n"
            return content

        content = f"// Kysely type definitions for {name}\n\n"
        content += f"// This interface defines the structure of the '{name}' table\n"
        content += f"export interface {type_name} {{\n"
        for key, resolved in self._resolve_all(Role.FULL, target):
            content += f"  {key}: {_kysely_field_type(resolved)};\n"
        content += "}\n\n"
        content += "// Use these types for inserting, selecting and updating the table\n"
        content += f"export type Selectable{type_name} = Selectable<{type_name}>;\n"
        content += f"export type Insertable{type_name} = Insertable<{type_name}>;\n"
        content += f"export type Updateable{type_name} = Updateable<{type_name}>;\n"
        return content


def _kysely_field_type(resolved: ResolvedType) -> str:
    if resolved.overridden or not resolved.generated:
        return resolved.expression
    expression = resolved.expression
    if resolved.nullable and expression.endswith(NULL_SUFFIX):
        return f"Generated<{expression[: -len(NULL_SUFFIX)]}>{NULL_SUFFIX}"
    return f"Generated<{expression}>"
