# [파일 설명]
# - 목적: 컬럼 디스크립터 하나를 (타깃, 역할) 조합에 대한 타입 표현식으로 변환한다.
# - 제공 기능: 매직 코멘트 > 설정 오버라이드 > 카테고리 순의 우선순위로 표현식을 결정한다.
# - 입력/출력: ColumnDescriptor, Role, Target을 받아 ResolvedType을 반환한다.
# - 주의 사항: Zod 타깃에서 분류되지 않은 타입은 UnsupportedTypeError로 실패한다.
# - 연관 모듈: renderer에서 필드마다 호출된다.
from __future__ import annotations

import json
import re

from typegen.services.descriptors import ColumnDescriptor
from typegen.services.errors import UnsupportedTypeError
from typegen.services.magic_comments import (
    extract_kysely_expression,
    extract_ts_expression,
    extract_zod_expression,
)
from typegen.services.naming import pascal_case
from typegen.services.targets import (
    KyselyTarget,
    ResolvedType,
    Role,
    Target,
    TsTarget,
    ZodTarget,
)
from typegen.services.type_mappings import TypeCategory, classify, normalize_type_token

ZOD_COERCED_DATE = "z.union([z.number(), z.string(), z.date()]).pipe(z.coerce.date())"
ZOD_COERCED_BOOLEAN = "z.union([z.number(), z.string(), z.boolean()]).pipe(z.coerce.boolean())"
ZOD_JSON = "z.record(z.string(), z.unknown())"

TS_BASE_TYPES: dict[TypeCategory, str] = {
    TypeCategory.DATE: "Date",
    TypeCategory.STRING: "string",
    TypeCategory.NUMBER: "number",
    TypeCategory.BOOLEAN: "boolean",
    TypeCategory.BIGINT: "string",
    TypeCategory.DECIMAL: "string",
    TypeCategory.JSON: "unknown",
    TypeCategory.UNKNOWN: "any",
}

KYSELY_BASE_TYPES: dict[TypeCategory, str] = {
    TypeCategory.DATE: "Date",
    TypeCategory.STRING: "string",
    TypeCategory.NUMBER: "number",
    TypeCategory.BOOLEAN: "boolean",
    TypeCategory.BIGINT: "BigInt",
    TypeCategory.DECIMAL: "Decimal",
    TypeCategory.JSON: "Json",
    TypeCategory.UNKNOWN: "any",
}

NUMERIC_LITERAL_PATTERN = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?$")
PARENTHESIZED_PATTERN = re.compile(r"\(.*?\)")
UNSIGNED_PATTERN = re.compile(r"\bunsigned\b", re.IGNORECASE)
TRUE_LITERALS = frozenset({"true", "1", "b'1'", "'1'", "t", "y", "yes", "on"})


def is_optional(column: ColumnDescriptor, role: Role) -> bool:
    if role == Role.UPDATEABLE:
        return True
    if role == Role.INSERTABLE:
        return column.is_auto_generated or column.default_literal is not None
    return False


def resolve_category(column: ColumnDescriptor, dialect: str) -> TypeCategory:
    if column.enum_values is not None:
        return TypeCategory.ENUM if column.enum_values else TypeCategory.STRING
    category = classify(column.raw_type, dialect)
    # enum-typed columns whose values could not be resolved
    if category == TypeCategory.ENUM:
        return TypeCategory.STRING
    return category


def directive_override(column: ColumnDescriptor, target: Target) -> str | None:
    comment = column.embedded_directives
    if not comment:
        return None
    if isinstance(target, ZodTarget):
        return extract_zod_expression(comment)
    if isinstance(target, TsTarget):
        return extract_ts_expression(comment)
    kysely_expression = extract_kysely_expression(comment)
    if kysely_expression is not None:
        return kysely_expression
    return extract_ts_expression(comment)


def config_override(column: ColumnDescriptor, target: Target, dialect: str) -> str | None:
    overrides = target.override_types
    if not overrides:
        return None
    for key in (
        column.raw_type,
        column.raw_type.lower(),
        normalize_type_token(column.raw_type, dialect),
    ):
        if key in overrides:
            return overrides[key]
    return None


def is_unsigned(raw_type: str) -> bool:
    return bool(UNSIGNED_PATTERN.search(PARENTHESIZED_PATTERN.sub("", raw_type)))


def quote_literal(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


# [함수 설명]
# - 목적: 기본값 리터럴을 카테고리에 맞는 TypeScript 리터럴 표기로 변환한다.
# - 입력: literal: str, category: TypeCategory
# - 출력: 숫자는 그대로, 불리언은 true/false, JSON은 JSON 텍스트, 그 외는 작은따옴표 문자열
# - 에러 처리: JSON 파싱 실패 시 문자열 리터럴로 취급한다.
# - 결정론: JSON은 키 순서를 유지한 채 재직렬화한다.
def format_default_literal(literal: str, category: TypeCategory) -> str:
    if category == TypeCategory.NUMBER and NUMERIC_LITERAL_PATTERN.match(literal.strip()):
        return literal.strip()
    if category == TypeCategory.BOOLEAN:
        return "true" if literal.strip().lower() in TRUE_LITERALS else "false"
    if category == TypeCategory.JSON:
        try:
            return json.dumps(json.loads(literal))
        except ValueError:
            return quote_literal(literal)
    return quote_literal(literal)


def enum_type_name(column: ColumnDescriptor, dialect: str) -> str:
    if dialect == "prisma":
        return column.raw_type
    return pascal_case(f"{column.name}_enum")


def resolve(
    column: ColumnDescriptor,
    role: Role,
    target: Target,
    *,
    dialect: str,
    magic_comments: bool = True,
) -> ResolvedType:
    nullable = column.is_nullable
    optional = is_optional(column, role)

    if magic_comments:
        override = directive_override(column, target)
        if override is not None:
            return ResolvedType(
                expression=override,
                nullable=nullable,
                optional=optional,
                overridden=True,
            )

    category = resolve_category(column, dialect)
    base = config_override(column, target, dialect)

    if isinstance(target, ZodTarget):
        if base is None:
            base = _zod_base(column, role, target, category)
        expression = _zod_chain(column, role, target, base, category)
        return ResolvedType(expression=expression, nullable=nullable, optional=optional)

    enum_name = None
    enum_values = None
    if base is None:
        if category == TypeCategory.ENUM:
            if isinstance(target, TsTarget) and target.enum_type == "enum":
                enum_name = enum_type_name(column, dialect)
                enum_values = column.enum_values
                base = enum_name
            else:
                base = _literal_union(column.enum_values or ())
        elif isinstance(target, KyselyTarget):
            base = KYSELY_BASE_TYPES[category]
        else:
            base = TS_BASE_TYPES[category]

    expression = f"{base} | null" if nullable else base
    return ResolvedType(
        expression=expression,
        nullable=nullable,
        optional=optional,
        generated=column.is_auto_generated or column.has_literal_default,
        enum_name=enum_name,
        enum_values=enum_values,
    )


def _literal_union(values: tuple[str, ...]) -> str:
    return " | ".join(quote_literal(value) for value in values)


def _zod_base(
    column: ColumnDescriptor, role: Role, target: ZodTarget, category: TypeCategory
) -> str:
    if category == TypeCategory.DATE:
        return ZOD_COERCED_DATE if target.use_date_type else "z.date()"
    if category == TypeCategory.STRING:
        base = "z.string()"
        if role == Role.SELECTABLE:
            return base
        if target.use_trim:
            base += ".trim()"
        if (
            target.required_string
            and not column.is_nullable
            and column.default_literal is None
            and not column.is_auto_generated
        ):
            base += ".min(1)"
        return base
    if category == TypeCategory.NUMBER:
        if is_unsigned(column.raw_type):
            return "z.number().nonnegative()"
        return "z.number()"
    if category == TypeCategory.BOOLEAN:
        return ZOD_COERCED_BOOLEAN if target.boolean_union else "z.boolean()"
    if category in (TypeCategory.BIGINT, TypeCategory.DECIMAL):
        return "z.string()"
    if category == TypeCategory.ENUM:
        members = ",".join(quote_literal(value) for value in column.enum_values or ())
        return f"z.enum([{members}])"
    if category == TypeCategory.JSON:
        return ZOD_JSON
    raise UnsupportedTypeError(column.raw_type)


# [함수 설명]
# - 목적: Zod 기본 표현식에 nullable/nullish, optional, default 체인을 붙인다.
# - 입력: column, role, target, base 표현식, category
# - 출력: "base.nullable().optional().default(x)" 순서의 표현식
# - 에러 처리: 없음
# - 결정론: 체인 순서는 항상 base -> nullable/nullish -> optional -> default이다.
def _zod_chain(
    column: ColumnDescriptor,
    role: Role,
    target: ZodTarget,
    base: str,
    category: TypeCategory,
) -> str:
    parts = [base]
    nullish_applied = False
    if column.is_nullable:
        if target.nullish and role != Role.SELECTABLE:
            parts.append("nullish()")
            nullish_applied = True
        else:
            parts.append("nullable()")
    if is_optional(column, role) and not nullish_applied:
        parts.append("optional()")
    if column.has_literal_default and role != Role.SELECTABLE:
        parts.append(f"default({format_default_literal(column.default_literal, category)})")
    return ".".join(parts)
