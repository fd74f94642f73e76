# [파일 설명]
# - 목적: Prisma 스키마 텍스트를 블록 단위로 해석해 엔티티/컬럼 디스크립터/enum 선언을 만든다.
# - 제공 기능: model/view/enum/type/generator/datasource 블록 분리, 필드 속성(@default, @ignore 등) 해석을 제공한다.
# - 입력/출력: 스키마 문자열을 받아 SchemaSource 인터페이스로 결과를 제공한다.
# - 주의 사항: 닫히지 않은 블록은 SchemaParseError로 보고한다. 원문은 로그에 요약 정보로만 남긴다.
# - 연관 모듈: generator, API 레이어(/mcp/generate/prisma)에서 사용된다.
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from typegen.services.descriptors import ColumnDescriptor, Entity
from typegen.services.errors import SchemaParseError
from typegen.services.safe_text import summarize_text

logger = logging.getLogger(__name__)

BLOCK_START_PATTERN = re.compile(
    r"^(model|view|enum|type|generator|datasource)\s+(\w+)\s*\{\s*(?://.*)?$"
)
FIELD_PATTERN = re.compile(r"^(\w+)\s+(\w+(?:\([^)]*\))?)(\[\])?(\?)?(?:\s+(.*))?$")
ENUM_VALUE_PATTERN = re.compile(r"^(\w+)(?:\s+(.*))?$")
FUNCTION_PATTERN = re.compile(r"^\w+\s*\(.*\)$", re.DOTALL)
IGNORE_ATTRIBUTE_PATTERN = re.compile(r"(?<!@)@ignore\b")
TABLE_IGNORE_PATTERN = re.compile(r"^@@ignore\b")
UPDATED_AT_PATTERN = re.compile(r"(?<!@)@updatedAt\b")
RELATION_PATTERN = re.compile(r"(?<!@)@relation\b")
NAMED_ARGUMENT_PATTERN = re.compile(r"^\w+\s*:\s*(.*)$", re.DOTALL)


@dataclass
class _FieldLine:
    name: str
    type_name: str
    is_list: bool
    is_optional: bool
    attributes: str
    comment: str


@dataclass
class _Block:
    kind: str
    name: str
    fields: list[_FieldLine] = field(default_factory=list)
    block_attributes: list[str] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)

    @property
    def is_ignored(self) -> bool:
        return any(TABLE_IGNORE_PATTERN.match(attribute) for attribute in self.block_attributes)


def split_comment(text: str) -> tuple[str, str]:
    """Split ``text`` at the first ``//`` that is not inside a string literal."""
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
        elif char == '"':
            in_string = not in_string
        elif char == "/" and not in_string and text.startswith("//", index):
            return text[:index].rstrip(), text[index + 2 :].strip()
    return text.rstrip(), ""


def split_arguments(text: str) -> list[str]:
    arguments = []
    depth = 0
    in_string = False
    escaped = False
    current = []
    for char in text:
        if escaped:
            escaped = False
        elif char == "\\" and in_string:
            escaped = True
        elif char == '"':
            in_string = not in_string
        elif not in_string and char in "([{":
            depth += 1
        elif not in_string and char in ")]}":
            depth -= 1
        elif char == "," and depth == 0 and not in_string:
            arguments.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail:
        arguments.append(tail)
    return arguments


def unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return value


def attribute_arguments(attributes: str, attribute: str) -> str | None:
    """Return the raw argument text of ``attribute(...)``, skipping quoted strings."""
    match = re.search(rf"(?<!@){re.escape(attribute)}\(", attributes)
    if match is None:
        return None
    depth = 1
    in_string = False
    escaped = False
    for index in range(match.end(), len(attributes)):
        char = attributes[index]
        if escaped:
            escaped = False
        elif in_string:
            if char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
            if depth == 0:
                return attributes[match.end() : index]
    return None


def first_argument(attributes: str, attribute: str) -> str | None:
    arguments_text = attribute_arguments(attributes, attribute)
    if arguments_text is None:
        return None
    arguments = split_arguments(arguments_text)
    if not arguments:
        return None
    argument = arguments[0]
    named = NAMED_ARGUMENT_PATTERN.match(argument)
    if named and not argument.startswith('"'):
        argument = named.group(1)
    return argument.strip()


# [함수 설명]
# - 목적: 필드 속성 문자열에서 기본값 리터럴과 자동 생성 여부를 계산한다.
# - 입력: attributes: str (예: '@id @default(autoincrement())')
# - 출력: (default_literal, is_auto_generated)
# - 에러 처리: 인자가 없는 @default는 기본값 없음으로 취급한다.
# - 결정론: 동일 입력에 대해 항상 동일 결과를 반환한다.
def parse_field_default(attributes: str) -> tuple[str | None, bool]:
    if UPDATED_AT_PATTERN.search(attributes):
        return None, True
    argument = first_argument(attributes, "@default")
    if argument is None:
        return None, False
    if FUNCTION_PATTERN.match(argument):
        return None, True
    return unquote(argument), False


class PrismaSchemaSource:
    dialect = "prisma"

    def __init__(self, schema_text: str) -> None:
        summary = summarize_text(schema_text)
        logger.info(
            "prisma_source: schema_len=%s schema_hash=%s",
            summary["len"],
            summary["sha256_8"],
        )
        self._blocks = _parse_blocks(schema_text)
        self._entities = {
            block.name: block for block in self._blocks if block.kind in ("model", "view")
        }
        self._composite_types = {block.name for block in self._blocks if block.kind == "type"}
        self._ignored_enums = {
            block.name for block in self._blocks if block.kind == "enum" and block.is_ignored
        }
        self._enums = {
            block.name: _enum_members(block)
            for block in self._blocks
            if block.kind == "enum" and not block.is_ignored
        }

    @classmethod
    def from_path(cls, path: str | Path) -> PrismaSchemaSource:
        return cls(Path(path).read_text(encoding="utf-8"))

    @property
    def views_enabled(self) -> bool:
        for block in self._blocks:
            if block.kind != "generator":
                continue
            for line in block.lines:
                key, _, value = line.partition("=")
                if key.strip() == "previewFeatures" and "views" in value:
                    return True
        return False

    def list_entities(self) -> list[Entity]:
        entities = []
        for block in self._entities.values():
            if block.is_ignored:
                logger.info("list_entities: dialect=prisma skipped=%s", block.name)
                continue
            kind = "view" if block.kind == "view" else "table"
            entities.append(Entity(name=block.name, kind=kind))
        return entities

    def _is_relation(self, field_line: _FieldLine) -> bool:
        if RELATION_PATTERN.search(field_line.attributes):
            return True
        return field_line.type_name in self._entities or field_line.type_name in self._composite_types

    def describe_columns(self, entity_name: str) -> list[ColumnDescriptor]:
        block = self._entities.get(entity_name)
        if block is None or block.is_ignored:
            return []

        descriptors = []
        for field_line in block.fields:
            if field_line.is_list or self._is_relation(field_line):
                continue
            if IGNORE_ATTRIBUTE_PATTERN.search(field_line.attributes):
                continue
            default_literal, is_auto_generated = parse_field_default(field_line.attributes)
            enum_values = None
            if field_line.type_name in self._enums:
                members = self._enums[field_line.type_name]
                enum_values = tuple(members.values())
                if default_literal is not None:
                    default_literal = members.get(default_literal, default_literal)
            elif field_line.type_name in self._ignored_enums:
                enum_values = ()
            descriptors.append(
                ColumnDescriptor(
                    name=field_line.name,
                    raw_type=field_line.type_name,
                    is_nullable=field_line.is_optional,
                    default_literal=default_literal,
                    is_auto_generated=is_auto_generated,
                    enum_values=enum_values,
                    embedded_directives=field_line.comment,
                )
            )
        logger.info(
            "describe_columns: dialect=prisma entity=%s columns=%s", entity_name, len(descriptors)
        )
        return descriptors

    def resolve_enum_values(self, entity_name: str, column_name: str) -> list[str]:
        block = self._entities.get(entity_name)
        if block is None:
            return []
        for field_line in block.fields:
            if field_line.name == column_name and field_line.type_name in self._enums:
                return list(self._enums[field_line.type_name].values())
        return []


def _parse_blocks(schema_text: str) -> list[_Block]:
    blocks: list[_Block] = []
    current: _Block | None = None
    start_line = 0
    doc_lines: list[str] = []

    for line_number, raw_line in enumerate(schema_text.splitlines(), start=1):
        line = raw_line.strip()
        if current is None:
            match = BLOCK_START_PATTERN.match(line)
            if match:
                current = _Block(kind=match.group(1), name=match.group(2))
                start_line = line_number
                doc_lines = []
            continue

        if split_comment(line)[0] == "}":
            blocks.append(current)
            current = None
            continue
        if not line:
            doc_lines = []
            continue
        if line.startswith("///"):
            doc_lines.append(line[3:].strip())
            continue
        if line.startswith("//"):
            continue

        current.lines.append(line)
        if line.startswith("@@"):
            current.block_attributes.append(split_comment(line)[0])
            continue
        if current.kind in ("model", "view", "type"):
            field_line = _parse_field(line, doc_lines)
            if field_line is not None:
                current.fields.append(field_line)
        doc_lines = []

    if current is not None:
        raise SchemaParseError(
            f"Unterminated {current.kind} block '{current.name}' starting at line {start_line}"
        )
    return blocks


def _parse_field(line: str, doc_lines: list[str]) -> _FieldLine | None:
    body, trailing_comment = split_comment(line)
    match = FIELD_PATTERN.match(body)
    if not match:
        return None
    comment_parts = [*doc_lines]
    if trailing_comment:
        comment_parts.append(trailing_comment)
    return _FieldLine(
        name=match.group(1),
        type_name=match.group(2),
        is_list=match.group(3) is not None,
        is_optional=match.group(4) is not None,
        attributes=match.group(5) or "",
        comment="\n".join(comment_parts),
    )


def _enum_members(block: _Block) -> dict[str, str]:
    """Map each kept enum identifier to its emitted value, in declaration order."""
    members: dict[str, str] = {}
    for line in block.lines:
        if line.startswith("@@"):
            continue
        body, _ = split_comment(line)
        match = ENUM_VALUE_PATTERN.match(body)
        if not match:
            continue
        attributes = match.group(2) or ""
        if IGNORE_ATTRIBUTE_PATTERN.search(attributes):
            continue
        mapped = first_argument(attributes, "@map")
        members[match.group(1)] = unquote(mapped) if mapped is not None else match.group(1)
    return members
