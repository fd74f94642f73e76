# [파일 설명]
# - 목적: MCP API 라우트를 정의하고 요청/응답 모델을 제공한다.
# - 제공 기능: 단일 컬럼 해석, 엔티티 렌더링, Prisma/DDL 스키마 전체 생성 POST 엔드포인트를 제공한다.
# - 입력/출력: Pydantic 모델로 요청을 수신하고 생성된 TypeScript 텍스트를 반환한다.
# - 주의 사항: 스키마 원문은 로그에 요약 정보로만 남긴다. API 경로에서는 파일을 기록하지 않는다.
# - 연관 모듈: typegen.services.* 서비스들과 연결된다.
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Annotated, Literal, Union

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from typegen.services.ddl_source import DdlSource
from typegen.services.descriptors import ColumnDescriptor, Entity, SchemaSource
from typegen.services.errors import (
    ConfigurationError,
    SchemaParseError,
    TypegenError,
    UnsupportedTypeError,
)
from typegen.services.generator import GenerationConfig, generate
from typegen.services.prisma_source import PrismaSchemaSource
from typegen.services.renderer import render_entity, render_kysely_database
from typegen.services.safe_text import summarize_text
from typegen.services.targets import KyselyTarget, Role, TsTarget, ZodTarget
from typegen.services.type_resolver import resolve

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"

SqlDialect = Literal["mysql", "postgres", "sqlite"]
SchemaDialect = Literal["mysql", "postgres", "sqlite", "prisma"]


# [클래스 설명]
# - 역할: Zod 출력 대상 설정을 정의한다.
# - 사용 위치: 생성/렌더링 요청의 destinations 항목으로 사용된다.
# - 핵심 동작: to_target()으로 서비스 레이어의 ZodTarget으로 변환한다.
# - 제약/주의: version은 3 또는 4만 허용한다.
class ZodDestination(BaseModel):
    type: Literal["zod"] = "zod"
    use_date_type: bool = False
    use_trim: bool = False
    nullish: bool = False
    required_string: bool = False
    boolean_union: bool = False
    version: Literal[3, 4] = 3
    header: str | None = None
    folder: str = "."
    suffix: str = "zod"
    override_types: dict[str, str] = Field(default_factory=dict)

    def to_target(self) -> ZodTarget:
        return ZodTarget(
            use_date_type=self.use_date_type,
            use_trim=self.use_trim,
            nullish=self.nullish,
            required_string=self.required_string,
            boolean_union=self.boolean_union,
            version=self.version,
            header=self.header,
            folder=self.folder,
            suffix=self.suffix,
            override_types=dict(self.override_types),
        )


class TsDestination(BaseModel):
    type: Literal["ts"] = "ts"
    enum_type: Literal["union", "enum"] = "union"
    model_type: Literal["interface", "type"] = "interface"
    header: str | None = None
    folder: str = "."
    suffix: str = ""
    override_types: dict[str, str] = Field(default_factory=dict)

    def to_target(self) -> TsTarget:
        return TsTarget(
            enum_type=self.enum_type,
            model_type=self.model_type,
            header=self.header,
            folder=self.folder,
            suffix=self.suffix,
            override_types=dict(self.override_types),
        )


class KyselyDestination(BaseModel):
    type: Literal["kysely"] = "kysely"
    schema_name: str = Field("DB", min_length=1)
    header: str | None = None
    folder: str = "."
    out_file: str | None = None
    override_types: dict[str, str] = Field(default_factory=dict)

    def to_target(self) -> KyselyTarget:
        return KyselyTarget(
            schema_name=self.schema_name,
            header=self.header,
            folder=self.folder,
            out_file=self.out_file,
            override_types=dict(self.override_types),
        )


Destination = Annotated[
    Union[ZodDestination, TsDestination, KyselyDestination],
    Field(discriminator="type"),
]


# [클래스 설명]
# - 역할: API로 전달되는 컬럼 메타데이터를 정의한다.
# - 사용 위치: /resolve, /render 요청에서 사용된다.
# - 핵심 동작: to_descriptor()로 ColumnDescriptor로 변환한다.
# - 제약/주의: enum_values가 None이면 enum 컬럼이 아닌 것으로 취급한다.
class ColumnModel(BaseModel):
    name: str = Field(..., min_length=1)
    raw_type: str = Field(..., min_length=1)
    is_nullable: bool = False
    default_literal: str | None = None
    is_auto_generated: bool = False
    enum_values: list[str] | None = None
    embedded_directives: str = ""

    def to_descriptor(self) -> ColumnDescriptor:
        return ColumnDescriptor(
            name=self.name,
            raw_type=self.raw_type,
            is_nullable=self.is_nullable,
            default_literal=self.default_literal,
            is_auto_generated=self.is_auto_generated,
            enum_values=tuple(self.enum_values) if self.enum_values is not None else None,
            embedded_directives=self.embedded_directives,
        )


class ResolveRequest(BaseModel):
    column: ColumnModel
    destination: Destination
    role: Literal["full", "insertable", "updateable", "selectable"] = "full"
    dialect: SchemaDialect = "mysql"
    magic_comments: bool = True


class ResolveResponse(BaseModel):
    version: str
    expression: str
    nullable: bool
    optional: bool
    generated: bool
    overridden: bool


class RenderRequest(BaseModel):
    entity: str = Field(..., min_length=1)
    kind: Literal["table", "view"] = "table"
    columns: list[ColumnModel] = Field(..., min_length=1)
    destination: Destination
    dialect: SchemaDialect = "mysql"
    camel_case: bool = False
    magic_comments: bool = True


class RenderResponse(BaseModel):
    version: str
    content: str


# [클래스 설명]
# - 역할: 스키마 전체 생성 시 엔티티 선택과 출력 옵션을 정의한다.
# - 사용 위치: /generate/prisma, /generate/ddl 요청의 options 필드
# - 핵심 동작: 포함/제외 목록과 camel_case, magic_comments 토글을 전달한다.
# - 제약/주의: ignore 항목이 /.../ 형태이면 정규식으로 해석된다.
class GenerationOptions(BaseModel):
    tables: list[str] = Field(default_factory=list)
    views: list[str] = Field(default_factory=list)
    ignore: list[str] = Field(default_factory=list)
    ignore_views: list[str] = Field(default_factory=list)
    include_views: bool = False
    camel_case: bool = False
    magic_comments: bool = True


class GeneratePrismaRequest(BaseModel):
    prisma_schema: str = Field(..., min_length=1)
    destinations: list[Destination] = Field(..., min_length=1)
    options: GenerationOptions = Field(default_factory=GenerationOptions)


class GenerateDdlRequest(BaseModel):
    ddl: str = Field(..., min_length=1)
    dialect: SqlDialect = "mysql"
    destinations: list[Destination] = Field(..., min_length=1)
    options: GenerationOptions = Field(default_factory=GenerationOptions)


class GeneratedFile(BaseModel):
    path: str
    content: str


class GenerateResponse(BaseModel):
    version: str
    files: list[GeneratedFile]


# [함수 설명]
# - 목적: 서비스 레이어 예외를 HTTP 응답 코드로 변환한다.
# - 입력: exc: TypegenError
# - 출력: HTTPException (항상 raise 대상으로 반환)
# - 에러 처리: 미지원 타입은 422, 파싱/설정 오류는 400으로 매핑한다.
# - 결정론: 동일 예외 유형에 대해 동일 상태 코드를 반환한다.
def _http_error(exc: TypegenError) -> HTTPException:
    if isinstance(exc, UnsupportedTypeError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "UNSUPPORTED_TYPE", "raw_type": exc.raw_type, "message": str(exc)},
        )
    if isinstance(exc, SchemaParseError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "SCHEMA_PARSE_ERROR", "message": str(exc)},
        )
    if isinstance(exc, ConfigurationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "CONFIGURATION_ERROR", "message": str(exc)},
        )
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "TYPEGEN_ERROR", "message": str(exc)},
    )


def _generation_config(
    destinations: list[Destination], options: GenerationOptions
) -> GenerationConfig:
    return GenerationConfig(
        destinations=tuple(destination.to_target() for destination in destinations),
        tables=tuple(options.tables),
        views=tuple(options.views),
        ignore=tuple(options.ignore),
        ignore_views=tuple(options.ignore_views),
        include_views=options.include_views,
        camel_case=options.camel_case,
        magic_comments=options.magic_comments,
        dry_run=True,
    )


def _run_generation(
    source_factory: Callable[[], SchemaSource],
    destinations: list[Destination],
    options: GenerationOptions,
) -> GenerateResponse:
    try:
        source = source_factory()
        results = generate(source, _generation_config(destinations, options))
    except TypegenError as exc:
        logger.info("generate: failed error=%s", type(exc).__name__)
        raise _http_error(exc) from exc
    files = [GeneratedFile(path=path, content=results[path]) for path in sorted(results)]
    return GenerateResponse(version=API_VERSION, files=files)


# [함수 설명]
# - 목적: /resolve 엔드포인트 요청을 처리한다.
# - 입력: 컬럼 하나와 출력 대상, 역할, 방언
# - 출력: 타입 표현식과 nullable/optional/generated/overridden 판단 결과
# - 에러 처리: Zod 미지원 타입은 422로 응답한다.
# - 결정론: 동일 입력에 대해 동일 표현식을 반환한다.
@router.post("/resolve", response_model=ResolveResponse)
def resolve_column(request: ResolveRequest) -> ResolveResponse:
    try:
        resolved = resolve(
            request.column.to_descriptor(),
            Role(request.role),
            request.destination.to_target(),
            dialect=request.dialect,
            magic_comments=request.magic_comments,
        )
    except TypegenError as exc:
        raise _http_error(exc) from exc
    return ResolveResponse(
        version=API_VERSION,
        expression=resolved.expression,
        nullable=resolved.nullable,
        optional=resolved.optional,
        generated=resolved.generated,
        overridden=resolved.overridden,
    )


@router.post("/render", response_model=RenderResponse)
def render(request: RenderRequest) -> RenderResponse:
    entity = Entity(name=request.entity, kind=request.kind)
    target = request.destination.to_target()
    columns = [column.to_descriptor() for column in request.columns]
    try:
        content = render_entity(
            entity,
            columns,
            target,
            dialect=request.dialect,
            magic_comments=request.magic_comments,
            camel_case=request.camel_case,
        )
    except TypegenError as exc:
        raise _http_error(exc) from exc
    if isinstance(target, KyselyTarget):
        content = render_kysely_database(
            [(entity, content)], target, camel_case=request.camel_case
        )
    return RenderResponse(version=API_VERSION, content=content)


# [함수 설명]
# - 목적: /generate/prisma 엔드포인트 요청을 처리한다.
# - 입력: Prisma 스키마 원문, 출력 대상 목록, 엔티티 선택 옵션
# - 출력: 경로순으로 정렬된 생성 파일 목록
# - 에러 처리: 닫히지 않은 블록은 400, Zod 미지원 타입은 422로 응답한다.
# - 결정론: 파일 목록은 경로 기준으로 정렬한다.
# - 보안: 스키마 원문은 로그에 요약 정보로만 기록한다.
@router.post("/generate/prisma", response_model=GenerateResponse)
def generate_prisma(request: GeneratePrismaRequest) -> GenerateResponse:
    summary = summarize_text(request.prisma_schema)
    logger.info(
        "generate_prisma: schema_len=%s schema_hash=%s destinations=%s",
        summary["len"],
        summary["sha256_8"],
        len(request.destinations),
    )
    return _run_generation(
        lambda: PrismaSchemaSource(request.prisma_schema),
        request.destinations,
        request.options,
    )


@router.post("/generate/ddl", response_model=GenerateResponse)
def generate_ddl(request: GenerateDdlRequest) -> GenerateResponse:
    summary = summarize_text(request.ddl)
    logger.info(
        "generate_ddl: dialect=%s ddl_len=%s ddl_hash=%s destinations=%s",
        request.dialect,
        summary["len"],
        summary["sha256_8"],
        len(request.destinations),
    )
    return _run_generation(
        lambda: DdlSource(request.ddl, request.dialect),
        request.destinations,
        request.options,
    )
