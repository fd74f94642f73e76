# [파일 설명]
# - 목적: 스키마 소스 하나를 모든 출력 대상에 대해 렌더링하는 전체 생성 흐름을 담당한다.
# - 제공 기능: 엔티티 목록 조회/필터링, 컬럼 정렬, 타깃별 파일 경로 계산, 선택적 파일 기록을 제공한다.
# - 입력/출력: SchemaSource와 GenerationConfig를 받아 {출력 경로: 파일 내용} dict를 반환한다.
# - 주의 사항: Kysely 타깃은 엔티티별 파일 대신 하나의 통합 파일로 기록된다.
# - 연관 모듈: renderer, entity_filters, API 레이어에서 사용된다.
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from typegen.services.descriptors import ColumnDescriptor, Entity, SchemaSource
from typegen.services.entity_filters import filter_entities
from typegen.services.errors import ConfigurationError
from typegen.services.renderer import EnumAccumulator, render_entity, render_kysely_database
from typegen.services.targets import KyselyTarget, Target, target_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationConfig:
    destinations: tuple[Target, ...]
    tables: tuple[str, ...] = ()
    views: tuple[str, ...] = ()
    ignore: tuple[str, ...] = ()
    ignore_views: tuple[str, ...] = ()
    include_views: bool = False
    camel_case: bool = False
    magic_comments: bool = True
    dry_run: bool = True


def kysely_output_path(target: KyselyTarget) -> str:
    return target.out_file or str(Path(target.folder or ".") / "db.ts")


def output_path(entity: Entity, target: Target) -> str:
    if isinstance(target, KyselyTarget):
        return kysely_output_path(target)
    file_name = f"{entity.name}.{target.suffix}.ts" if target.suffix else f"{entity.name}.ts"
    return str(Path(target.folder or ".") / file_name)


def select_entities(source: SchemaSource, config: GenerationConfig) -> list[Entity]:
    entities = source.list_entities()
    table_names = filter_entities(
        [entity.name for entity in entities if entity.kind == "table"],
        list(config.tables),
        list(config.ignore),
    )
    view_names: list[str] = []
    if config.include_views and source.views_enabled:
        view_names = filter_entities(
            [entity.name for entity in entities if entity.kind == "view"],
            list(config.views),
            list(config.ignore_views),
        )
    selected = [
        entity
        for entity in entities
        if (entity.kind == "table" and entity.name in table_names)
        or (entity.kind == "view" and entity.name in view_names)
    ]
    return sorted(selected, key=lambda entity: (entity.name, entity.kind))


# [함수 설명]
# - 목적: 스키마 소스 전체를 설정된 모든 출력 대상으로 렌더링한다.
# - 입력: source: SchemaSource, config: GenerationConfig
# - 출력: {출력 경로: 파일 내용} dict
# - 에러 처리: 출력 대상이 없으면 ConfigurationError, Zod 미지원 타입은 UnsupportedTypeError를 전파한다.
# - 결정론: 엔티티는 이름순, 컬럼은 컬럼명순으로 정렬해 동일 입력에 동일 결과를 보장한다.
def generate(source: SchemaSource, config: GenerationConfig) -> dict[str, str]:
    if not config.destinations:
        raise ConfigurationError("At least one destination is required.")

    entities = select_entities(source, config)
    logger.info(
        "generate: dialect=%s entities=%s destinations=%s",
        source.dialect,
        len(entities),
        len(config.destinations),
    )

    columns_by_entity: dict[str, list[ColumnDescriptor]] = {}
    for entity in entities:
        columns = sorted(source.describe_columns(entity.name), key=lambda column: column.name)
        if columns:
            columns_by_entity[entity.name] = columns
    rendered_entities = [entity for entity in entities if entity.name in columns_by_entity]

    results: dict[str, str] = {}
    enums = EnumAccumulator()
    for target in config.destinations:
        if isinstance(target, KyselyTarget):
            continue
        for entity in rendered_entities:
            results[output_path(entity, target)] = render_entity(
                entity,
                columns_by_entity[entity.name],
                target,
                dialect=source.dialect,
                magic_comments=config.magic_comments,
                camel_case=config.camel_case,
                enums=enums,
            )
        logger.info("generate: target=%s entities=%s", target_name(target), len(rendered_entities))

    for target in config.destinations:
        if not isinstance(target, KyselyTarget):
            continue
        blocks = [
            (
                entity,
                render_entity(
                    entity,
                    columns_by_entity[entity.name],
                    target,
                    dialect=source.dialect,
                    magic_comments=config.magic_comments,
                    camel_case=config.camel_case,
                ),
            )
            for entity in rendered_entities
        ]
        results[kysely_output_path(target)] = render_kysely_database(
            blocks, target, camel_case=config.camel_case
        )
        logger.info("generate: target=%s entities=%s", target_name(target), len(blocks))

    if not config.dry_run:
        write_outputs(results)
    return results


def write_outputs(results: dict[str, str]) -> None:
    for path, content in results.items():
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        logger.info("Created: %s", path)
