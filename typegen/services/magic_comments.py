# [파일 설명]
# - 목적: 컬럼/테이블 주석에 포함된 매직 코멘트(@zod, @ts, @kysely, @ignore)를 해석한다.
# - 제공 기능: 괄호 균형 스캔으로 오버라이드 표현식을 추출하고 ignore 지시어를 판별한다.
# - 입력/출력: 주석 문자열을 입력받아 표현식 문자열 또는 None/bool을 반환한다.
# - 주의 사항: 괄호가 닫히지 않은 지시어는 오류가 아니라 "없음"으로 취급한다.
# - 연관 모듈: 스키마 소스(typegen.services.*_source)와 type_resolver에서 사용된다.
from __future__ import annotations

from dataclasses import dataclass

OPENING_DELIMITERS = frozenset("({<[")
CLOSING_DELIMITERS = frozenset(")}>]")

ZOD_PREFIX = "@zod("
TS_PREFIX = "@ts("
KYSELY_PREFIX = "@kysely("

IGNORE_DIRECTIVE = "@ignore"
TABLE_IGNORE_DIRECTIVE = "@@ignore"


@dataclass(frozen=True)
class MagicComments:
    zod: str | None = None
    ts: str | None = None
    kysely: str | None = None


# [함수 설명]
# - 목적: prefix 직후부터 괄호 깊이를 추적해 균형이 맞는 표현식을 잘라낸다.
# - 입력: comment: str, prefix: str (예: "@ts(")
# - 출력: prefix와 대응 닫는 괄호 사이의 문자열, 없거나 균형이 맞지 않으면 None
# - 에러 처리: 예외를 발생시키지 않는다.
# - 결정론: 첫 번째 prefix 위치만 사용한다.
def extract_type_expression(comment: str, prefix: str) -> str | None:
    start = comment.find(prefix)
    if start == -1:
        return None

    body_start = start + len(prefix)
    depth = 1
    for position in range(body_start, len(comment)):
        char = comment[position]
        if char in OPENING_DELIMITERS:
            depth += 1
        elif char in CLOSING_DELIMITERS:
            depth -= 1
            if depth == 0:
                return comment[body_start:position]
    return None


def extract_zod_expression(comment: str) -> str | None:
    return extract_type_expression(comment, ZOD_PREFIX)


def extract_ts_expression(comment: str) -> str | None:
    return extract_type_expression(comment, TS_PREFIX)


def extract_kysely_expression(comment: str) -> str | None:
    return extract_type_expression(comment, KYSELY_PREFIX)


def has_ignore_directive(comment: str) -> bool:
    # Also true for "@@ignore"; check has_table_ignore_directive first where it matters.
    return IGNORE_DIRECTIVE in comment


def has_table_ignore_directive(comment: str) -> bool:
    return TABLE_IGNORE_DIRECTIVE in comment


def has_magic_comment(comment: str) -> bool:
    return any(prefix in comment for prefix in (ZOD_PREFIX, TS_PREFIX, KYSELY_PREFIX))


def parse_magic_comments(comment: str) -> MagicComments:
    return MagicComments(
        zod=extract_zod_expression(comment),
        ts=extract_ts_expression(comment),
        kysely=extract_kysely_expression(comment),
    )
