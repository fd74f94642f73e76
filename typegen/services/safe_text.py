# [파일 설명]
# - 목적: 스키마 원문의 요약 정보를 계산해 안전한 로그 출력에 활용한다.
# - 제공 기능: 길이/해시 요약 데이터를 생성한다.
# - 입력/출력: Prisma 스키마 또는 DDL 원문을 받아 요약 dict를 반환한다.
# - 주의 사항: 원문 자체는 반환하거나 로그에 남기지 않는다.
# - 연관 모듈: 스키마 소스(typegen.services.*_source)와 API 레이어에서 사용된다.
from __future__ import annotations

import hashlib


def summarize_text(text: str) -> dict[str, int | str]:
    text_hash = hashlib.sha256(text.encode("utf-8")).hexdigest()[:8]
    return {"len": len(text), "sha256_8": text_hash}
