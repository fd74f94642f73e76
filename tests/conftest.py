# [파일 설명]
# - 목적: 테스트 실행 시 저장소 루트를 import 경로에 추가한다.
# - 제공 기능: typegen 패키지를 설치 없이 import할 수 있게 한다.
# - 입력/출력: 없음
# - 주의 사항: 스키마 원문이나 비밀 값은 로그/출력에 포함하지 않는다.
# - 연관 모듈: typegen.main/typegen.api.mcp 및 서비스 레이어와 연동된다.
from __future__ import annotations

import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))
