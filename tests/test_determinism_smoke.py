# [파일 설명]
# - 목적: API 및 서비스의 기대 동작을 자동으로 검증한다.
# - 제공 기능: 동일 요청을 반복 호출해 응답이 바이트 단위로 같은지 확인한다.
# - 입력/출력: 고정 입력을 사용하며 테스트 통과 여부로 결과를 확인한다.
# - 주의 사항: 스키마 원문이나 비밀 값은 로그/출력에 포함하지 않는다.
# - 연관 모듈: typegen.main/typegen.api.mcp 및 서비스 레이어와 연동된다.
from fastapi.testclient import TestClient

from typegen.main import app

DESTINATIONS = [
    {"type": "zod", "version": 4, "nullish": True},
    {"type": "ts", "enum_type": "enum"},
    {"type": "kysely"},
]


# [함수 설명]
# - 목적: determinism smoke endpoints 동작을 검증한다.
# - 입력: 테스트 픽스처/클라이언트 등 고정 입력을 사용한다.
# - 출력: 예외 없이 단언을 통과하면 성공으로 간주한다.
# - 에러 처리: 실패 시 pytest가 assertion 결과를 보고한다.
# - 결정론: 동일 입력으로 항상 재현 가능한 검증을 수행한다.
# - 보안: 테스트 로그에 스키마 원문/민감 정보를 남기지 않는다.
def test_determinism_smoke_endpoints() -> None:
    client = TestClient(app)

    prisma_payload = {
        "prisma_schema": """
        enum Status {
          DRAFT
          PUBLISHED
        }

        model Post {
          id        Int      @id @default(autoincrement())
          title     String
          status    Status   @default(DRAFT)
          body      String?
          createdAt DateTime @default(now())
        }

        model Tag {
          label String @id
          posts Post[]
        }
        """,
        "destinations": DESTINATIONS,
    }

    first = client.post("/mcp/generate/prisma", json=prisma_payload)
    second = client.post("/mcp/generate/prisma", json=prisma_payload)

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json() == second.json()

    ddl_payload = {
        "ddl": """
        CREATE TABLE posts (
          id INT AUTO_INCREMENT PRIMARY KEY,
          status ENUM('draft', 'published') NOT NULL DEFAULT 'draft',
          score DECIMAL(10, 2) DEFAULT 0,
          meta JSON
        );
        CREATE TABLE authors (id INT PRIMARY KEY, name VARCHAR(50) NOT NULL);
        """,
        "dialect": "mysql",
        "destinations": DESTINATIONS,
    }

    first = client.post("/mcp/generate/ddl", json=ddl_payload)
    second = client.post("/mcp/generate/ddl", json=ddl_payload)

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json() == second.json()
    paths = [item["path"] for item in first.json()["files"]]
    assert paths == sorted(paths)
