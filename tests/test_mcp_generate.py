from fastapi.testclient import TestClient

from typegen.main import app

PRISMA_SCHEMA = """
enum Role {
  ADMIN
  MEMBER
}

model User {
  id    Int    @id @default(autoincrement())
  email String
  role  Role   @default(MEMBER)
}

model Archive {
  id Int @id

  @@ignore
}
"""


def test_generate_prisma_returns_sorted_files() -> None:
    client = TestClient(app)

    response = client.post(
        "/mcp/generate/prisma",
        json={
            "prisma_schema": PRISMA_SCHEMA,
            "destinations": [{"type": "zod"}, {"type": "ts"}, {"type": "kysely"}],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["version"] == "1.0.0"
    paths = [item["path"] for item in body["files"]]
    assert paths == ["User.ts", "User.zod.ts", "db.ts"]
    zod = body["files"][1]["content"]
    assert "  role: z.enum(['ADMIN','MEMBER']).default('MEMBER'),\n" in zod
    assert "export interface DB {\n  User: User;\n}\n" in body["files"][2]["content"]
    assert all("Archive" not in item["content"] for item in body["files"])


def test_generate_ddl_with_options() -> None:
    client = TestClient(app)

    response = client.post(
        "/mcp/generate/ddl",
        json={
            "ddl": (
                "CREATE TABLE user_accounts (id INT PRIMARY KEY, created_at DATETIME NOT NULL);"
                "CREATE TABLE tmp_rows (id INT);"
            ),
            "dialect": "mysql",
            "destinations": [{"type": "ts", "folder": "types"}],
            "options": {"ignore": ["/^tmp_/"], "camel_case": True},
        },
    )

    assert response.status_code == 200
    files = response.json()["files"]
    assert [item["path"] for item in files] == ["types/user_accounts.ts"]
    assert "  createdAt: Date;\n" in files[0]["content"]


def test_generate_ddl_parse_error_returns_400() -> None:
    client = TestClient(app)

    response = client.post(
        "/mcp/generate/ddl",
        json={"ddl": "CREATE TABLE broken (id INT", "destinations": [{"type": "ts"}]},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "SCHEMA_PARSE_ERROR"


def test_generate_prisma_unterminated_block_returns_400() -> None:
    client = TestClient(app)

    response = client.post(
        "/mcp/generate/prisma",
        json={"prisma_schema": "model User {\n  id Int @id\n", "destinations": [{"type": "zod"}]},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "SCHEMA_PARSE_ERROR"


def test_generate_requires_destinations() -> None:
    client = TestClient(app)

    response = client.post(
        "/mcp/generate/prisma",
        json={"prisma_schema": PRISMA_SCHEMA, "destinations": []},
    )

    assert response.status_code == 422


def test_resolve_column() -> None:
    client = TestClient(app)

    response = client.post(
        "/mcp/resolve",
        json={
            "column": {"name": "title", "raw_type": "varchar(255)", "is_nullable": True},
            "destination": {"type": "ts"},
            "role": "selectable",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["expression"] == "string | null"
    assert body["nullable"] is True
    assert body["optional"] is False


def test_resolve_unsupported_zod_type_returns_422() -> None:
    client = TestClient(app)

    response = client.post(
        "/mcp/resolve",
        json={
            "column": {"name": "area", "raw_type": "geometry"},
            "destination": {"type": "zod"},
        },
    )

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"] == "UNSUPPORTED_TYPE"
    assert detail["raw_type"] == "geometry"


def test_render_kysely_entity_includes_database_interface() -> None:
    client = TestClient(app)

    response = client.post(
        "/mcp/render",
        json={
            "entity": "users",
            "columns": [
                {"name": "id", "raw_type": "int", "is_auto_generated": True},
                {"name": "name", "raw_type": "varchar(20)", "is_nullable": True},
            ],
            "destination": {"type": "kysely", "schema_name": "Database"},
        },
    )

    assert response.status_code == 200
    content = response.json()["content"]
    assert "  id: Generated<number>;\n" in content
    assert "  name: string | null;\n" in content
    assert content.endswith("export interface Database {\n  users: Users;\n}\n")
