import logging

from fastapi.testclient import TestClient

from typegen.main import app

SENTINEL = "SCHEMA_SENTINEL__PRIVATE_NOTE"


def test_no_schema_echo_generate_prisma(caplog) -> None:
    caplog.set_level(logging.INFO)
    client = TestClient(app)

    response = client.post(
        "/mcp/generate/prisma",
        json={
            "prisma_schema": (
                "model Note {\n"
                f"  // {SENTINEL}\n"
                "  id Int @id\n"
                "}\n"
            ),
            "destinations": [{"type": "ts"}],
        },
    )

    assert response.status_code == 200
    assert SENTINEL not in response.text
    assert SENTINEL not in caplog.text
    assert "schema_hash=" in caplog.text


def test_no_schema_echo_ddl_parse_error(caplog) -> None:
    caplog.set_level(logging.INFO)
    client = TestClient(app)

    response = client.post(
        "/mcp/generate/ddl",
        json={
            "ddl": f"CREATE TABLE notes (id INT, note VARCHAR(10) DEFAULT '{SENTINEL}'",
            "destinations": [{"type": "ts"}],
        },
    )

    assert response.status_code == 400
    assert SENTINEL not in response.text
    assert SENTINEL not in caplog.text
