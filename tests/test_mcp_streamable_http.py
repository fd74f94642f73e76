# [파일 설명]
# - 목적: Streamable HTTP MCP 핸드셰이크 및 도구 호출 흐름을 검증한다.
# - 제공 기능: initialize/tools/list/tools/call 시나리오를 테스트한다.
# - 입력/출력: JSON-RPC 메시지를 사용한다.
# - 주의 사항: 스키마 원문/비밀 값은 로그에 포함하지 않는다.
# - 연관 모듈: typegen.main 및 typegen.mcp_streamable_http와 연동된다.
from fastapi.testclient import TestClient

from typegen.main import app


# [함수 설명]
# - 목적: MCP initialize 요청이 정상 응답을 반환하는지 확인한다.
# - 입력: JSON-RPC initialize 메시지
# - 출력: protocolVersion/capabilities/serverInfo 확인
# - 에러 처리: 실패 시 pytest assertion으로 보고한다.
# - 결정론: 동일 입력에 대해 동일 결과를 검증한다.
# - 보안: 스키마 원문/비밀 값은 사용하지 않는다.
def test_mcp_initialize_handshake() -> None:
    client = TestClient(app)

    payload = {
        "jsonrpc": "2.0",
        "id": "init-1",
        "method": "initialize",
        "params": {
            "protocolVersion": "2025-11-25",
            "clientInfo": {"name": "vscode", "version": "1.0"},
        },
    }
    response = client.post(
        "/mcp",
        json=payload,
        headers={"MCP-Protocol-Version": "2025-11-25"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["jsonrpc"] == "2.0"
    assert body["id"] == "init-1"
    result = body["result"]
    assert result["protocolVersion"] == "2025-11-25"
    assert "capabilities" in result
    assert "serverInfo" in result


# [함수 설명]
# - 목적: notifications/initialized 알림이 202를 반환하는지 확인한다.
# - 입력: JSON-RPC notification 메시지
# - 출력: HTTP 202 응답
# - 에러 처리: 실패 시 pytest assertion으로 보고한다.
# - 결정론: 동일 입력에 대해 동일 결과를 검증한다.
# - 보안: 민감 정보는 포함하지 않는다.
def test_mcp_initialized_notification_returns_202() -> None:
    client = TestClient(app)

    payload = {"jsonrpc": "2.0", "method": "notifications/initialized", "params": {}}
    response = client.post("/mcp", json=payload)

    assert response.status_code == 202


# [함수 설명]
# - 목적: tools/list 요청이 도구 목록을 반환하는지 확인한다.
# - 입력: JSON-RPC tools/list 메시지
# - 출력: 도구 목록 길이 검증
# - 에러 처리: 실패 시 pytest assertion으로 보고한다.
# - 결정론: 동일 입력에 대해 동일 결과를 검증한다.
# - 보안: 민감 정보는 포함하지 않는다.
def test_mcp_tools_list_returns_tools() -> None:
    client = TestClient(app)

    payload = {"jsonrpc": "2.0", "id": "list-1", "method": "tools/list", "params": {}}
    response = client.post(
        "/mcp",
        json=payload,
        headers={"MCP-Protocol-Version": "2025-11-25"},
    )

    assert response.status_code == 200
    body = response.json()
    tools = body["result"]["tools"]
    assert [tool["name"] for tool in tools] == [
        "typegen.generate_prisma",
        "typegen.generate_ddl",
    ]


# [함수 설명]
# - 목적: tools/call 요청이 생성 결과를 반환하는지 확인한다.
# - 입력: JSON-RPC tools/call 메시지
# - 출력: content 및 structuredContent 확인
# - 에러 처리: 실패 시 pytest assertion으로 보고한다.
# - 결정론: 동일 입력에 대해 동일 결과를 검증한다.
# - 보안: DDL 원문은 테스트 내부에서만 사용한다.
def test_mcp_tools_call_returns_result() -> None:
    client = TestClient(app)

    payload = {
        "jsonrpc": "2.0",
        "id": "call-1",
        "method": "tools/call",
        "params": {
            "name": "typegen.generate_ddl",
            "arguments": {
                "ddl": "CREATE TABLE users (id INT PRIMARY KEY, name VARCHAR(20));",
                "destinations": [{"type": "ts"}],
            },
        },
    }
    response = client.post(
        "/mcp",
        json=payload,
        headers={"MCP-Protocol-Version": "2025-11-25"},
    )

    assert response.status_code == 200
    body = response.json()
    result = body["result"]
    assert result["isError"] is False
    assert result["content"][0]["text"] == "Generation complete. files=1."
    files = result["structuredContent"]["files"]
    assert [item["path"] for item in files] == ["users.ts"]


# [함수 설명]
# - 목적: GET /mcp가 405를 반환하는지 확인한다.
# - 입력: GET 요청
# - 출력: HTTP 405 응답
# - 에러 처리: 실패 시 pytest assertion으로 보고한다.
# - 결정론: 동일 입력에 대해 동일 결과를 검증한다.
# - 보안: 민감 정보는 포함하지 않는다.
def test_mcp_get_returns_405() -> None:
    client = TestClient(app)

    response = client.get("/mcp")

    assert response.status_code == 405


# [함수 설명]
# - 목적: 지원되지 않는 MCP-Protocol-Version이 400을 반환하는지 확인한다.
# - 입력: 잘못된 MCP-Protocol-Version 헤더
# - 출력: HTTP 400 응답
# - 에러 처리: 실패 시 pytest assertion으로 보고한다.
# - 결정론: 동일 입력에 대해 동일 결과를 검증한다.
# - 보안: 민감 정보는 포함하지 않는다.
def test_mcp_invalid_protocol_version_returns_400() -> None:
    client = TestClient(app)

    payload = {"jsonrpc": "2.0", "id": "init-2", "method": "initialize", "params": {}}
    response = client.post(
        "/mcp",
        json=payload,
        headers={"MCP-Protocol-Version": "1900-01-01"},
    )

    assert response.status_code == 400


# [함수 설명]
# - 목적: 도구 실행 중 오류가 isError 결과로 반환되는지 확인한다.
# - 입력: 필수 인자가 누락된 arguments
# - 출력: isError=True 및 오류 요약 확인
# - 에러 처리: 실패 시 pytest assertion으로 보고한다.
# - 결정론: 동일 입력에 대해 동일 결과를 검증한다.
# - 보안: 민감 정보는 포함하지 않는다.
def test_mcp_tools_call_reports_errors() -> None:
    client = TestClient(app)

    payload = {
        "jsonrpc": "2.0",
        "id": "call-2",
        "method": "tools/call",
        "params": {"name": "typegen.generate_prisma", "arguments": {"destinations": []}},
    }
    response = client.post("/mcp", json=payload)

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["isError"] is True
    assert result["content"][0]["text"].startswith("Tool execution failed")


def test_mcp_unknown_tool_is_error() -> None:
    client = TestClient(app)

    payload = {
        "jsonrpc": "2.0",
        "id": "call-3",
        "method": "tools/call",
        "params": {"name": "typegen.unknown", "arguments": {}},
    }
    response = client.post("/mcp", json=payload)

    assert response.json()["result"]["isError"] is True


def test_mcp_unknown_method_returns_jsonrpc_error() -> None:
    client = TestClient(app)

    payload = {"jsonrpc": "2.0", "id": "x-1", "method": "resources/list", "params": {}}
    response = client.post("/mcp", json=payload)

    assert response.json()["error"]["code"] == -32601


# [함수 설명]
# - 목적: 허용 목록 밖의 Origin이 403으로 거부되는지 확인한다.
# - 입력: 외부 Origin 헤더, MCP_ALLOWED_ORIGINS 미설정
# - 출력: HTTP 403 응답
# - 보안: 루프백 Origin은 기본으로 허용된다.
def test_mcp_rejects_unknown_origin(monkeypatch) -> None:
    monkeypatch.delenv("MCP_ALLOWED_ORIGINS", raising=False)
    client = TestClient(app)
    payload = {"jsonrpc": "2.0", "method": "notifications/initialized", "params": {}}

    rejected = client.post("/mcp", json=payload, headers={"Origin": "https://evil.example"})
    local = client.post("/mcp", json=payload, headers={"Origin": "http://localhost:5173"})

    assert rejected.status_code == 403
    assert local.status_code == 202


def test_mcp_allowed_origins_from_env(monkeypatch) -> None:
    monkeypatch.setenv("MCP_ALLOWED_ORIGINS", "https://app.example, https://admin.example/")
    client = TestClient(app)
    payload = {"jsonrpc": "2.0", "method": "notifications/initialized", "params": {}}

    allowed = client.post("/mcp", json=payload, headers={"Origin": "https://admin.example"})
    rejected = client.post("/mcp", json=payload, headers={"Origin": "https://other.example"})

    assert allowed.status_code == 202
    assert rejected.status_code == 403

    monkeypatch.setenv("MCP_ALLOWED_ORIGINS", "*")
    assert client.post(
        "/mcp", json=payload, headers={"Origin": "https://other.example"}
    ).status_code == 202
