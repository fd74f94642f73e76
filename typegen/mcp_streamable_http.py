# [파일 설명]
# - 목적: Streamable HTTP MCP(JSON-RPC) 엔드포인트를 제공한다.
# - 제공 기능: initialize/tools/list/tools/call/ping 처리 및 프로토콜 버전 검증을 수행한다.
# - 입력/출력: JSON-RPC 요청을 받아 표준 응답 또는 202/405를 반환한다.
# - 주의 사항: 알림 메시지는 202로 응답하며, 도구 실행 실패는 isError로 표시한다.
# - 연관 모듈: typegen.api.mcp 서비스 레이어를 재사용한다.
from __future__ import annotations

import os
from typing import Any
from urllib.parse import urlsplit

from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from typegen.api.mcp import (
    GenerateDdlRequest,
    GeneratePrismaRequest,
    GenerateResponse,
    generate_ddl,
    generate_prisma,
)

router = APIRouter()

DEFAULT_SUPPORTED_PROTOCOL_VERSIONS = ("2025-03-26", "2025-11-25")

DESTINATIONS_SCHEMA: dict[str, Any] = {
    "type": "array",
    "minItems": 1,
    "description": "Output targets; each item has type zod, ts or kysely plus its options.",
    "items": {
        "type": "object",
        "properties": {"type": {"type": "string", "enum": ["zod", "ts", "kysely"]}},
        "required": ["type"],
    },
}

OPTIONS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "tables": {"type": "array", "items": {"type": "string"}},
        "views": {"type": "array", "items": {"type": "string"}},
        "ignore": {"type": "array", "items": {"type": "string"}},
        "ignore_views": {"type": "array", "items": {"type": "string"}},
        "include_views": {"type": "boolean", "default": False},
        "camel_case": {"type": "boolean", "default": False},
        "magic_comments": {"type": "boolean", "default": True},
    },
}

OUTPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "version": {"type": "string"},
        "files": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"path": {"type": "string"}, "content": {"type": "string"}},
            },
        },
    },
}


# [함수 설명]
# - 목적: 환경 변수 기반 지원 프로토콜 버전 목록을 구성한다.
# - 입력: MCP_SUPPORTED_PROTOCOL_VERSIONS 환경 변수 (콤마 구분)
# - 출력: 지원 버전 문자열 집합
# - 에러 처리: 빈 값은 기본 목록으로 대체한다.
# - 결정론: 동일 환경 입력에 대해 안정적인 결과를 반환한다.
def _load_supported_protocol_versions() -> set[str]:
    env_value = os.getenv("MCP_SUPPORTED_PROTOCOL_VERSIONS", "").strip()
    if not env_value:
        return set(DEFAULT_SUPPORTED_PROTOCOL_VERSIONS)
    return {item.strip() for item in env_value.split(",") if item.strip()}


LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


# [함수 설명]
# - 목적: 요청 Origin 헤더가 허용 목록에 포함되는지 판단한다.
# - 입력: origin 헤더 값, MCP_ALLOWED_ORIGINS 환경 변수 (콤마 구분, "*" 허용)
# - 출력: 허용 여부
# - 에러 처리: Origin 헤더가 없으면 비브라우저 클라이언트로 보고 허용한다.
# - 보안: 목록이 비어 있으면 루프백 Origin만 허용한다.
def _origin_allowed(origin: str | None) -> bool:
    if origin is None:
        return True
    env_value = os.getenv("MCP_ALLOWED_ORIGINS", "").strip()
    allowed = {item.strip().rstrip("/") for item in env_value.split(",") if item.strip()}
    if "*" in allowed or origin.rstrip("/") in allowed:
        return True
    try:
        hostname = urlsplit(origin).hostname
    except ValueError:
        return False
    return hostname in LOOPBACK_HOSTS


# [함수 설명]
# - 목적: MCP-Protocol-Version 헤더를 검증한다.
# - 입력: FastAPI headers
# - 출력: 협상된 프로토콜 버전 문자열
# - 에러 처리: 지원하지 않는 버전은 400으로 응답한다.
# - 결정론: 동일 입력에 대해 동일한 결과를 반환한다.
# - 보안: 프로토콜 버전 미스매치를 조기에 차단한다.
def _resolve_protocol_version(headers: Any) -> str:
    header_value = headers.get("MCP-Protocol-Version")
    if header_value:
        if header_value not in _load_supported_protocol_versions():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported MCP-Protocol-Version",
            )
        return header_value
    return "2025-03-26"


def _jsonrpc_response(
    request_id: Any, *, result: Any | None = None, error: Any | None = None
) -> JSONResponse:
    payload: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id}
    if error is not None:
        payload["error"] = error
    else:
        payload["result"] = result
    return JSONResponse(status_code=status.HTTP_200_OK, content=payload)


def _handle_initialize(_: dict[str, Any]) -> dict[str, Any]:
    return {
        "protocolVersion": "2025-11-25",
        "capabilities": {"tools": {"listChanged": False}},
        "serverInfo": {
            "name": "schema-typegen-mcp-server",
            "version": "0.1.0",
            "description": "Schema to Zod/TypeScript/Kysely type compiler MCP server",
        },
        "instructions": "Call tools/list then tools/call to generate type declarations.",
    }


# [함수 설명]
# - 목적: MCP 도구 목록을 반환한다.
# - 입력: 없음
# - 출력: tools/list 결과 딕셔너리
# - 에러 처리: 예외 없이 고정 목록을 반환한다.
# - 결정론: 동일 입력에 대해 동일 결과를 반환한다.
def _handle_tools_list() -> dict[str, Any]:
    return {
        "tools": [
            {
                "name": "typegen.generate_prisma",
                "description": (
                    "Compile a Prisma schema into Zod schemas, TypeScript interfaces "
                    "and a Kysely database interface."
                ),
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "prisma_schema": {
                            "type": "string",
                            "description": "Prisma schema text.",
                        },
                        "destinations": DESTINATIONS_SCHEMA,
                        "options": OPTIONS_SCHEMA,
                    },
                    "required": ["prisma_schema", "destinations"],
                },
                "outputSchema": OUTPUT_SCHEMA,
            },
            {
                "name": "typegen.generate_ddl",
                "description": (
                    "Compile CREATE TABLE / CREATE VIEW statements into Zod schemas, "
                    "TypeScript interfaces and a Kysely database interface."
                ),
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "ddl": {"type": "string", "description": "DDL script text."},
                        "dialect": {
                            "type": "string",
                            "enum": ["mysql", "postgres", "sqlite"],
                            "default": "mysql",
                        },
                        "destinations": DESTINATIONS_SCHEMA,
                        "options": OPTIONS_SCHEMA,
                    },
                    "required": ["ddl", "destinations"],
                },
                "outputSchema": OUTPUT_SCHEMA,
            },
        ]
    }


def _build_tool_result(
    summary: str,
    structured_content: dict[str, Any] | None,
    *,
    is_error: bool = False,
) -> dict[str, Any]:
    return {
        "content": [{"type": "text", "text": summary}],
        "structuredContent": structured_content or {},
        "isError": is_error,
    }


def _call_tool(name: str, arguments: dict[str, Any]) -> GenerateResponse:
    if name == "typegen.generate_prisma":
        return generate_prisma(GeneratePrismaRequest(**arguments))
    return generate_ddl(GenerateDdlRequest(**arguments))


# [함수 설명]
# - 목적: tools/call 요청을 처리한다.
# - 입력: params 딕셔너리
# - 출력: CallToolResult 딕셔너리
# - 에러 처리: 입력 오류/예외는 isError로 반환한다.
# - 결정론: 동일 입력에 대해 동일 결과를 반환한다.
# - 보안: 스키마 원문을 요약 텍스트에 포함하지 않는다.
def _handle_tools_call(params: dict[str, Any]) -> dict[str, Any]:
    name = params.get("name")
    arguments = params.get("arguments")
    if not name:
        return _build_tool_result("Tool name is required.", None, is_error=True)
    if name not in ("typegen.generate_prisma", "typegen.generate_ddl"):
        return _build_tool_result(f"Unknown tool: {name}.", None, is_error=True)
    if not isinstance(arguments, dict):
        return _build_tool_result("Tool arguments must be an object.", None, is_error=True)
    try:
        result = _call_tool(name, arguments)
        payload = result.model_dump()
        summary = f"Generation complete. files={len(payload['files'])}."
        return _build_tool_result(summary, payload, is_error=False)
    except HTTPException as exc:
        return _build_tool_result(f"Tool execution failed: {exc.detail}.", None, is_error=True)
    except Exception as exc:  # noqa: BLE001 - tool errors returned via isError
        return _build_tool_result(f"Tool execution failed: {exc}.", None, is_error=True)


# [함수 설명]
# - 목적: Streamable HTTP MCP POST 요청을 처리한다.
# - 입력: JSON-RPC 메시지 객체
# - 출력: JSON-RPC 응답 또는 202 상태
# - 에러 처리: 잘못된 요청은 400으로 응답한다.
# - 결정론: 동일 입력에 대해 동일 응답을 반환한다.
# - 보안: Origin/프로토콜 버전 검증을 수행한다.
@router.post("/mcp")
async def mcp_post(request: Request) -> Response:
    origin = request.headers.get("origin")
    if not _origin_allowed(origin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Origin not allowed")
    _resolve_protocol_version(request.headers)

    try:
        payload = await request.json()
    except Exception as exc:  # noqa: BLE001 - request validation
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        ) from exc

    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON-RPC payload",
        )

    method = payload.get("method")
    if method == "notifications/initialized":
        return Response(status_code=status.HTTP_202_ACCEPTED)

    request_id = payload.get("id")
    if method is None or request_id is None:
        return Response(status_code=status.HTTP_202_ACCEPTED)

    params = payload.get("params") or {}
    if not isinstance(params, dict):
        return _jsonrpc_response(
            request_id,
            error={"code": -32602, "message": "Invalid params"},
        )

    if method == "initialize":
        return _jsonrpc_response(request_id, result=_handle_initialize(params))
    if method == "tools/list":
        return _jsonrpc_response(request_id, result=_handle_tools_list())
    if method == "tools/call":
        return _jsonrpc_response(request_id, result=_handle_tools_call(params))
    if method == "ping":
        return _jsonrpc_response(request_id, result={})

    return _jsonrpc_response(
        request_id,
        error={"code": -32601, "message": f"Method not found: {method}"},
    )


@router.get("/mcp")
def mcp_get() -> Response:
    return Response(status_code=status.HTTP_405_METHOD_NOT_ALLOWED)
