# [파일 설명]
# - 목적: FastAPI 애플리케이션을 생성하고 라우터를 조립한다.
# - 제공 기능: /health 엔드포인트와 MCP 라우터 등록을 제공한다.
# - 입력/출력: HTTP 요청에 대해 상태 정보를 반환한다.
# - 주의 사항: 라우팅만 담당하며 생성 로직은 서비스 레이어에 둔다.
# - 연관 모듈: typegen.api.mcp 라우터, typegen.mcp_streamable_http와 연동된다.
from fastapi import FastAPI, Request, Response

from typegen.api.mcp import router as mcp_router
from typegen.mcp_streamable_http import mcp_get, mcp_post

app = FastAPI(title="schema-typegen")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(mcp_router, prefix="/mcp")


@app.post("/mcp")
async def mcp_post_route(request: Request) -> Response:
    return await mcp_post(request)


@app.get("/mcp")
def mcp_get_route() -> Response:
    return mcp_get()
