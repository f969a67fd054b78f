"""
ServerConfig - FastAPI 및 서버 설정

FastAPI 앱 생성, CORS 설정, 예외 핸들러 및 DB 수명 주기를 담당합니다.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..api import health_router, tasks_router
from ..database import Database, auto_create_tables_enabled, get_database
from ..errors import ErrorResponse, TaskboardError, format_validation_errors

logger = logging.getLogger(__name__)


def _cors_origins_from_env() -> List[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_lifespan(database: Optional[Database] = None):
    """
    DB 연결 수명 주기

    Args:
        database: 사용할 Database (기본: 전역 인스턴스)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or get_database()
        await db.connect()
        if auto_create_tables_enabled():
            await db.create_tables()
        logger.info("Task Management API started")
        try:
            yield
        finally:
            await db.disconnect()
            logger.info("Task Management API stopped")

    return lifespan


def create_fastapi_app(
    title: str = "Task Management API",
    database: Optional[Database] = None,
) -> FastAPI:
    """
    FastAPI 앱 생성

    Args:
        title: API 제목
        database: 수명 주기에서 연결할 Database (기본: 전역 인스턴스)

    Returns:
        FastAPI 앱 인스턴스
    """
    app = FastAPI(title=title, lifespan=create_lifespan(database))
    setup_cors(app, allow_origins=_cors_origins_from_env())
    setup_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(tasks_router)
    return app


def setup_cors(
    app: FastAPI,
    allow_origins: list = None,
    allow_credentials: bool = True,
    allow_methods: list = None,
    allow_headers: list = None
):
    """
    CORS 미들웨어 설정

    Args:
        app: FastAPI 앱
        allow_origins: 허용할 origin 목록 (기본: ["*"])
        allow_credentials: 자격 증명 허용 여부
        allow_methods: 허용할 HTTP 메서드 (기본: ["*"])
        allow_headers: 허용할 헤더 (기본: ["*"])
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins or ["*"],
        allow_credentials=allow_credentials,
        allow_methods=allow_methods or ["*"],
        allow_headers=allow_headers or ["*"],
    )


def setup_exception_handlers(app: FastAPI):
    """TaskboardError 및 요청 검증 에러를 ErrorResponse 형식으로 변환"""

    @app.exception_handler(TaskboardError)
    async def handle_taskboard_error(request: Request, exc: TaskboardError):
        response = ErrorResponse.from_exception(exc)
        if response.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=response.status_code, content=response.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        response = ErrorResponse.validation_error(
            "Validation error",
            details={"errors": format_validation_errors(exc.errors())},
        )
        return JSONResponse(status_code=response.status_code, content=response.to_dict())
