#!/usr/bin/env python3
"""
Task Management 서버 메인 엔트리포인트
"""
import os

# 환경 변수는 반드시 다른 import 전에 로드해야 함
from dotenv import load_dotenv
load_dotenv()

import asyncio
import logging

import uvicorn

from taskboard.startup import create_fastapi_app, setup_logging

setup_logging()
logger = logging.getLogger(__name__)

app = create_fastapi_app()


async def main():
    host = os.getenv("HTTP_HOST", "0.0.0.0")
    http_port = int(os.getenv("HTTP_PORT", "8000"))

    logger.info(f"Task Management API starting on {host}:{http_port}")

    config = uvicorn.Config(
        app,
        host=host,
        port=http_port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nServer stopped")
