"""
Startup - 서버 초기화 모듈

서버 시작 시 필요한 초기화 로직을 분리한 모듈입니다.
"""

from .logging_config import setup_logging
from .server_config import create_fastapi_app, create_lifespan, setup_cors, setup_exception_handlers

__all__ = [
    "setup_logging",
    "create_fastapi_app",
    "create_lifespan",
    "setup_cors",
    "setup_exception_handlers",
]
