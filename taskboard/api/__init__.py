"""
API - HTTP 엔드포인트 모듈
"""

from .health import router as health_router
from .tasks import router as tasks_router

__all__ = [
    "health_router",
    "tasks_router",
]
