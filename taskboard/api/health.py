"""
헬스 체크 엔드포인트
"""
from datetime import datetime

from fastapi import APIRouter

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health():
    """서버 상태 확인"""
    return {
        "success": True,
        "message": "Task Management API is running",
        "timestamp": datetime.now().isoformat(),
    }
