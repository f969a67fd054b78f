"""
FastAPI 의존성 - 데이터베이스 및 요청자 식별

토큰 발급은 범위 밖이므로, 신뢰된 X-User-Id 헤더로 요청자를 식별합니다.
역할(manager/user) 검사는 전부 이 계층에서 끝나고 코어에는 전달되지 않습니다.
"""

from typing import Optional

from fastapi import Depends, Header

from ..database import Database, get_database
from ..database.repositories import UserRepository
from ..errors import AuthenticationError, PermissionDeniedError
from ..models.user import User


def get_db() -> Database:
    """전역 Database 인스턴스"""
    return get_database()


async def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    db: Database = Depends(get_db),
) -> User:
    """X-User-Id 헤더로 요청자 조회"""
    if not x_user_id:
        raise AuthenticationError("Unauthenticated. Missing X-User-Id header.")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise AuthenticationError("Unauthenticated. Invalid X-User-Id header.")

    async with db.session() as session:
        user = await UserRepository(session).get_by_id(user_id)
        if user is None:
            raise AuthenticationError(f"Unauthenticated. Unknown user {user_id}.")
        return User.model_validate(user)


def require_manager(user: User, action: str) -> None:
    """매니저가 아니면 PermissionDeniedError"""
    if not user.is_manager:
        raise PermissionDeniedError(f"Only managers can {action}.")


def actor(user: User) -> str:
    """감사 로그용 수행자 표기"""
    return f"user:{user.id}"
