"""
Decorators - 에러 핸들링 데코레이터

코어 연산에 적용하여 저장소 예외를 StoreError로 변환하는 데코레이터입니다.
예외는 삼키지 않고 항상 다시 발생시키므로, 바깥의 트랜잭션이 롤백됩니다.
"""

import functools
import logging
from typing import Callable, Optional, TypeVar, Any

from sqlalchemy.exc import SQLAlchemyError

from .exceptions import StoreError


T = TypeVar('T')

logger = logging.getLogger(__name__)


def translate_store_errors(operation: Optional[str] = None):
    """
    비동기 함수용 저장소 에러 변환 데코레이터

    Args:
        operation: 에러 상세 정보에 기록할 연산 이름 (기본: 함수 이름)

    Example:
        @translate_store_errors("add_edge")
        async def add_edge(self, task_id, dependency_id):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        op_name = operation or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error(f"[{op_name}] Store failure: {e}")
                raise StoreError(f"Error during {op_name}: {e}", operation=op_name) from e
        return wrapper
    return decorator
