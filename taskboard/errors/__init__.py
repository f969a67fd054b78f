"""
Errors - 에러 처리 모듈

표준화된 에러 처리 및 응답 형식을 제공합니다.
"""

from .exceptions import (
    TaskboardError,
    NotFoundError,
    CycleError,
    BlockedByDependenciesError,
    StoreError,
    ValidationError,
    PermissionDeniedError,
    AuthenticationError,
)

from .error_response import ErrorResponse, ErrorType, ErrorSeverity, format_validation_errors

from .decorators import translate_store_errors

__all__ = [
    # Exceptions
    "TaskboardError",
    "NotFoundError",
    "CycleError",
    "BlockedByDependenciesError",
    "StoreError",
    "ValidationError",
    "PermissionDeniedError",
    "AuthenticationError",

    # Response
    "ErrorResponse",
    "ErrorType",
    "ErrorSeverity",
    "format_validation_errors",

    # Decorators
    "translate_store_errors",
]
