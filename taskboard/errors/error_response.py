"""
ErrorResponse - 표준 에러 응답 형식

API 응답에서 사용하는 표준화된 에러 응답 클래스입니다.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List
from uuid import uuid4


class ErrorType(str, Enum):
    """에러 유형"""
    AUTH = "auth"
    PERMISSION = "permission"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    BUSINESS = "business"
    SYSTEM = "system"


class ErrorSeverity(str, Enum):
    """에러 심각도"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


# 에러 코드 -> (유형, 심각도)
_CODE_CLASSIFICATION = {
    "TASK_NOT_FOUND": (ErrorType.NOT_FOUND, ErrorSeverity.WARNING),
    "DEPENDENCY_NOT_FOUND": (ErrorType.VALIDATION, ErrorSeverity.WARNING),
    "CIRCULAR_DEPENDENCY": (ErrorType.BUSINESS, ErrorSeverity.WARNING),
    "DEPENDENCIES_INCOMPLETE": (ErrorType.BUSINESS, ErrorSeverity.WARNING),
    "VALIDATION_ERROR": (ErrorType.VALIDATION, ErrorSeverity.WARNING),
    "FORBIDDEN": (ErrorType.PERMISSION, ErrorSeverity.WARNING),
    "UNAUTHENTICATED": (ErrorType.AUTH, ErrorSeverity.WARNING),
    "STORE_ERROR": (ErrorType.SYSTEM, ErrorSeverity.ERROR),
}

_HTTP_STATUS = {
    ErrorType.AUTH: 401,
    ErrorType.PERMISSION: 403,
    ErrorType.NOT_FOUND: 404,
    ErrorType.VALIDATION: 422,
    ErrorType.BUSINESS: 422,
    ErrorType.SYSTEM: 500,
}


@dataclass
class ErrorResponse:
    """표준 에러 응답"""
    error_code: str
    message: str
    error_type: ErrorType = ErrorType.SYSTEM
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    trace_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def status_code(self) -> int:
        """HTTP 상태 코드"""
        return _HTTP_STATUS.get(self.error_type, 500)

    def to_dict(self) -> dict:
        """딕셔너리로 변환"""
        return {
            "success": False,
            "message": self.message,
            "error": {
                "code": self.error_code,
                "type": self.error_type.value,
                "severity": self.severity.value,
                "message": self.message,
                "details": self.details,
                "traceId": self.trace_id,
                "timestamp": self.timestamp.isoformat()
            }
        }

    @classmethod
    def from_exception(cls, exception: Exception, trace_id: Optional[str] = None) -> "ErrorResponse":
        """
        예외로부터 ErrorResponse 생성

        TaskboardError 는 코드로 유형/심각도를 분류하고,
        그 외 예외는 모두 INTERNAL_ERROR(500)로 취급합니다.
        """
        from .exceptions import TaskboardError

        if not isinstance(exception, TaskboardError):
            return cls(
                error_code="INTERNAL_ERROR",
                message=str(exception) or exception.__class__.__name__,
                trace_id=trace_id or str(uuid4()),
            )

        error_type, severity = _CODE_CLASSIFICATION.get(
            exception.code, (ErrorType.SYSTEM, ErrorSeverity.ERROR)
        )
        return cls(
            error_code=exception.code,
            message=exception.message,
            error_type=error_type,
            severity=severity,
            details=exception.details or None,
            trace_id=trace_id or str(uuid4()),
        )

    @classmethod
    def validation_error(cls, message: str, details: Optional[Dict[str, Any]] = None) -> "ErrorResponse":
        """요청 본문/쿼리 검증 실패 (422)"""
        return cls(
            error_code="VALIDATION_ERROR",
            message=message,
            error_type=ErrorType.VALIDATION,
            severity=ErrorSeverity.WARNING,
            details=details,
        )


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """pydantic 에러 목록을 JSON 직렬화 가능한 형태로 축약"""
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in errors
    ]
