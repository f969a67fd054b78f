"""
Exceptions - 커스텀 예외 클래스

프로젝트 전체에서 사용하는 표준화된 예외 클래스입니다.
코어(그래프 엔진, 라이프사이클 매니저)는 이 예외만 발생시키고,
API 계층이 HTTP 응답으로 변환합니다.
"""

from typing import Optional, Dict, Any, List


class TaskboardError(Exception):
    """Taskboard 기본 에러 클래스"""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Args:
            message: 에러 메시지
            code: 에러 코드
            details: 추가 상세 정보
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict:
        """에러를 딕셔너리로 변환"""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(TaskboardError):
    """참조한 Task가 존재하지 않을 때 발생"""

    def __init__(self, task_id: int, resource: str = "task"):
        super().__init__(
            message=f"{resource.capitalize()} {task_id} not found",
            code=f"{resource.upper()}_NOT_FOUND",
            details={"id": task_id, "resource": resource}
        )
        self.task_id = task_id


class CycleError(TaskboardError):
    """의존성 추가가 순환을 만들 때 발생 (변경은 전부 롤백됨)"""

    def __init__(
        self,
        task_id: int,
        dependency_id: int,
        cycle_path: Optional[List[int]] = None
    ):
        super().__init__(
            message=f"Cannot add dependency {dependency_id}: would create circular dependency",
            code="CIRCULAR_DEPENDENCY",
            details={
                "task_id": task_id,
                "dependency_id": dependency_id,
                "cycle_path": cycle_path or [],
            }
        )
        self.task_id = task_id
        self.dependency_id = dependency_id
        self.cycle_path = cycle_path or []


class BlockedByDependenciesError(TaskboardError):
    """완료되지 않은 직접 의존성이 있는데 완료 요청 시 발생"""

    def __init__(self, task_id: int, pending_dependency_ids: List[int]):
        super().__init__(
            message="Cannot complete task. Some dependencies are not yet completed.",
            code="DEPENDENCIES_INCOMPLETE",
            details={
                "task_id": task_id,
                "pending_dependency_ids": pending_dependency_ids,
            }
        )
        self.task_id = task_id
        self.pending_dependency_ids = pending_dependency_ids


class StoreError(TaskboardError):
    """트랜잭션 쓰기 중 저장소 실패"""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(
            message=message,
            code="STORE_ERROR",
            details={"operation": operation} if operation else {}
        )


class ValidationError(TaskboardError):
    """입력 검증 실패 시 발생"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[List[dict]] = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if errors:
            details["errors"] = errors
        super().__init__(message=message, code="VALIDATION_ERROR", details=details)
        self.field = field


class PermissionDeniedError(TaskboardError):
    """역할(manager/user) 권한이 없을 때 발생"""

    def __init__(self, message: str):
        super().__init__(
            message=f"Unauthorized. {message}",
            code="FORBIDDEN",
        )


class AuthenticationError(TaskboardError):
    """요청자 식별 실패 시 발생"""

    def __init__(self, message: str = "Unauthenticated."):
        super().__init__(
            message=message,
            code="UNAUTHENTICATED",
        )
