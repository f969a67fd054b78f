"""
Task API 엔드포인트

권한 검사와 요청 검증만 이 계층에서 하고, 그래프/상태 규칙은
DependencyGraphEngine 과 TaskLifecycleManager 에 위임합니다.
그래프를 건드리는 모든 쓰기는 Database.graph_transaction() 안에서 실행됩니다.
"""
import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Database
from ..database.models import TaskModel
from ..database.repositories import TaskRepository, UserRepository
from ..errors import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    format_validation_errors,
)
from ..graph import DependencyGraphEngine
from ..lifecycle import TaskLifecycleManager
from ..models.task import (
    AddDependenciesInput,
    CreateTaskInput,
    RemoveDependenciesInput,
    StatusUpdateInput,
    Task,
    TaskLink,
    TaskStatus,
    UpdateTaskInput,
)
from ..models.user import User
from .dependencies import actor, get_current_user, get_db, require_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

CHAIN_MESSAGE = (
    "This shows current dependencies and tasks that cannot be added as "
    "dependencies (would create circular dependency)"
)


async def _serialize(engine: DependencyGraphEngine, task: TaskModel) -> Dict[str, Any]:
    """TaskModel -> 응답 dict (직접 의존/피의존 Task 포함)"""
    dependencies = await engine.get_direct_dependencies(task.id)
    dependents = await engine.get_direct_dependents(task.id)
    schema = Task(
        id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
        due_date=task.due_date,
        assigned_to=task.assigned_to,
        created_by=task.created_by,
        created_at=task.created_at,
        updated_at=task.updated_at,
        dependencies=[TaskLink.model_validate(dep) for dep in dependencies],
        dependents=[TaskLink.model_validate(dep) for dep in dependents],
    )
    return schema.model_dump(mode="json")


async def _load_task(session: AsyncSession, task_id: int) -> TaskModel:
    task = await TaskRepository(session).get_by_id(task_id)
    if task is None:
        raise NotFoundError(task_id)
    return task


async def _check_assignee(session: AsyncSession, assigned_to: Optional[int]) -> None:
    if assigned_to is not None and not await UserRepository(session).exists(assigned_to):
        raise ValidationError("The selected assigned to is invalid.", field="assigned_to")


def _parse(schema, payload: Dict[str, Any]):
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(
            "Validation error",
            errors=format_validation_errors(e.errors(include_url=False)),
        )


@router.get("")
async def list_tasks(
    status: Optional[TaskStatus] = None,
    assigned_user: Optional[int] = None,
    due_date_from: Optional[date] = None,
    due_date_to: Optional[date] = None,
    limit: int = Query(15, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """Task 목록 (일반 사용자는 자신에게 할당된 Task 만)"""
    if assigned_user is not None and assigned_user != user.id and not user.is_manager:
        raise PermissionDeniedError("Only managers can view other users tasks.")

    assigned_to = assigned_user if user.is_manager else user.id

    async with db.session() as session:
        engine = DependencyGraphEngine(session)
        tasks = await TaskRepository(session).get_with_filters(
            status=status.value if status else None,
            assigned_to=assigned_to,
            due_date_from=due_date_from,
            due_date_to=due_date_to,
            limit=limit,
            offset=offset,
        )
        data = [await _serialize(engine, task) for task in tasks]

    return {
        "success": True,
        "data": data,
        "meta": {"limit": limit, "offset": offset, "count": len(data)},
    }


@router.post("", status_code=201)
async def create_task(
    payload: CreateTaskInput,
    user: User = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """Task 생성 (매니저 전용)"""
    require_manager(user, "create tasks")

    async with db.graph_transaction() as session:
        await _check_assignee(session, payload.assigned_to)
        lifecycle = TaskLifecycleManager(session, performed_by=actor(user))
        task = await lifecycle.create_task(
            title=payload.title,
            created_by=user.id,
            description=payload.description,
            due_date=payload.due_date,
            assigned_to=payload.assigned_to,
            dependencies=payload.dependencies,
        )
        data = await _serialize(lifecycle.graph, task)

    return {"success": True, "message": "Task created successfully", "data": data}


@router.get("/{task_id}")
async def get_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """Task 단건 조회 (매니저 또는 담당자)"""
    async with db.session() as session:
        task = await _load_task(session, task_id)
        if not user.is_manager and task.assigned_to != user.id:
            raise PermissionDeniedError("You can only view tasks assigned to you.")
        data = await _serialize(DependencyGraphEngine(session), task)

    return {"success": True, "data": data}


@router.api_route("/{task_id}", methods=["PUT", "PATCH"])
async def update_task(
    task_id: int,
    payload: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """
    Task 수정

    매니저는 모든 필드와 의존성 목록을, 담당자는 상태만 바꿀 수 있습니다.
    """
    async with db.graph_transaction() as session:
        task = await _load_task(session, task_id)
        lifecycle = TaskLifecycleManager(session, performed_by=actor(user))

        if not user.is_manager:
            if task.assigned_to != user.id:
                raise PermissionDeniedError("You can only update tasks assigned to you.")
            status_input = _parse(StatusUpdateInput, payload)
            task = await lifecycle.request_transition(task_id, status_input.status)
        else:
            update_input = _parse(UpdateTaskInput, payload)
            sent = update_input.model_fields_set

            if "title" in sent and update_input.title is None:
                raise ValidationError("The title field is required.", field="title")
            if "assigned_to" in sent:
                await _check_assignee(session, update_input.assigned_to)

            changes = {
                name: getattr(update_input, name)
                for name in ("title", "description", "due_date", "assigned_to")
                if name in sent
            }
            if update_input.status is not None:
                changes["status"] = update_input.status.value

            # null 은 "변경 없음", [] 은 "전부 제거"
            task = await lifecycle.update_task(
                task_id,
                changes,
                dependencies=update_input.dependencies,
            )

        data = await _serialize(lifecycle.graph, task)

    return {"success": True, "message": "Task updated successfully", "data": data}


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """Task 삭제 (매니저 전용). 연결된 의존성 edge 도 함께 삭제됩니다."""
    require_manager(user, "delete tasks")

    async with db.graph_transaction() as session:
        lifecycle = TaskLifecycleManager(session, performed_by=actor(user))
        await lifecycle.delete_task(task_id)

    return {"success": True, "message": "Task deleted successfully"}


@router.post("/{task_id}/dependencies")
async def add_dependencies(
    task_id: int,
    payload: AddDependenciesInput,
    user: User = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """의존성 추가. 하나라도 순환을 만들면 전체가 거부됩니다."""
    require_manager(user, "manage task dependencies")

    async with db.graph_transaction() as session:
        engine = DependencyGraphEngine(session, performed_by=actor(user))
        added = await engine.add_edges(task_id, payload.dependencies)
        data = await _serialize(engine, await _load_task(session, task_id))

    return {
        "success": True,
        "message": "Dependencies added successfully",
        "data": data,
        "added": added,
    }


@router.delete("/{task_id}/dependencies")
async def remove_dependencies(
    task_id: int,
    payload: RemoveDependenciesInput,
    user: User = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """지정한 의존성 제거 (없는 edge 는 무시)"""
    require_manager(user, "manage task dependencies")

    async with db.graph_transaction() as session:
        task = await _load_task(session, task_id)
        engine = DependencyGraphEngine(session, performed_by=actor(user))
        await engine.require_dependencies_exist(payload.dependencies)
        removed = await engine.remove_edges(task_id, payload.dependencies)
        data = await _serialize(engine, task)

    return {
        "success": True,
        "message": "Dependencies removed successfully",
        "data": data,
        "removed": removed,
    }


@router.delete("/{task_id}/dependencies/all")
async def remove_all_dependencies(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """모든 의존성 제거"""
    require_manager(user, "manage task dependencies")

    async with db.graph_transaction() as session:
        task = await _load_task(session, task_id)
        engine = DependencyGraphEngine(session, performed_by=actor(user))
        removed = await engine.remove_all_edges(task_id)
        data = await _serialize(engine, task)

    return {
        "success": True,
        "message": "All dependencies removed successfully",
        "data": data,
        "removed": removed,
    }


@router.get("/{task_id}/dependency-chain")
async def get_dependency_chain(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """의존성 체인과 의존성으로 추가할 수 없는 Task 목록 (매니저 전용)"""
    require_manager(user, "view dependency chains")

    async with db.session() as session:
        task = await _load_task(session, task_id)
        engine = DependencyGraphEngine(session)
        chain = await engine.build_dependency_chain(task_id)
        forbidden = await engine.forbidden_dependency_candidates(task_id)

    return {
        "success": True,
        "task_id": task.id,
        "task_title": task.title,
        "current_dependencies": [node.to_dict() for node in chain],
        "cannot_add_as_dependencies": [candidate.to_dict() for candidate in forbidden],
        "message": CHAIN_MESSAGE,
    }
