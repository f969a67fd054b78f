from enum import Enum
from datetime import date, datetime
from typing import Annotated, Optional, List

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELED = "canceled"


def _not_in_past(value: date) -> date:
    if value < date.today():
        raise ValueError("due_date must be today or later")
    return value


DueDate = Annotated[date, AfterValidator(_not_in_past)]


class TaskLink(BaseModel):
    """이웃 Task 요약 (dependencies / dependents)"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    status: TaskStatus


class Task(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[date] = None
    assigned_to: Optional[int] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    dependencies: List[TaskLink] = Field(default_factory=list)
    dependents: List[TaskLink] = Field(default_factory=list)


class CreateTaskInput(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[DueDate] = None
    assigned_to: Optional[int] = None
    dependencies: Optional[List[int]] = None


class UpdateTaskInput(BaseModel):
    """매니저용 전체 수정 입력. 보낸 필드만 반영됩니다 (model_fields_set)."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[DueDate] = None
    assigned_to: Optional[int] = None
    dependencies: Optional[List[int]] = None


class StatusUpdateInput(BaseModel):
    """일반 사용자용 수정 입력 (상태만 변경 가능)"""
    status: TaskStatus


class AddDependenciesInput(BaseModel):
    dependencies: List[int] = Field(min_length=1)


class RemoveDependenciesInput(BaseModel):
    dependencies: List[int]
