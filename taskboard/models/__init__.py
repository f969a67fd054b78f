from .task import (
    TaskStatus,
    TaskLink,
    Task,
    CreateTaskInput,
    UpdateTaskInput,
    StatusUpdateInput,
    AddDependenciesInput,
    RemoveDependenciesInput,
)
from .user import (
    UserRole,
    User,
)

__all__ = [
    # Task
    "TaskStatus",
    "TaskLink",
    "Task",
    "CreateTaskInput",
    "UpdateTaskInput",
    "StatusUpdateInput",
    "AddDependenciesInput",
    "RemoveDependenciesInput",
    # User
    "UserRole",
    "User",
]
