"""
Repository pattern implementations for database access.
"""

from .base import BaseRepository
from .task_repository import TaskRepository
from .dependency_repository import DependencyRepository
from .user_repository import UserRepository
from .audit_repository import AuditRepository

__all__ = [
    "BaseRepository",
    "TaskRepository",
    "DependencyRepository",
    "UserRepository",
    "AuditRepository",
]
