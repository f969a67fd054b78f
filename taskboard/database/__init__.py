"""
Database module for Taskboard.
Provides async SQLAlchemy connection management and the ORM models.
"""

from .connection import (
    get_database,
    set_database,
    Database,
    auto_create_tables_enabled,
)
from .models import Base, UserModel, TaskModel, TaskDependencyModel, AuditLogModel

__all__ = [
    "get_database",
    "set_database",
    "Database",
    "auto_create_tables_enabled",
    "Base",
    "UserModel",
    "TaskModel",
    "TaskDependencyModel",
    "AuditLogModel",
]
