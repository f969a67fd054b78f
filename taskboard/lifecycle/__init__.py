"""
Task lifecycle: status transitions gated by the dependency graph.
"""

from .manager import TaskLifecycleManager

__all__ = ["TaskLifecycleManager"]
