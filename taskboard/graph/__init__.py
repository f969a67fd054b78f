"""
Dependency graph subsystem for Taskboard.
Keeps task dependencies acyclic and explains the prerequisite structure.
"""

from .engine import DependencyGraphEngine
from .nodes import (
    ChainNode,
    CircularDependencyMarker,
    ForbiddenCandidate,
    CIRCULAR_DEPENDENCY_DETECTED,
    SELF_REFERENCE,
)

__all__ = [
    # Engine
    "DependencyGraphEngine",
    # Results
    "ChainNode",
    "CircularDependencyMarker",
    "ForbiddenCandidate",
    "CIRCULAR_DEPENDENCY_DETECTED",
    "SELF_REFERENCE",
]
