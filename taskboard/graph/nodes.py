"""
Result types produced by the dependency graph engine.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

CIRCULAR_DEPENDENCY_DETECTED = "CIRCULAR_DEPENDENCY_DETECTED"
SELF_REFERENCE = "self-reference"


@dataclass
class CircularDependencyMarker:
    """
    Stands in for a subtree whose root is already on the current chain path.

    Only produced when the stored edges are corrupted; a maintained DAG never
    yields one.
    """
    task_id: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {CIRCULAR_DEPENDENCY_DETECTED: self.task_id}


@dataclass
class ChainNode:
    """A dependency in a chain, expanded with its own dependencies."""
    id: int
    title: str
    status: str
    sub_dependencies: Union[List["ChainNode"], CircularDependencyMarker] = field(default_factory=list)

    @property
    def is_circular(self) -> bool:
        return isinstance(self.sub_dependencies, CircularDependencyMarker)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        if self.is_circular:
            sub = self.sub_dependencies.to_dict()
        else:
            sub = [node.to_dict() for node in self.sub_dependencies]
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "sub_dependencies": sub,
        }


@dataclass
class ForbiddenCandidate:
    """A task that cannot be added as a dependency, and why."""
    id: int
    title: str
    status: str
    reason: str
    dependency_path: List[Union[int, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "reason": self.reason,
            "dependency_path": list(self.dependency_path),
        }
