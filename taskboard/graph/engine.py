"""
Dependency graph engine.

Maintains the directed graph of task dependencies stored in
``task_dependencies`` and keeps it acyclic. An edge ``task_id -> dep_id``
means ``task_id`` cannot be completed until ``dep_id`` is completed.

Nothing is cached: every query re-reads edges through the session, so the
engine always sees what its transaction sees. Mutating methods must run
inside ``Database.graph_transaction()`` so validation and write are
serialized against other graph writers; the engine itself never commits.
"""

import logging
from collections import deque
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ..database.models import TaskModel
from ..database.repositories import (
    TaskRepository,
    DependencyRepository,
    AuditRepository,
)
from ..errors import CycleError, NotFoundError, translate_store_errors
from .nodes import (
    ChainNode,
    CircularDependencyMarker,
    ForbiddenCandidate,
    SELF_REFERENCE,
)

logger = logging.getLogger(__name__)

# Replacement adjacency consulted before the store: task id -> dependency ids
Overlay = Dict[int, List[int]]


class DependencyGraphEngine:
    """
    Cycle-safe dependency graph operations over the task store.

    Example:
        async with db.graph_transaction() as session:
            engine = DependencyGraphEngine(session)
            await engine.add_edge(task_id=3, dependency_id=1)
            chain = await engine.build_dependency_chain(3)
    """

    def __init__(self, session: AsyncSession, performed_by: Optional[str] = None):
        self.session = session
        self.performed_by = performed_by
        self.tasks = TaskRepository(session)
        self.dependencies = DependencyRepository(session)
        self.audit = AuditRepository(session)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    async def _dependencies_of(self, task_id: int, overlay: Optional[Overlay] = None) -> List[int]:
        if overlay is not None and task_id in overlay:
            return overlay[task_id]
        return await self.dependencies.list_dependencies(task_id)

    async def _has_path(self, source_id: int, target_id: int, overlay: Optional[Overlay] = None) -> bool:
        """BFS along depends-on edges from ``source_id`` looking for ``target_id``."""
        if source_id == target_id:
            return True

        visited: Set[int] = set()
        queue = deque([source_id])

        while queue:
            current_id = queue.popleft()
            if current_id in visited:
                continue
            visited.add(current_id)

            for dep_id in await self._dependencies_of(current_id, overlay):
                if dep_id == target_id:
                    return True
                if dep_id not in visited:
                    queue.append(dep_id)

        return False

    async def _find_path(self, source_id: int, target_id: int, overlay: Optional[Overlay] = None) -> List[int]:
        """BFS with path tracking; first path found in edge insertion order."""
        if source_id == target_id:
            return [source_id, target_id]

        visited: Set[int] = set()
        queue = deque([(source_id, [source_id])])

        while queue:
            current_id, path = queue.popleft()
            if current_id == target_id:
                return path
            if current_id in visited:
                continue
            visited.add(current_id)

            for dep_id in await self._dependencies_of(current_id, overlay):
                if dep_id not in visited:
                    queue.append((dep_id, path + [dep_id]))

        return []

    async def _collect_dependents(self, task_id: int) -> Set[int]:
        """Every task that reaches ``task_id`` through depends-on edges."""
        found: Set[int] = set()
        queue = deque([task_id])

        while queue:
            current_id = queue.popleft()
            for dependent_id in await self.dependencies.list_dependents(current_id):
                if dependent_id not in found:
                    found.add(dependent_id)
                    queue.append(dependent_id)

        found.discard(task_id)
        return found

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _require_task(self, task_id: int) -> TaskModel:
        task = await self.tasks.get_by_id(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    async def require_dependencies_exist(self, dependency_ids: Iterable[int]) -> None:
        """Raise NotFoundError for the first id in ``dependency_ids`` that does not exist."""
        ordered = list(dependency_ids)
        missing = await self.tasks.find_missing(ordered)
        for dep_id in ordered:
            if dep_id in missing:
                raise NotFoundError(dep_id, resource="dependency")

    @translate_store_errors()
    async def would_create_cycle(self, task_id: int, candidate_dependency_id: int) -> bool:
        """
        True iff adding ``task_id -> candidate_dependency_id`` closes a cycle,
        i.e. ``task_id`` is already reachable from the candidate.
        """
        return await self._has_path(candidate_dependency_id, task_id)

    @translate_store_errors()
    async def find_cycle_path(self, task_id: int, candidate_dependency_id: int) -> List[int]:
        """
        One concrete path ``[candidate, ..., task_id]`` that the new edge
        would close into a cycle, or ``[]`` when there is none.
        """
        return await self._find_path(candidate_dependency_id, task_id)

    @translate_store_errors()
    async def get_direct_dependencies(self, task_id: int) -> List[TaskModel]:
        """Tasks ``task_id`` directly depends on, in edge insertion order."""
        dep_ids = await self.dependencies.list_dependencies(task_id)
        by_id = {task.id: task for task in await self.tasks.get_many(dep_ids)}
        return [by_id[dep_id] for dep_id in dep_ids if dep_id in by_id]

    @translate_store_errors()
    async def get_direct_dependents(self, task_id: int) -> List[TaskModel]:
        """Tasks that directly depend on ``task_id``, in edge insertion order."""
        dependent_ids = await self.dependencies.list_dependents(task_id)
        by_id = {task.id: task for task in await self.tasks.get_many(dependent_ids)}
        return [by_id[dep_id] for dep_id in dependent_ids if dep_id in by_id]

    @translate_store_errors()
    async def build_dependency_chain(self, task_id: int) -> List[ChainNode]:
        """
        Direct dependencies of ``task_id``, each recursively expanded.

        A task already on the current path is not expanded again; its
        ``sub_dependencies`` become a ``CircularDependencyMarker``.
        """
        await self._require_task(task_id)
        chain = await self._expand_chain(task_id, frozenset())
        # task_id is never on an empty path, so the root always expands
        return chain if isinstance(chain, list) else []

    async def _expand_chain(self, task_id: int, path: frozenset):
        if task_id in path:
            logger.warning(f"Circular dependency detected in stored edges at task {task_id}")
            return CircularDependencyMarker(task_id)

        path = path | {task_id}
        nodes: List[ChainNode] = []

        for dep in await self.get_direct_dependencies(task_id):
            nodes.append(ChainNode(
                id=dep.id,
                title=dep.title,
                status=dep.status,
                sub_dependencies=await self._expand_chain(dep.id, path),
            ))

        return nodes

    @translate_store_errors()
    async def forbidden_dependency_candidates(self, task_id: int) -> List[ForbiddenCandidate]:
        """
        Tasks that cannot legally become a dependency of ``task_id``: the task
        itself first, then every task whose edge would close a cycle, in
        ascending id order, each with the path the cycle would take.
        """
        task = await self._require_task(task_id)

        result = [ForbiddenCandidate(
            id=task.id,
            title=task.title,
            status=task.status,
            reason="Cannot depend on itself",
            dependency_path=[SELF_REFERENCE],
        )]

        # Adding task_id -> X cycles exactly when X transitively depends on task_id
        blocked_ids = sorted(await self._collect_dependents(task_id))
        for candidate in await self.tasks.get_many(blocked_ids):
            result.append(ForbiddenCandidate(
                id=candidate.id,
                title=candidate.title,
                status=candidate.status,
                reason="Would create circular dependency",
                dependency_path=await self._find_path(candidate.id, task_id),
            ))

        return result

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def _validate_new_edges(
        self,
        task_id: int,
        candidates: List[int],
        base: List[int],
    ) -> List[int]:
        """
        Check ``candidates`` one by one against the graph in which the
        outgoing edges of ``task_id`` are ``base`` plus the candidates accepted
        so far. Returns the accepted list or raises ``CycleError`` for the
        first offending candidate.
        """
        accepted: List[int] = []
        outgoing = list(base)
        overlay: Overlay = {task_id: outgoing}

        for dep_id in candidates:
            if await self._has_path(dep_id, task_id, overlay):
                cycle_path = await self._find_path(dep_id, task_id, overlay)
                logger.warning(
                    f"Rejected dependency {task_id} -> {dep_id}: would create cycle {cycle_path}"
                )
                raise CycleError(task_id, dep_id, cycle_path)
            accepted.append(dep_id)
            outgoing.append(dep_id)

        return accepted

    @translate_store_errors()
    async def add_edge(self, task_id: int, dependency_id: int) -> bool:
        """
        Add ``task_id -> dependency_id``.

        Returns True if an edge was inserted, False if it already existed.

        Raises:
            NotFoundError: Either task does not exist
            CycleError: The edge would create a cycle (including a self loop)
        """
        return bool(await self.add_edges(task_id, [dependency_id]))

    @translate_store_errors()
    async def add_edges(self, task_id: int, dependency_ids: Iterable[int]) -> List[int]:
        """
        Add several edges as one unit. Existing edges are skipped; a cycle in
        any candidate rejects the whole call before anything is written.

        Returns:
            The dependency ids that were newly inserted
        """
        await self._require_task(task_id)
        requested = list(dict.fromkeys(dependency_ids))
        await self.require_dependencies_exist(requested)

        current = await self.dependencies.list_dependencies(task_id)
        candidates = [dep_id for dep_id in requested if dep_id not in current]
        if not candidates:
            return []

        accepted = await self._validate_new_edges(task_id, candidates, current)

        for dep_id in accepted:
            await self.dependencies.insert_edge(task_id, dep_id)

        await self.audit.log_dependencies_changed(
            task_id, "dependencies_added", current, current + accepted, self.performed_by
        )
        logger.info(f"Task {task_id}: added dependencies {accepted}")
        return accepted

    @translate_store_errors()
    async def remove_edge(self, task_id: int, dependency_id: int) -> int:
        """Remove ``task_id -> dependency_id``; no-op if absent."""
        return await self.remove_edges(task_id, [dependency_id])

    @translate_store_errors()
    async def remove_edges(self, task_id: int, dependency_ids: Iterable[int]) -> int:
        """Remove the given outgoing edges of ``task_id``; absent edges are ignored."""
        ids = list(dict.fromkeys(dependency_ids))
        before = await self.dependencies.list_dependencies(task_id)
        removed = await self.dependencies.delete_edges(task_id, ids)

        if removed:
            after = [dep_id for dep_id in before if dep_id not in ids]
            await self.audit.log_dependencies_changed(
                task_id, "dependencies_removed", before, after, self.performed_by
            )
            logger.info(f"Task {task_id}: removed {removed} dependencies")
        return removed

    @translate_store_errors()
    async def remove_all_edges(self, task_id: int) -> int:
        """Remove every outgoing edge of ``task_id``."""
        before = await self.dependencies.list_dependencies(task_id)
        removed = await self.dependencies.delete_all_edges(task_id)

        if removed:
            await self.audit.log_dependencies_changed(
                task_id, "dependencies_removed", before, [], self.performed_by
            )
            logger.info(f"Task {task_id}: removed all {removed} dependencies")
        return removed

    @translate_store_errors()
    async def check_replacement(self, task_id: int, new_dependency_ids: Iterable[int]) -> List[int]:
        """
        Validate a replacement edge set for ``task_id`` without writing it.

        Returns the candidate ids with duplicates dropped, first occurrence
        first. Raises as ``replace_edges`` would.
        """
        candidates = list(dict.fromkeys(new_dependency_ids))
        await self.require_dependencies_exist(candidates)
        return await self._validate_new_edges(task_id, candidates, base=[])

    @translate_store_errors()
    async def replace_edges(self, task_id: int, new_dependency_ids: Iterable[int]) -> Tuple[List[int], List[int]]:
        """
        Replace the outgoing edge set of ``task_id`` with ``new_dependency_ids``.

        Every candidate is validated before anything is written, against the
        graph with the old edges of ``task_id`` gone and the earlier
        candidates of this call in place. Any failure leaves the graph as it
        was.

        Returns:
            (old dependency ids, new dependency ids)

        Raises:
            NotFoundError: ``task_id`` or a candidate does not exist
            CycleError: A candidate would create a cycle; names that candidate
        """
        await self._require_task(task_id)
        accepted = await self.check_replacement(task_id, new_dependency_ids)
        old = await self.dependencies.list_dependencies(task_id)

        await self.dependencies.delete_all_edges(task_id)
        for dep_id in accepted:
            await self.dependencies.insert_edge(task_id, dep_id)

        if old != accepted:
            await self.audit.log_dependencies_changed(
                task_id, "dependencies_replaced", old, accepted, self.performed_by
            )
            logger.info(f"Task {task_id}: dependencies replaced {old} -> {accepted}")
        return old, accepted
