"""
DependencyGraphEngine Unit Tests

의존성 그래프의 순환 방지, 체인 구성, 금지 후보 계산을 테스트합니다.
"""

import asyncio

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from taskboard.database.repositories import AuditRepository, DependencyRepository, TaskRepository
from taskboard.errors import CycleError, NotFoundError
from taskboard.graph import (
    CircularDependencyMarker,
    DependencyGraphEngine,
)
from taskboard.graph.nodes import CIRCULAR_DEPENDENCY_DETECTED, SELF_REFERENCE


@pytest.fixture
def engine(session):
    """세션에 묶인 그래프 엔진"""
    return DependencyGraphEngine(session, performed_by="test")


@pytest.fixture
async def scenario(engine, four_tasks):
    """Task 1~4, edge 3→1, 3→2, 4→3"""
    t1, t2, t3, t4 = four_tasks
    await engine.add_edges(t3.id, [t1.id, t2.id])
    await engine.add_edge(t4.id, t3.id)
    return four_tasks


async def _assert_acyclic(engine, task_ids):
    """모든 task 쌍에 대해 양방향 경로가 동시에 존재하지 않는지 확인"""
    for a in task_ids:
        for b in task_ids:
            if a != b and await engine._has_path(a, b):
                assert not await engine._has_path(b, a)


class TestAddEdge:
    """add_edge / add_edges 테스트"""

    @pytest.mark.asyncio
    async def test_add_edge_inserts(self, engine, four_tasks):
        """edge 추가"""
        t1, t2, _, _ = four_tasks

        assert await engine.add_edge(t1.id, t2.id) is True
        assert await engine.dependencies.list_dependencies(t1.id) == [t2.id]

    @pytest.mark.asyncio
    async def test_add_edge_is_idempotent(self, engine, four_tasks):
        """같은 edge 두 번 추가 시 하나만 존재"""
        t1, t2, _, _ = four_tasks

        assert await engine.add_edge(t1.id, t2.id) is True
        assert await engine.add_edge(t1.id, t2.id) is False
        assert await engine.dependencies.list_dependencies(t1.id) == [t2.id]

    @pytest.mark.asyncio
    async def test_self_loop_rejected(self, engine, four_tasks):
        """자기 자신 의존 거부"""
        t1 = four_tasks[0]

        with pytest.raises(CycleError) as exc_info:
            await engine.add_edge(t1.id, t1.id)

        assert exc_info.value.dependency_id == t1.id
        assert exc_info.value.cycle_path == [t1.id, t1.id]
        assert await engine.dependencies.list_dependencies(t1.id) == []

    @pytest.mark.asyncio
    async def test_reverse_edge_rejected(self, engine, four_tasks):
        """A→B 후 B→A 거부"""
        t1, t2, _, _ = four_tasks

        await engine.add_edge(t1.id, t2.id)
        with pytest.raises(CycleError):
            await engine.add_edge(t2.id, t1.id)

        assert await engine.dependencies.list_dependencies(t2.id) == []

    @pytest.mark.asyncio
    async def test_transitive_cycle_rejected_with_path(self, engine, scenario):
        """1→4 는 4→3→1 경로로 순환"""
        t1, _, t3, t4 = scenario

        with pytest.raises(CycleError) as exc_info:
            await engine.add_edge(t1.id, t4.id)

        assert exc_info.value.code == "CIRCULAR_DEPENDENCY"
        assert exc_info.value.cycle_path == [t4.id, t3.id, t1.id]

    @pytest.mark.asyncio
    async def test_add_edges_rejects_whole_batch(self, engine, scenario):
        """배치 중 하나라도 순환이면 아무것도 추가되지 않음"""
        t1, t2, _, t4 = scenario

        with pytest.raises(CycleError) as exc_info:
            await engine.add_edges(t1.id, [t2.id, t4.id])

        assert exc_info.value.dependency_id == t4.id
        assert await engine.dependencies.list_dependencies(t1.id) == []

    @pytest.mark.asyncio
    async def test_add_edges_rejects_existing_reverse_edge(self, engine, four_tasks):
        """기존 역방향 edge 가 있으면 배치 추가도 거부"""
        t1, t2, _, _ = four_tasks
        await engine.add_edge(t2.id, t1.id)

        with pytest.raises(CycleError):
            await engine.add_edges(t1.id, [t2.id])

    @pytest.mark.asyncio
    async def test_add_edges_skips_existing(self, engine, four_tasks):
        """이미 있는 edge 는 건너뛰고 새 edge 만 반환"""
        t1, t2, t3, _ = four_tasks

        await engine.add_edge(t1.id, t2.id)
        added = await engine.add_edges(t1.id, [t2.id, t3.id, t3.id])

        assert added == [t3.id]
        assert await engine.dependencies.list_dependencies(t1.id) == [t2.id, t3.id]

    @pytest.mark.asyncio
    async def test_missing_task_rejected(self, engine, four_tasks):
        """존재하지 않는 Task / 의존성"""
        t1 = four_tasks[0]

        with pytest.raises(NotFoundError) as exc_info:
            await engine.add_edge(999, t1.id)
        assert exc_info.value.code == "TASK_NOT_FOUND"

        with pytest.raises(NotFoundError) as exc_info:
            await engine.add_edge(t1.id, 999)
        assert exc_info.value.code == "DEPENDENCY_NOT_FOUND"
        assert exc_info.value.task_id == 999

    @pytest.mark.asyncio
    async def test_add_edges_writes_audit_log(self, engine, session, four_tasks):
        """edge 추가 시 감사 로그 기록"""
        t1, t2, _, _ = four_tasks

        await engine.add_edge(t1.id, t2.id)

        logs = await AuditRepository(session).history("task_dependencies", t1.id)
        assert len(logs) == 1
        assert logs[0].action == "dependencies_added"
        assert logs[0].new_value == {"dependencies": [t2.id]}
        assert logs[0].performed_by == "test"


class TestCycleQueries:
    """would_create_cycle / find_cycle_path 테스트"""

    @pytest.mark.asyncio
    async def test_would_create_cycle(self, engine, scenario):
        """4→3→1 경로가 있으므로 1→4 는 순환"""
        t1, t2, t3, t4 = scenario

        assert await engine.would_create_cycle(t1.id, t4.id) is True
        assert await engine.would_create_cycle(t1.id, t3.id) is True
        assert await engine.would_create_cycle(t4.id, t1.id) is False
        assert await engine.would_create_cycle(t1.id, t2.id) is False

    @pytest.mark.asyncio
    async def test_would_create_cycle_self(self, engine, four_tasks):
        """자기 자신은 항상 순환"""
        t1 = four_tasks[0]
        assert await engine.would_create_cycle(t1.id, t1.id) is True

    @pytest.mark.asyncio
    async def test_find_cycle_path(self, engine, scenario):
        """순환 경로 [후보, ..., task]"""
        t1, t2, t3, t4 = scenario

        assert await engine.find_cycle_path(t1.id, t4.id) == [t4.id, t3.id, t1.id]
        assert await engine.find_cycle_path(t2.id, t3.id) == [t3.id, t2.id]
        assert await engine.find_cycle_path(t4.id, t1.id) == []

    @pytest.mark.asyncio
    async def test_path_symmetric_with_would_create_cycle(self, engine, scenario):
        """경로가 비어있지 않은 것과 순환 여부가 일치"""
        ids = [task.id for task in scenario]
        for a in ids:
            for b in ids:
                if a == b:
                    continue
                path = await engine.find_cycle_path(a, b)
                assert bool(path) == await engine.would_create_cycle(a, b)


class TestDependencyChain:
    """build_dependency_chain 테스트"""

    @pytest.mark.asyncio
    async def test_linear_chain(self, engine, four_tasks):
        """A→B→C 체인은 [B: [C: []]]"""
        a, b, c, _ = four_tasks
        await engine.add_edge(a.id, b.id)
        await engine.add_edge(b.id, c.id)

        chain = await engine.build_dependency_chain(a.id)

        assert [node.to_dict() for node in chain] == [{
            "id": b.id,
            "title": b.title,
            "status": "pending",
            "sub_dependencies": [{
                "id": c.id,
                "title": c.title,
                "status": "pending",
                "sub_dependencies": [],
            }],
        }]

    @pytest.mark.asyncio
    async def test_diamond_expands_shared_dependency_twice(self, engine, scenario, make_task):
        """공유 의존성은 경로마다 각각 펼쳐짐 (순환 표시 아님)"""
        t1, t2, t3, t4 = scenario
        t5 = await make_task("Task 5")
        await engine.add_edges(t5.id, [t3.id, t1.id])

        chain = await engine.build_dependency_chain(t5.id)

        assert [node.id for node in chain] == [t3.id, t1.id]
        assert [node.id for node in chain[0].sub_dependencies] == [t1.id, t2.id]
        assert not any(node.is_circular for node in chain)

    @pytest.mark.asyncio
    async def test_no_dependencies(self, engine, four_tasks):
        """의존성 없는 Task"""
        assert await engine.build_dependency_chain(four_tasks[0].id) == []

    @pytest.mark.asyncio
    async def test_missing_task(self, engine):
        """존재하지 않는 Task"""
        with pytest.raises(NotFoundError):
            await engine.build_dependency_chain(999)

    @pytest.mark.asyncio
    async def test_corrupted_cycle_yields_marker(self, engine, session, four_tasks):
        """저장소에 순환이 있어도 무한 재귀 없이 표시"""
        t1, t2, _, _ = four_tasks
        store = DependencyRepository(session)
        await store.insert_edge(t1.id, t2.id)
        await store.insert_edge(t2.id, t1.id)

        chain = await engine.build_dependency_chain(t1.id)

        assert len(chain) == 1
        assert chain[0].id == t2.id
        inner = chain[0].sub_dependencies
        assert inner[0].id == t1.id
        assert isinstance(inner[0].sub_dependencies, CircularDependencyMarker)
        assert inner[0].is_circular
        assert not chain[0].is_circular
        assert chain[0].to_dict()["sub_dependencies"][0]["sub_dependencies"] == {
            CIRCULAR_DEPENDENCY_DETECTED: t1.id
        }


class TestForbiddenCandidates:
    """forbidden_dependency_candidates 테스트"""

    @pytest.mark.asyncio
    async def test_scenario(self, engine, scenario):
        """1 의 금지 후보는 자기 자신, 3, 4"""
        t1, _, t3, t4 = scenario

        forbidden = await engine.forbidden_dependency_candidates(t1.id)

        assert [c.id for c in forbidden] == [t1.id, t3.id, t4.id]
        assert forbidden[0].reason == "Cannot depend on itself"
        assert forbidden[0].dependency_path == [SELF_REFERENCE]
        assert forbidden[1].reason == "Would create circular dependency"
        assert forbidden[1].dependency_path == [t3.id, t1.id]
        assert forbidden[2].dependency_path == [t4.id, t3.id, t1.id]

    @pytest.mark.asyncio
    async def test_matches_would_create_cycle(self, engine, scenario):
        """금지 후보 집합 == 순환을 만드는 후보 집합"""
        ids = [task.id for task in scenario]
        for task_id in ids:
            forbidden = {c.id for c in await engine.forbidden_dependency_candidates(task_id)}
            expected = {cand for cand in ids if await engine.would_create_cycle(task_id, cand)}
            assert forbidden == expected

    @pytest.mark.asyncio
    async def test_root_task_only_self(self, engine, scenario):
        """아무도 의존하지 않는 Task 는 자기 자신만 금지"""
        t4 = scenario[3]
        forbidden = await engine.forbidden_dependency_candidates(t4.id)
        assert [c.id for c in forbidden] == [t4.id]


class TestRemoveAndReplace:
    """remove_* / replace_edges 테스트"""

    @pytest.mark.asyncio
    async def test_remove_edge_is_noop_when_absent(self, engine, scenario):
        """없는 edge 제거는 no-op"""
        t1, t2, t3, _ = scenario

        assert await engine.remove_edge(t1.id, t2.id) == 0
        assert await engine.remove_edge(t3.id, t1.id) == 1
        assert await engine.dependencies.list_dependencies(t3.id) == [t2.id]

    @pytest.mark.asyncio
    async def test_remove_all_edges(self, engine, scenario):
        """모든 outgoing edge 제거 (incoming 유지)"""
        _, _, t3, t4 = scenario

        assert await engine.remove_all_edges(t3.id) == 2
        assert await engine.dependencies.list_dependencies(t3.id) == []
        assert await engine.dependencies.list_dependents(t3.id) == [t4.id]

    @pytest.mark.asyncio
    async def test_replace_edges(self, engine, scenario):
        """edge 집합 교체"""
        t1, t2, t3, _ = scenario

        old, new = await engine.replace_edges(t3.id, [t2.id])

        assert old == [t1.id, t2.id]
        assert new == [t2.id]
        assert await engine.dependencies.list_dependencies(t3.id) == [t2.id]

    @pytest.mark.asyncio
    async def test_replace_with_cycle_keeps_old_edges(self, engine, scenario):
        """순환 후보가 있으면 기존 edge 그대로"""
        t1, t2, t3, t4 = scenario

        with pytest.raises(CycleError) as exc_info:
            await engine.replace_edges(t3.id, [t2.id, t4.id])

        assert exc_info.value.dependency_id == t4.id
        assert await engine.dependencies.list_dependencies(t3.id) == [t1.id, t2.id]

    @pytest.mark.asyncio
    async def test_replace_with_missing_dependency(self, engine, scenario):
        """존재하지 않는 후보가 있으면 아무것도 바뀌지 않음"""
        t1, t2, t3, _ = scenario

        with pytest.raises(NotFoundError):
            await engine.replace_edges(t3.id, [t1.id, 999])

        assert await engine.dependencies.list_dependencies(t3.id) == [t1.id, t2.id]

    @pytest.mark.asyncio
    async def test_graph_stays_acyclic(self, engine, scenario, make_task):
        """성공/실패가 섞인 변경 후에도 DAG 유지"""
        extra = [await make_task(f"Extra {n}") for n in range(2)]
        ids = [task.id for task in scenario + extra]

        attempts = [(ids[0], ids[4]), (ids[4], ids[3]), (ids[0], ids[3]), (ids[5], ids[4]), (ids[3], ids[5])]
        for task_id, dep_id in attempts:
            try:
                await engine.add_edge(task_id, dep_id)
            except CycleError:
                pass

        await _assert_acyclic(engine, ids)


class TestConcurrentWriters:
    """graph_transaction 직렬화 테스트 (세션 fixture 없이 db 를 직접 사용)"""

    @pytest.fixture
    async def pair(self, db):
        """Task A, B (edge 없음)"""
        async with db.session() as session:
            tasks = TaskRepository(session)
            a = await tasks.create(title="A", status="pending")
            b = await tasks.create(title="B", status="pending")
            ids = (a.id, b.id)
        return ids

    @pytest.mark.asyncio
    async def test_opposite_edges_cannot_both_land(self, db, pair):
        """동시에 A→B, B→A 를 추가하면 하나만 성공"""
        a_id, b_id = pair

        async def add(task_id: int, dependency_id: int):
            async with db.graph_transaction() as session:
                await DependencyGraphEngine(session).add_edge(task_id, dependency_id)
                # 커밋 전에 다른 writer 에게 양보
                await asyncio.sleep(0.01)

        results = await asyncio.gather(add(a_id, b_id), add(b_id, a_id), return_exceptions=True)

        failures = [result for result in results if isinstance(result, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], CycleError)

        async with db.session() as session:
            edges = DependencyRepository(session)
            stored = {
                (a_id, dep_id) for dep_id in await edges.list_dependencies(a_id)
            } | {
                (b_id, dep_id) for dep_id in await edges.list_dependencies(b_id)
            }
        assert stored in ({(a_id, b_id)}, {(b_id, a_id)})

    @pytest.mark.asyncio
    async def test_writers_see_each_others_commits(self, db, pair):
        """여러 writer 가 체인을 만들어도 마지막 역방향 edge 는 거부"""
        a_id, b_id = pair
        async with db.session() as session:
            c_id = (await TaskRepository(session).create(title="C", status="pending")).id

        async def add(task_id: int, dependency_id: int):
            async with db.graph_transaction() as session:
                await DependencyGraphEngine(session).add_edge(task_id, dependency_id)
                await asyncio.sleep(0)

        results = await asyncio.gather(
            add(a_id, b_id), add(b_id, c_id), add(c_id, a_id), return_exceptions=True
        )

        assert [type(result) for result in results].count(CycleError) == 1

        async with db.session() as session:
            engine = DependencyGraphEngine(session)
            await _assert_acyclic(engine, [a_id, b_id, c_id])
