"""
Database Unit Tests

SQLite 연결 방식(in-memory / 파일)별 트랜잭션 격리와 스키마 정의를 테스트합니다.
"""

import asyncio

import pytest
from sqlalchemy.pool import StaticPool

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from taskboard.database import Base, Database, UserModel
from taskboard.database.repositories import DependencyRepository, TaskRepository
from taskboard.errors import NotFoundError
from taskboard.graph import DependencyGraphEngine


@pytest.fixture(params=["memory", "file"])
async def database(request, tmp_path):
    """in-memory 와 파일 기반 SQLite 각각"""
    if request.param == "memory":
        url = "sqlite+aiosqlite:///:memory:"
    else:
        url = f"sqlite+aiosqlite:///{tmp_path / 'taskboard.db'}"
    database = Database(url, echo=False)
    await database.connect()
    await database.create_tables()
    yield database
    await database.disconnect()


class TestSqliteConnections:
    """SQLite 연결 풀 / 세션 격리 테스트"""

    @pytest.mark.asyncio
    async def test_static_pool_only_for_memory(self, database):
        """StaticPool 은 in-memory 에만 사용"""
        shared = isinstance(database.engine.pool, StaticPool)
        assert shared is database.is_sqlite_memory

    @pytest.mark.asyncio
    async def test_failed_read_keeps_graph_write(self, database):
        """읽기 세션의 rollback 이 진행 중인 그래프 쓰기를 되돌리지 않음"""
        async with database.session() as session:
            tasks = TaskRepository(session)
            a = await tasks.create(title="A", status="pending")
            b = await tasks.create(title="B", status="pending")
            c = await tasks.create(title="C", status="pending")
            a_id, b_id, c_id = a.id, b.id, c.id
            await DependencyRepository(session).insert_edge(a_id, b_id)

        removed = asyncio.Event()

        async def writer():
            async with database.graph_transaction() as session:
                engine = DependencyGraphEngine(session)
                await engine.remove_all_edges(a_id)
                removed.set()
                await asyncio.sleep(0.05)
                await engine.add_edge(a_id, c_id)

        async def failing_reader():
            await removed.wait()
            async with database.session() as session:
                await TaskRepository(session).get_by_id(a_id)
                raise NotFoundError(999)

        results = await asyncio.gather(writer(), failing_reader(), return_exceptions=True)

        assert results[0] is None
        assert isinstance(results[1], NotFoundError)

        async with database.session() as session:
            assert await DependencyRepository(session).list_dependencies(a_id) == [c_id]


class TestSchema:
    """ORM 메타데이터가 마이그레이션과 같은 인덱스/제약을 선언하는지"""

    def test_index_names(self):
        names = {
            index.name
            for table in Base.metadata.tables.values()
            for index in table.indexes
        }
        assert names == {
            "ix_users_role",
            "ix_tasks_status",
            "ix_tasks_assigned_to",
            "ix_tasks_due_date",
            "ix_tasks_created_at",
            "ix_task_dependencies_task_id",
            "ix_task_dependencies_depends_on_task_id",
            "ix_audit_logs_entity",
            "ix_audit_logs_created_at",
        }

    def test_named_constraints(self):
        user_constraints = {constraint.name for constraint in UserModel.__table__.constraints}
        assert "uq_users_email" in user_constraints
