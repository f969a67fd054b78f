"""
Pytest Configuration and Fixtures

테스트 전역 설정 및 공유 fixtures입니다.
모든 테스트는 in-memory SQLite(aiosqlite) 데이터베이스를 사용합니다.
"""

import pytest
from typing import AsyncGenerator

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from taskboard.database import Database, TaskModel, UserModel
from taskboard.database.repositories import TaskRepository, UserRepository


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db() -> AsyncGenerator[Database, None]:
    """테이블이 생성된 in-memory Database"""
    database = Database(TEST_DATABASE_URL, echo=False)
    await database.connect()
    await database.create_tables()
    yield database
    await database.disconnect()


@pytest.fixture
async def session(db):
    """테스트 하나 동안 유지되는 세션 (종료 시 커밋)"""
    async with db.session() as session:
        yield session


@pytest.fixture
async def manager(session) -> UserModel:
    """매니저 사용자"""
    return await UserRepository(session).create(
        name="John Manager", email="manager@example.com", role="manager"
    )


@pytest.fixture
async def member(session) -> UserModel:
    """일반 사용자"""
    return await UserRepository(session).create(
        name="Alice Developer", email="alice@example.com", role="user"
    )


@pytest.fixture
def make_task(session):
    """Task 생성 헬퍼 (그래프 검증 없이 저장소에 직접 기록)"""
    repository = TaskRepository(session)

    async def _make_task(title: str = "Test Task", status: str = "pending", **kwargs) -> TaskModel:
        return await repository.create(title=title, status=status, **kwargs)

    return _make_task


@pytest.fixture
async def four_tasks(make_task):
    """Task 1~4 (edge 없음)"""
    return [await make_task(f"Task {n}") for n in range(1, 5)]
