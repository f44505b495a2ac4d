"""全局 pytest 配置 -- 临时 SQLite 数据库、StoreGroup 与源数据写入 fixture"""

import json
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from taskcenter.core.store import StoreGroup, create_store_group


class SourceSeeder:
    """向业务源数据表写入测试数据（模拟各 CRUD 服务）"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def project(self, project_id: str, name: str | None = None, status: str = "执行中"):
        await self._conn.execute(
            "INSERT OR REPLACE INTO projects (id, name, status) VALUES (?, ?, ?)",
            (project_id, name or f"项目-{project_id}", status),
        )
        await self._conn.commit()

    async def collaboration(
        self,
        collab_id: str,
        project_id: str,
        status: str = "客户已定档",
        planned: str | None = None,
        published: str | None = None,
        talent_id: str | None = None,
        talent_name: str = "",
    ):
        await self._conn.execute(
            """
            INSERT OR REPLACE INTO collaborations
                (id, project_id, talent_id, talent_name, status,
                 planned_release_date, publish_date)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (collab_id, project_id, talent_id, talent_name, status, planned, published),
        )
        await self._conn.commit()

    async def work(
        self,
        work_id: str,
        collab_id: str,
        project_id: str,
        t7: str | None = None,
        t21: str | None = None,
    ):
        await self._conn.execute(
            """
            INSERT OR REPLACE INTO works
                (id, collaboration_id, project_id, t7_stats_updated_at, t21_stats_updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (work_id, collab_id, project_id, t7, t21),
        )
        await self._conn.commit()

    async def talent(
        self,
        talent_id: str,
        performance: str | None = None,
        prices: list[dict] | None = None,
        nickname: str = "",
    ):
        await self._conn.execute(
            """
            INSERT OR REPLACE INTO talents (id, nickname, performance_last_updated, prices)
            VALUES (?, ?, ?, ?)
            """,
            (talent_id, nickname, performance, json.dumps(prices or [])),
        )
        await self._conn.commit()

    async def delete_project(self, project_id: str):
        await self._conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        await self._conn.commit()


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """临时 SQLite 数据库路径"""
    return str(tmp_path / "sqlite" / "test.db")


@pytest_asyncio.fixture
async def stores(db_path: str) -> AsyncGenerator[StoreGroup, None]:
    """已初始化的 StoreGroup"""
    group = await create_store_group(db_path)
    yield group
    await group.close()


@pytest_asyncio.fixture
async def seed(stores: StoreGroup) -> SourceSeeder:
    """源数据写入器（与 stores 共用连接）"""
    return SourceSeeder(stores.conn)


@pytest.fixture
def monday_now() -> datetime:
    """2025-03-10 12:00 (Asia/Shanghai)，周一"""
    return datetime(2025, 3, 10, 4, 0, tzinfo=UTC)
