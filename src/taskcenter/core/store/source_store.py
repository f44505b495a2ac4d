"""业务源数据只读查询

每条规则只加载自己需要的最小候选集；本模块不提供任何写操作。
"""

import json
from collections.abc import Iterable

import aiosqlite

from ..models.source import Collaboration, Project, Talent, TalentPrice, Work


def _placeholders(values: list) -> str:
    return ", ".join("?" for _ in values)


class SqliteSourceReader:
    """项目/合作/作品/达人的只读访问"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def list_projects(self, statuses: Iterable[str]) -> list[Project]:
        """查询指定状态的项目"""
        status_list = list(statuses)
        if not status_list:
            return []
        cursor = await self._conn.execute(
            f"SELECT id, name, status FROM projects WHERE status IN ({_placeholders(status_list)}) "
            "ORDER BY id",
            status_list,
        )
        rows = await cursor.fetchall()
        return [Project(id=r["id"], name=r["name"], status=r["status"]) for r in rows]

    async def list_collaborations_in_status(
        self,
        collab_status: str,
        project_statuses: Iterable[str],
    ) -> list[tuple[Project, Collaboration]]:
        """查询处于指定状态、且所属项目处于指定状态的合作（附带项目）"""
        status_list = list(project_statuses)
        if not status_list:
            return []
        cursor = await self._conn.execute(
            f"""
            SELECT c.*, p.name AS project_name, p.status AS project_status
            FROM collaborations c
            JOIN projects p ON p.id = c.project_id
            WHERE c.status = ? AND p.status IN ({_placeholders(status_list)})
            ORDER BY c.project_id, c.id
            """,
            [collab_status, *status_list],
        )
        rows = await cursor.fetchall()
        return [
            (
                Project(id=r["project_id"], name=r["project_name"], status=r["project_status"]),
                self._row_to_collaboration(r),
            )
            for r in rows
        ]

    async def list_collaborations(self, project_ids: list[str]) -> list[Collaboration]:
        if not project_ids:
            return []
        cursor = await self._conn.execute(
            f"SELECT * FROM collaborations WHERE project_id IN ({_placeholders(project_ids)}) "
            "ORDER BY project_id, id",
            project_ids,
        )
        rows = await cursor.fetchall()
        return [self._row_to_collaboration(r) for r in rows]

    async def list_works(self, project_ids: list[str]) -> list[Work]:
        if not project_ids:
            return []
        cursor = await self._conn.execute(
            f"SELECT * FROM works WHERE project_id IN ({_placeholders(project_ids)})",
            project_ids,
        )
        rows = await cursor.fetchall()
        return [
            Work(
                id=r["id"],
                collaboration_id=r["collaboration_id"],
                project_id=r["project_id"],
                t7_stats_updated_at=r["t7_stats_updated_at"],
                t21_stats_updated_at=r["t21_stats_updated_at"],
            )
            for r in rows
        ]

    async def list_talents(self) -> list[Talent]:
        cursor = await self._conn.execute("SELECT * FROM talents ORDER BY id")
        rows = await cursor.fetchall()
        talents = []
        for r in rows:
            prices = json.loads(r["prices"]) if r["prices"] else []
            talents.append(
                Talent(
                    id=r["id"],
                    nickname=r["nickname"],
                    performance_last_updated=r["performance_last_updated"],
                    prices=[TalentPrice(**p) for p in prices],
                )
            )
        return talents

    async def get_project_names(self, project_ids: Iterable[str]) -> dict[str, str]:
        """批量查询项目名称；不存在的项目不出现在结果中"""
        ids = sorted(set(project_ids))
        if not ids:
            return {}
        cursor = await self._conn.execute(
            f"SELECT id, name FROM projects WHERE id IN ({_placeholders(ids)})",
            ids,
        )
        rows = await cursor.fetchall()
        return {r["id"]: r["name"] for r in rows}

    async def latest_performance_update(self) -> str | None:
        """全部达人中最近一次表现数据更新时间"""
        cursor = await self._conn.execute(
            "SELECT MAX(performance_last_updated) FROM talents"
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    @staticmethod
    def _row_to_collaboration(row: aiosqlite.Row) -> Collaboration:
        return Collaboration(
            id=row["id"],
            project_id=row["project_id"],
            talent_id=row["talent_id"],
            talent_name=row["talent_name"],
            status=row["status"],
            planned_release_date=row["planned_release_date"],
            publish_date=row["publish_date"],
        )
