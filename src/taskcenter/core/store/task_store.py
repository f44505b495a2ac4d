"""TaskStore SQLite 实现

任务记录只能通过本模块的原子原语变更：
- upsert_pending: 单条 INSERT ... ON CONFLICT DO UPDATE 语句，按自然键查找或创建
- complete_by_key / complete_by_external_signal: 带 status 条件的 UPDATE

不使用外部锁；natural_key 唯一索引是并发安全的唯一保障。
每个原语自行提交事务。
"""

from collections.abc import Iterable
from datetime import date, datetime

import aiosqlite
from ulid import ULID

from ..models.enums import TaskAction, TaskScope, TaskStatus, TaskType
from ..models.task import Task, TaskDraft

_UPSERT_PENDING_SQL = """
INSERT INTO tasks (task_id, natural_key, type, scope, status,
                   related_project_id, related_collaboration_id, related_talent_id,
                   title, description, due_date, count, last_action,
                   created_at, updated_at, completed_at)
VALUES (?, ?, ?, ?, 'pending', ?, ?, ?, ?, ?, ?, ?, 'created', ?, ?, NULL)
ON CONFLICT(natural_key) DO UPDATE SET
    last_action = CASE WHEN tasks.status = 'completed' THEN 'reopened' ELSE 'refreshed' END,
    status = 'pending',
    related_project_id = excluded.related_project_id,
    related_collaboration_id = excluded.related_collaboration_id,
    related_talent_id = excluded.related_talent_id,
    title = excluded.title,
    description = excluded.description,
    due_date = excluded.due_date,
    count = excluded.count,
    updated_at = excluded.updated_at,
    completed_at = NULL
RETURNING *
"""


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def upsert_pending(self, draft: TaskDraft, now: datetime) -> tuple[Task, TaskAction]:
        """按自然键原子地查找或创建 pending 任务

        - 不存在：插入新的 pending 记录（created_at = now）
        - 已 pending：刷新内容字段与 updated_at
        - 已 completed：翻回 pending，清空 completed_at

        Returns:
            (写入后的任务, 本次动作 created/refreshed/reopened)
        """
        ts = now.isoformat()
        try:
            # RETURNING 结果在同一次调用内读完，语句结束后才能提交
            rows = await self._conn.execute_fetchall(
                _UPSERT_PENDING_SQL,
                (
                    str(ULID()),
                    draft.natural_key,
                    draft.type.value,
                    draft.scope.value,
                    draft.refs.project_id,
                    draft.refs.collaboration_id,
                    draft.refs.talent_id,
                    draft.content.title,
                    draft.content.description,
                    _date_str(draft.content.due_date),
                    draft.content.count,
                    ts,
                    ts,
                ),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

        task = self._row_to_task(rows[0])
        return task, task.last_action

    async def complete_by_key(self, natural_key: str, now: datetime) -> bool:
        """将 pending 任务标记为 completed

        Returns:
            True 表示发生了流转；任务不存在或已完成时为 False（幂等）
        """
        ts = now.isoformat()
        try:
            cursor = await self._conn.execute(
                """
                UPDATE tasks
                SET status = 'completed', completed_at = ?, updated_at = ?,
                    last_action = 'completed'
                WHERE natural_key = ? AND status = 'pending'
                """,
                (ts, ts, natural_key),
            )
            changed = cursor.rowcount
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise
        return changed > 0

    async def complete_by_external_signal(
        self,
        task_type: TaskType,
        project_id: str | None,
        now: datetime,
        collaboration_id: str | None = None,
    ) -> int:
        """外部服务报告条件已解决时，完成匹配的 pending 任务

        匹配 (type, related_project_id) 下的全部 pending 任务；
        提供 collaboration_id 时只完成该合作对应的任务。
        project_id 为 None 时匹配系统级任务。

        Returns:
            被完成的任务数，0 表示无匹配（幂等成功）
        """
        ts = now.isoformat()
        sql = """
            UPDATE tasks
            SET status = 'completed', completed_at = ?, updated_at = ?,
                last_action = 'completed'
            WHERE type = ? AND related_project_id IS ? AND status = 'pending'
        """
        params: list = [ts, ts, task_type.value, project_id]
        if collaboration_id is not None:
            sql += " AND related_collaboration_id = ?"
            params.append(collaboration_id)

        try:
            cursor = await self._conn.execute(sql, params)
            changed = cursor.rowcount
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise
        return max(changed, 0)

    async def get_by_key(self, natural_key: str) -> Task | None:
        """根据自然键查询任务"""
        cursor = await self._conn.execute(
            "SELECT * FROM tasks WHERE natural_key = ?",
            (natural_key,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_pending_keys(self, task_type: TaskType) -> set[str]:
        """查询指定类型下所有 pending 任务的自然键"""
        cursor = await self._conn.execute(
            "SELECT natural_key FROM tasks WHERE type = ? AND status = 'pending'",
            (task_type.value,),
        )
        rows = await cursor.fetchall()
        return {row[0] for row in rows}

    async def list_pending(self, exclude_types: Iterable[TaskType] = ()) -> list[Task]:
        """查询 pending 任务（排除指定类型），按 created_at 倒序"""
        excluded = [t.value for t in exclude_types]
        sql = "SELECT * FROM tasks WHERE status = 'pending'"
        if excluded:
            placeholders = ", ".join("?" for _ in excluded)
            sql += f" AND type NOT IN ({placeholders})"
        sql += " ORDER BY created_at DESC, task_id DESC"
        cursor = await self._conn.execute(sql, excluded)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_by_type(self, task_type: TaskType) -> list[Task]:
        """查询指定类型的全部任务（含已完成）"""
        cursor = await self._conn.execute(
            "SELECT * FROM tasks WHERE type = ? ORDER BY created_at DESC, task_id DESC",
            (task_type.value,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row["task_id"],
            natural_key=row["natural_key"],
            type=TaskType(row["type"]),
            scope=TaskScope(row["scope"]),
            status=TaskStatus(row["status"]),
            related_project_id=row["related_project_id"],
            related_collaboration_id=row["related_collaboration_id"],
            related_talent_id=row["related_talent_id"],
            title=row["title"],
            description=row["description"],
            due_date=date.fromisoformat(row["due_date"]) if row["due_date"] else None,
            count=row["count"],
            last_action=TaskAction(row["last_action"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            completed_at=(
                datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None
            ),
        )


def _date_str(value: date | None) -> str | None:
    return value.isoformat() if value else None
