"""RunLogStore SQLite 实现

run_logs 表 append-only：只允许插入和查询，不允许更新或删除。
"""

import json
from datetime import datetime

import aiosqlite

from ..models.enums import RunStatus, RunTrigger
from ..models.run_log import RuleOutcome, RunLog


class SqliteRunLogStore:
    """RunLogStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append(self, run_log: RunLog) -> None:
        """写入一条运行记录并提交"""
        per_rule = [o.model_dump(mode="json") for o in run_log.per_rule]
        try:
            await self._conn.execute(
                """
                INSERT INTO run_logs (run_id, trigger, started_at, finished_at,
                                      duration_ms, overall_status, per_rule, error)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    run_log.run_id,
                    run_log.trigger.value,
                    run_log.started_at.isoformat(),
                    run_log.finished_at.isoformat(),
                    run_log.duration_ms,
                    run_log.overall_status.value,
                    json.dumps(per_rule, ensure_ascii=False),
                    run_log.error,
                ),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    async def get(self, run_id: str) -> RunLog | None:
        cursor = await self._conn.execute(
            "SELECT * FROM run_logs WHERE run_id = ?",
            (run_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_run_log(row) if row else None

    async def list_recent(self, limit: int = 10, offset: int = 0) -> list[RunLog]:
        """按开始时间倒序分页查询运行记录"""
        cursor = await self._conn.execute(
            "SELECT * FROM run_logs ORDER BY started_at DESC, run_id DESC LIMIT ? OFFSET ?",
            (limit, offset),
        )
        rows = await cursor.fetchall()
        return [self._row_to_run_log(row) for row in rows]

    async def count(self) -> int:
        cursor = await self._conn.execute("SELECT COUNT(*) FROM run_logs")
        row = await cursor.fetchone()
        return row[0] if row else 0

    @staticmethod
    def _row_to_run_log(row: aiosqlite.Row) -> RunLog:
        per_rule = json.loads(row["per_rule"]) if row["per_rule"] else []
        return RunLog(
            run_id=row["run_id"],
            trigger=RunTrigger(row["trigger"]),
            started_at=datetime.fromisoformat(row["started_at"]),
            finished_at=datetime.fromisoformat(row["finished_at"]),
            duration_ms=row["duration_ms"],
            overall_status=RunStatus(row["overall_status"]),
            per_rule=[RuleOutcome(**item) for item in per_rule],
            error=row["error"],
        )
