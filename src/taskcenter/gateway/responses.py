"""响应序列化 -- 网关统一使用 camelCase 字段与 {success, error{code, message}} 错误结构"""

import structlog
from starlette.responses import JSONResponse

from taskcenter.core.models.run_log import RunLog
from taskcenter.core.models.task import Task
from taskcenter.core.store import StoreGroup

log = structlog.get_logger()


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
    )


def run_log_to_dict(run_log: RunLog) -> dict:
    """RunLog -> 响应体（含由 perRule 汇总出的总数）"""
    return {
        "runId": run_log.run_id,
        "trigger": run_log.trigger.value,
        "startedAt": run_log.started_at.isoformat(),
        "finishedAt": run_log.finished_at.isoformat(),
        "durationMs": run_log.duration_ms,
        "overallStatus": run_log.overall_status.value,
        "created": run_log.created,
        "refreshed": run_log.refreshed,
        "completed": run_log.completed,
        "perRule": [
            {
                "ruleType": o.rule_type.value,
                "created": o.created,
                "refreshed": o.refreshed,
                "completed": o.completed,
                "error": o.error,
            }
            for o in run_log.per_rule
        ],
        "error": run_log.error,
    }


def task_to_dict(task: Task) -> dict:
    return {
        "id": task.task_id,
        "type": task.type.value,
        "title": task.title,
        "description": task.description,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
        "count": task.count,
        "relatedCollaborationId": task.related_collaboration_id,
    }


async def db_unavailable(store_group: StoreGroup) -> JSONResponse | None:
    """确保数据库可用；无法连接时返回 500 错误响应，可用时返回 None"""
    try:
        await store_group.ensure_connected()
    except Exception as e:
        log.error("db_unavailable", error_type=type(e).__name__, error=str(e))
        return error_response(500, "DB_UNAVAILABLE", f"{type(e).__name__}: {e}")
    return None
