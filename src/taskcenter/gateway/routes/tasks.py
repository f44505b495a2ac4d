"""待办任务路由

GET  /tasks: pending 任务按项目分组（默认排除系统级任务）
POST /tasks/complete: 外部服务报告条件已解决
GET  /system-status: 系统级规则状态卡片
"""

from datetime import UTC, datetime

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from taskcenter.core.config import EngineConfig
from taskcenter.core.models.enums import TaskType
from taskcenter.core.query import group_pending_by_project, system_status
from taskcenter.core.rules import SYSTEM_TASK_TYPES
from taskcenter.core.store import StoreGroup

from ..deps import get_engine_config, get_store_group
from ..responses import db_unavailable, error_response, task_to_dict

log = structlog.get_logger()

router = APIRouter()


class CompleteTaskRequest(BaseModel):
    """完成信号请求体"""

    model_config = ConfigDict(populate_by_name=True)

    type: TaskType
    related_project_id: str | None = Field(default=None, alias="relatedProjectId")
    related_collaboration_id: str | None = Field(default=None, alias="relatedCollaborationId")


def _parse_exclude_types(values: list[str] | None) -> list[TaskType]:
    """支持重复参数与逗号分隔两种写法；未提供时排除全部系统级类型

    Raises:
        ValueError: 存在未知类型
    """
    if values is None:
        return list(SYSTEM_TASK_TYPES)
    result = []
    for value in values:
        for item in value.split(","):
            item = item.strip()
            if item:
                result.append(TaskType(item))
    return result


@router.get("/tasks")
async def list_grouped_tasks(
    exclude_types: list[str] | None = Query(default=None, description="排除的任务类型"),
    store_group: StoreGroup = Depends(get_store_group),
):
    """pending 任务按项目分组，项目内按创建时间倒序"""
    try:
        excluded = _parse_exclude_types(exclude_types)
    except ValueError as e:
        return error_response(400, "INVALID_REQUEST", str(e))

    if (failure := await db_unavailable(store_group)) is not None:
        return failure
    groups = await group_pending_by_project(store_group, exclude_types=excluded)
    return {
        "success": True,
        "data": {
            project_id: {
                "projectName": group.project_name,
                "tasks": [task_to_dict(t) for t in group.tasks],
            }
            for project_id, group in groups.items()
        },
    }


@router.post("/tasks/complete")
async def complete_tasks(
    body: CompleteTaskRequest,
    store_group: StoreGroup = Depends(get_store_group),
):
    """完成 (type, project[, collaboration]) 下的全部 pending 任务；无匹配时 completed=0"""
    if (failure := await db_unavailable(store_group)) is not None:
        return failure
    completed = await store_group.task_store.complete_by_external_signal(
        body.type,
        body.related_project_id,
        datetime.now(UTC),
        collaboration_id=body.related_collaboration_id,
    )
    log.info(
        "tasks_completed_by_signal",
        task_type=body.type.value,
        project_id=body.related_project_id,
        collaboration_id=body.related_collaboration_id,
        completed=completed,
    )
    return {"success": True, "completed": completed}


@router.get("/system-status")
async def get_system_status(
    store_group: StoreGroup = Depends(get_store_group),
    config: EngineConfig = Depends(get_engine_config),
):
    if (failure := await db_unavailable(store_group)) is not None:
        return failure
    today = datetime.now(UTC).astimezone(config.tzinfo).date()
    statuses = await system_status(store_group, today)
    return {
        "success": True,
        "data": {
            s.type.value: {
                "needsUpdate": s.needs_update,
                "count": s.count,
                "taskUpdatedAt": s.task_updated_at.isoformat() if s.task_updated_at else None,
                "dataUpdatedAt": s.data_updated_at,
                "nextCadenceDate": (
                    s.next_cadence_date.isoformat() if s.next_cadence_date else None
                ),
            }
            for s in statuses
        },
    }
