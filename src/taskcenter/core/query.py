"""Query Façade -- 面向展示层的只读查询

- group_pending_by_project: pending 任务按项目分组并附带项目名称
- system_status: 系统级规则的当前状态（是否需要更新、数量、下一个节奏日）
"""

from collections.abc import Iterable
from datetime import date, datetime

import structlog
from pydantic import BaseModel, Field

from .models.enums import TaskStatus, TaskType
from .models.task import Task, natural_key
from .rules import RULE_CATALOG, SYSTEM_TASK_TYPES, Rule, next_cadence_date
from .store import StoreGroup

log = structlog.get_logger()


class ProjectTaskGroup(BaseModel):
    """单个项目下的待办任务"""

    project_name: str
    tasks: list[Task] = Field(default_factory=list)


class SystemRuleStatus(BaseModel):
    """系统级规则状态卡片"""

    type: TaskType
    needs_update: bool = False
    count: int | None = None
    task_updated_at: datetime | None = Field(default=None, description="pending 任务最近刷新时间")
    data_updated_at: str | None = Field(default=None, description="源数据最近更新时间（如有）")
    next_cadence_date: date | None = None


async def group_pending_by_project(
    stores: StoreGroup,
    exclude_types: Iterable[TaskType] = SYSTEM_TASK_TYPES,
) -> dict[str, ProjectTaskGroup]:
    """按项目分组的 pending 任务（新的在前）

    无关联项目或项目已不存在的任务直接跳过。
    """
    await stores.ensure_connected()
    tasks = await stores.task_store.list_pending(exclude_types=exclude_types)
    project_ids = {t.related_project_id for t in tasks if t.related_project_id}
    names = await stores.source.get_project_names(project_ids)

    groups: dict[str, ProjectTaskGroup] = {}
    dropped = 0
    for task in tasks:
        pid = task.related_project_id
        if not pid or pid not in names:
            dropped += 1
            continue
        group = groups.get(pid)
        if group is None:
            group = groups[pid] = ProjectTaskGroup(project_name=names[pid])
        group.tasks.append(task)

    if dropped:
        log.debug("orphan_tasks_skipped", count=dropped)
    return groups


async def system_status(
    stores: StoreGroup,
    today: date,
    rules: Iterable[Rule] = RULE_CATALOG,
) -> list[SystemRuleStatus]:
    """系统级规则的状态，按规则目录顺序"""
    await stores.ensure_connected()
    latest_performance = await stores.source.latest_performance_update()

    statuses = []
    for rule in rules:
        if rule.type not in SYSTEM_TASK_TYPES:
            continue
        task = await stores.task_store.get_by_key(natural_key(rule.type))
        pending = task is not None and task.status == TaskStatus.PENDING
        statuses.append(
            SystemRuleStatus(
                type=rule.type,
                needs_update=pending,
                count=task.count if pending else 0,
                task_updated_at=task.updated_at if pending else None,
                data_updated_at=(
                    latest_performance
                    if rule.type == TaskType.TALENT_PERFORMANCE_UPDATE_REMINDER
                    else None
                ),
                next_cadence_date=next_cadence_date(rule, today),
            )
        )
    return statuses
