"""Store Protocol 接口定义

Scanner / Orchestrator / 规则加载器只依赖这些结构化接口，
测试可注入替身实现（例如模拟读取失败的 SourceReader）。
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from ..models.enums import TaskAction, TaskType
from ..models.run_log import RunLog
from ..models.source import Collaboration, Project, Talent, Work
from ..models.task import Task, TaskDraft


class TaskStore(Protocol):
    """Task 存储接口"""

    async def upsert_pending(self, draft: TaskDraft, now: datetime) -> tuple[Task, TaskAction]:
        """按自然键原子 upsert 为 pending"""
        ...

    async def complete_by_key(self, natural_key: str, now: datetime) -> bool:
        """pending -> completed，不存在或已完成时为 no-op"""
        ...

    async def complete_by_external_signal(
        self,
        task_type: TaskType,
        project_id: str | None,
        now: datetime,
        collaboration_id: str | None = None,
    ) -> int:
        """外部完成信号"""
        ...

    async def list_pending_keys(self, task_type: TaskType) -> set[str]:
        ...

    async def list_pending(self, exclude_types: Iterable[TaskType] = ()) -> list[Task]:
        ...


class RunLogStore(Protocol):
    """RunLog 存储接口 -- append-only"""

    async def append(self, run_log: RunLog) -> None:
        ...

    async def list_recent(self, limit: int = 10, offset: int = 0) -> list[RunLog]:
        ...


class SourceReader(Protocol):
    """业务源数据只读接口"""

    async def list_projects(self, statuses: Iterable[str]) -> list[Project]:
        ...

    async def list_collaborations_in_status(
        self,
        collab_status: str,
        project_statuses: Iterable[str],
    ) -> list[tuple[Project, Collaboration]]:
        ...

    async def list_collaborations(self, project_ids: list[str]) -> list[Collaboration]:
        ...

    async def list_works(self, project_ids: list[str]) -> list[Work]:
        ...

    async def list_talents(self) -> list[Talent]:
        ...

    async def get_project_names(self, project_ids: Iterable[str]) -> dict[str, str]:
        ...
