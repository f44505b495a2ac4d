"""Task Domain Model

每条任务由 natural_key 唯一标识：同一个真实世界的触发条件
在多次扫描之间始终映射到同一条记录。
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from .enums import TaskAction, TaskScope, TaskStatus, TaskType


def natural_key(task_type: TaskType, *scope_ids: str) -> str:
    """生成自然键：类型 + 作用域实体 ID，冒号拼接"""
    return ":".join([task_type.value, *scope_ids])


class TaskRefs(BaseModel):
    """任务关联的业务实体"""

    project_id: str | None = None
    collaboration_id: str | None = None
    talent_id: str | None = None


class TaskContent(BaseModel):
    """规则渲染出的任务内容

    count 为结构化计数（如待更新达人数量），展示层不得从 description 中解析。
    """

    title: str
    description: str = ""
    due_date: date | None = None
    count: int | None = None


class TaskDraft(BaseModel):
    """待写入 Task Store 的期望状态（pending）"""

    natural_key: str
    type: TaskType
    scope: TaskScope
    refs: TaskRefs = Field(default_factory=TaskRefs)
    content: TaskContent


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    natural_key: str = Field(description="自然键，用于幂等 upsert")
    type: TaskType = Field(description="触发类型")
    scope: TaskScope = Field(description="作用域")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    related_project_id: str | None = Field(default=None, description="关联项目 ID")
    related_collaboration_id: str | None = Field(default=None, description="关联合作 ID")
    related_talent_id: str | None = Field(default=None, description="关联达人 ID")
    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述（仅供阅读）")
    due_date: date | None = Field(default=None, description="截止日期，仅用于排序")
    count: int | None = Field(default=None, description="结构化计数")
    last_action: TaskAction = Field(default=TaskAction.CREATED, description="最近一次动作")
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
