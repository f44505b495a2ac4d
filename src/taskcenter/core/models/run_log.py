"""RunLog Domain Model

每次扫描运行写入一条，写入后不再修改。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import RunStatus, RunTrigger, TaskType


class RuleOutcome(BaseModel):
    """单条规则在一次扫描中的结果"""

    rule_type: TaskType
    created: int = 0
    refreshed: int = 0
    completed: int = 0
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class RunLog(BaseModel):
    """扫描运行记录（append-only）"""

    run_id: str = Field(description="唯一标识，ULID 格式")
    trigger: RunTrigger
    started_at: datetime
    finished_at: datetime
    duration_ms: int = 0
    overall_status: RunStatus
    per_rule: list[RuleOutcome] = Field(default_factory=list, description="按规则目录顺序")
    error: str | None = Field(default=None, description="致命错误（未执行任何规则）")

    @property
    def created(self) -> int:
        return sum(o.created for o in self.per_rule)

    @property
    def refreshed(self) -> int:
        return sum(o.refreshed for o in self.per_rule)

    @property
    def completed(self) -> int:
        return sum(o.completed for o in self.per_rule)
