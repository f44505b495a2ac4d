"""Task Center Core Domain Models -- 公共类型导出"""

from .enums import (
    RUN_PHASE_TRANSITIONS,
    VALID_TRANSITIONS,
    RunPhase,
    RunStatus,
    RunTrigger,
    TaskAction,
    TaskScope,
    TaskStatus,
    TaskType,
    validate_phase_transition,
    validate_transition,
)
from .run_log import RuleOutcome, RunLog
from .source import (
    ACTIVE_PROJECT_STATUSES,
    CLOSED_PROJECT_STATUSES,
    COLLAB_STATUS_SCHEDULED,
    PRICE_STATUS_CONFIRMED,
    Collaboration,
    Project,
    Talent,
    TalentPrice,
    Work,
    parse_calendar_date,
)
from .task import Task, TaskContent, TaskDraft, TaskRefs, natural_key

__all__ = [
    # 枚举
    "TaskType",
    "TaskScope",
    "TaskStatus",
    "TaskAction",
    "RunTrigger",
    "RunStatus",
    "RunPhase",
    # 状态机
    "VALID_TRANSITIONS",
    "RUN_PHASE_TRANSITIONS",
    "validate_transition",
    "validate_phase_transition",
    # Task
    "Task",
    "TaskContent",
    "TaskDraft",
    "TaskRefs",
    "natural_key",
    # RunLog
    "RunLog",
    "RuleOutcome",
    # 源数据
    "Project",
    "Collaboration",
    "Work",
    "Talent",
    "TalentPrice",
    "ACTIVE_PROJECT_STATUSES",
    "CLOSED_PROJECT_STATUSES",
    "COLLAB_STATUS_SCHEDULED",
    "PRICE_STATUS_CONFIRMED",
    "parse_calendar_date",
]
