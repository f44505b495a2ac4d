"""枚举定义

TaskType / TaskScope / TaskStatus / TaskAction 描述待办任务，
RunTrigger / RunStatus / RunPhase 描述一次扫描运行。
VALID_TRANSITIONS 与 RUN_PHASE_TRANSITIONS 为合法流转映射。
"""

from enum import StrEnum


class TaskType(StrEnum):
    """任务触发类型（每种类型对应规则目录中的一条规则）"""

    PROJECT_PENDING_PUBLISH = "PROJECT_PENDING_PUBLISH"
    PROJECT_DATA_OVERDUE_T7 = "PROJECT_DATA_OVERDUE_T7"
    PROJECT_DATA_OVERDUE_T21 = "PROJECT_DATA_OVERDUE_T21"
    PROJECT_FINALIZE_REMINDER = "PROJECT_FINALIZE_REMINDER"
    TALENT_PERFORMANCE_UPDATE_REMINDER = "TALENT_PERFORMANCE_UPDATE_REMINDER"
    TALENT_PRICE_UPDATE_REMINDER = "TALENT_PRICE_UPDATE_REMINDER"


class TaskScope(StrEnum):
    """任务作用域"""

    PROJECT = "PROJECT"
    SYSTEM = "SYSTEM"


class TaskStatus(StrEnum):
    """任务状态"""

    PENDING = "pending"
    COMPLETED = "completed"


# completed -> pending 仅用于条件重新成立（新的一次触发）
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.COMPLETED},
    TaskStatus.COMPLETED: {TaskStatus.PENDING},
}


class TaskAction(StrEnum):
    """任务记录最近一次生命周期动作"""

    CREATED = "created"
    REFRESHED = "refreshed"
    REOPENED = "reopened"
    COMPLETED = "completed"


class RunTrigger(StrEnum):
    """扫描触发来源"""

    CRON = "cron"
    MANUAL = "manual"


class RunStatus(StrEnum):
    """扫描整体结果"""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class RunPhase(StrEnum):
    """单次扫描运行的阶段"""

    STARTED = "STARTED"
    EVALUATING = "EVALUATING"
    FINALIZING = "FINALIZING"
    DONE = "DONE"


# STARTED -> FINALIZING：数据库不可用，未执行任何规则
RUN_PHASE_TRANSITIONS: dict[RunPhase, set[RunPhase]] = {
    RunPhase.STARTED: {RunPhase.EVALUATING, RunPhase.FINALIZING},
    RunPhase.EVALUATING: {RunPhase.FINALIZING},
    RunPhase.FINALIZING: {RunPhase.DONE},
    RunPhase.DONE: set(),
}


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证任务状态流转是否合法"""
    return to_status in VALID_TRANSITIONS.get(from_status, set())


def validate_phase_transition(from_phase: RunPhase, to_phase: RunPhase) -> bool:
    """验证运行阶段流转是否合法"""
    return to_phase in RUN_PHASE_TRANSITIONS.get(from_phase, set())
