"""规则目录 -- 扫描按此顺序逐条执行"""

from ..models.enums import TaskScope, TaskType
from .base import Rule
from .project_rules import (
    DATA_OVERDUE_T7_RULE,
    DATA_OVERDUE_T21_RULE,
    FINALIZE_REMINDER_RULE,
    PENDING_PUBLISH_RULE,
)
from .system_rules import PERFORMANCE_UPDATE_RULE, PRICE_UPDATE_RULE

RULE_CATALOG: tuple[Rule, ...] = (
    PENDING_PUBLISH_RULE,
    DATA_OVERDUE_T7_RULE,
    DATA_OVERDUE_T21_RULE,
    FINALIZE_REMINDER_RULE,
    PERFORMANCE_UPDATE_RULE,
    PRICE_UPDATE_RULE,
)

SYSTEM_TASK_TYPES: tuple[TaskType, ...] = tuple(
    r.type for r in RULE_CATALOG if r.scope == TaskScope.SYSTEM
)


def get_rule(task_type: TaskType) -> Rule:
    """按任务类型查找规则

    Raises:
        KeyError: 目录中不存在该类型
    """
    for rule in RULE_CATALOG:
        if rule.type == task_type:
            return rule
    raise KeyError(task_type)
