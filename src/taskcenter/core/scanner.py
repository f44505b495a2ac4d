"""Scanner -- 单条规则的评估

对一条规则：加载候选 -> 条件成立的候选 upsert 为 pending ->
本类型下条件不再成立的 pending 任务标记为 completed。
任何异常都在此捕获并记录为该规则的 error，不影响其他规则。
"""

from datetime import date, datetime

import structlog

from .models.enums import TaskAction
from .models.run_log import RuleOutcome
from .models.task import TaskDraft
from .rules.base import Rule
from .store.protocols import SourceReader, TaskStore

log = structlog.get_logger()


async def scan_rule(
    rule: Rule,
    source: SourceReader,
    task_store: TaskStore,
    today: date,
    now: datetime,
) -> RuleOutcome:
    """评估一条规则并同步任务状态

    Args:
        rule: 规则定义
        source: 业务源数据读取器
        task_store: 任务存储
        today: 业务时区下的扫描日期
        now: 扫描时间戳（写入 created_at / updated_at / completed_at）

    Returns:
        该规则的 RuleOutcome；失败时 error 为 "<异常类型>: <消息>"
    """
    outcome = RuleOutcome(rule_type=rule.type)
    try:
        await _evaluate(rule, source, task_store, today, now, outcome)
    except Exception as e:
        outcome.error = f"{type(e).__name__}: {e}"
        log.warning(
            "rule_scan_failed",
            rule_type=rule.type.value,
            error_type=type(e).__name__,
            error=str(e),
        )
        return outcome

    log.info(
        "rule_scanned",
        rule_type=rule.type.value,
        created=outcome.created,
        refreshed=outcome.refreshed,
        completed=outcome.completed,
    )
    return outcome


async def _evaluate(
    rule: Rule,
    source: SourceReader,
    task_store: TaskStore,
    today: date,
    now: datetime,
    outcome: RuleOutcome,
) -> None:
    candidates = await rule.load(source, today)
    opens_today = rule.opens_on(today)

    active_keys: set[str] = set()
    for candidate in candidates:
        if not rule.predicate(candidate):
            continue
        key = rule.key_of(candidate)
        active_keys.add(key)
        if not opens_today:
            # 非节奏日：条件成立的任务保持原状，不新建也不刷新
            continue

        draft = TaskDraft(
            natural_key=key,
            type=rule.type,
            scope=rule.scope,
            refs=candidate.refs,
            content=rule.render(candidate),
        )
        _, action = await task_store.upsert_pending(draft, now)
        if action == TaskAction.REFRESHED:
            outcome.refreshed += 1
        else:
            # reopened 是一次新的触发，计入 created
            outcome.created += 1

    stale_keys = await task_store.list_pending_keys(rule.type) - active_keys
    for key in sorted(stale_keys):
        if await task_store.complete_by_key(key, now):
            outcome.completed += 1
