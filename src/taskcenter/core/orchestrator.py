"""ScanOrchestrator -- 一次扫描运行的状态机

STARTED -> EVALUATING -> FINALIZING -> DONE
数据库不可达时 STARTED -> FINALIZING：不执行任何规则，整体状态 failed。

只有本模块决定整体状态；Scanner / Store 只返回结果。
"""

from collections.abc import Sequence
from datetime import UTC, datetime

import structlog

from .config import MAX_LOG_LIMIT, EngineConfig
from .models.enums import RunPhase, RunStatus, RunTrigger, validate_phase_transition
from .models.run_log import RuleOutcome, RunLog
from .rules import RULE_CATALOG, Rule
from .run_logger import RunLogger
from .scanner import scan_rule
from .store import StoreGroup

log = structlog.get_logger()


def decide_overall_status(outcomes: Sequence[RuleOutcome], error: str | None = None) -> RunStatus:
    """根据规则结果判定整体状态

    - 存在致命错误，或全部规则失败 -> failed
    - 部分规则失败 -> partial
    - 无失败 -> success
    """
    if error is not None:
        return RunStatus.FAILED
    failures = sum(1 for o in outcomes if o.failed)
    if failures == 0:
        return RunStatus.SUCCESS
    if failures == len(outcomes):
        return RunStatus.FAILED
    return RunStatus.PARTIAL


class ScanOrchestrator:
    """扫描编排器

    StoreGroup 由调用方（网关 lifespan / CLI）创建并传入，跨多次运行复用。
    """

    def __init__(
        self,
        stores: StoreGroup,
        config: EngineConfig | None = None,
        rules: Sequence[Rule] = RULE_CATALOG,
    ) -> None:
        self._stores = stores
        self._config = config or EngineConfig()
        self._rules = tuple(rules)

    async def run(self, trigger: RunTrigger, now: datetime | None = None) -> RunLog:
        """执行一次完整扫描并返回 RunLog

        Args:
            trigger: cron / manual
            now: 扫描时间，缺省为当前 UTC 时间；“今天”按配置时区换算
        """
        now = now or datetime.now(UTC)
        today = now.astimezone(self._config.tzinfo).date()
        run_logger = RunLogger(trigger=trigger, started_at=now)
        phase = RunPhase.STARTED

        def advance(to_phase: RunPhase) -> RunPhase:
            if not validate_phase_transition(phase, to_phase):
                raise RuntimeError(f"invalid run phase transition: {phase} -> {to_phase}")
            log.debug("run_phase_changed", from_phase=phase.value, to_phase=to_phase.value)
            return to_phase

        with structlog.contextvars.bound_contextvars(
            run_id=run_logger.run_id,
            trigger=trigger.value,
        ):
            log.info("scan_started", today=today.isoformat())

            error: str | None = None
            try:
                await self._stores.ensure_connected()
            except Exception as e:
                error = f"{type(e).__name__}: {e}"
                log.error("scan_aborted_db_unreachable", error=error)

            if error is None:
                phase = advance(RunPhase.EVALUATING)
                for rule in self._rules:
                    outcome = await scan_rule(
                        rule,
                        self._stores.source,
                        self._stores.task_store,
                        today,
                        now,
                    )
                    run_logger.record(outcome)

            phase = advance(RunPhase.FINALIZING)
            status = decide_overall_status(run_logger.outcomes, error)
            run_log = await run_logger.finalize(
                self._stores.run_log_store,
                status,
                error=error,
            )
            phase = advance(RunPhase.DONE)

            log.info(
                "scan_finished",
                overall_status=run_log.overall_status.value,
                created=run_log.created,
                refreshed=run_log.refreshed,
                completed=run_log.completed,
                duration_ms=run_log.duration_ms,
            )
        return run_log

    async def recent_logs(self, limit: int | None = None, offset: int = 0) -> list[RunLog]:
        """最近的运行记录，按开始时间倒序"""
        limit = self._config.log_limit if limit is None else limit
        limit = max(1, min(limit, MAX_LOG_LIMIT))
        offset = max(0, offset)
        await self._stores.ensure_connected()
        return await self._stores.run_log_store.list_recent(limit=limit, offset=offset)
