"""RunLogger -- 按规则顺序缓存结果，运行结束时写入一条 RunLog"""

import time
from datetime import UTC, datetime

import structlog
from ulid import ULID

from .models.enums import RunStatus, RunTrigger
from .models.run_log import RuleOutcome, RunLog
from .store.protocols import RunLogStore

log = structlog.get_logger()


class RunLogger:
    """单次扫描的运行记录器

    record() 只在内存中追加；finalize() 执行唯一一次插入。
    提前中止时同样调用 finalize()，写入已累计的部分结果。
    """

    def __init__(
        self,
        trigger: RunTrigger,
        started_at: datetime | None = None,
        run_id: str | None = None,
    ) -> None:
        self.run_id = run_id or str(ULID())
        self.trigger = trigger
        self.started_at = started_at or datetime.now(UTC)
        self._t0 = time.monotonic()
        self._outcomes: list[RuleOutcome] = []

    @property
    def outcomes(self) -> list[RuleOutcome]:
        return list(self._outcomes)

    def record(self, outcome: RuleOutcome) -> None:
        self._outcomes.append(outcome)

    async def finalize(
        self,
        store: RunLogStore,
        status: RunStatus,
        error: str | None = None,
        finished_at: datetime | None = None,
    ) -> RunLog:
        """构建并持久化 RunLog

        写入失败（数据库不可达）时只记录日志，仍返回未持久化的 RunLog。
        """
        run_log = RunLog(
            run_id=self.run_id,
            trigger=self.trigger,
            started_at=self.started_at,
            finished_at=finished_at or datetime.now(UTC),
            duration_ms=int((time.monotonic() - self._t0) * 1000),
            overall_status=status,
            per_rule=self.outcomes,
            error=error,
        )
        try:
            await store.append(run_log)
        except Exception as e:
            log.error(
                "run_log_persist_failed",
                run_id=self.run_id,
                error_type=type(e).__name__,
                error=str(e),
            )
        return run_log
