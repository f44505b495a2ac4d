"""ScanScheduler -- 进程内定时扫描

每隔 interval_s 秒以 trigger=cron 执行一次扫描。
单次扫描的意外异常只记录日志，循环继续；stop() 取消后台任务。
"""

import asyncio

import structlog

from taskcenter.core.models.enums import RunTrigger
from taskcenter.core.orchestrator import ScanOrchestrator

log = structlog.get_logger()


class ScanScheduler:
    """定时扫描循环"""

    def __init__(self, orchestrator: ScanOrchestrator, interval_s: float) -> None:
        self._orchestrator = orchestrator
        self._interval_s = max(1.0, float(interval_s))
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="taskcenter-scan-scheduler")
        log.info("scan_scheduler_started", interval_s=self._interval_s)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log.info("scan_scheduler_stopped")

    async def run_once(self) -> None:
        """执行一次定时扫描；异常记录后吞掉，保证循环不中断"""
        try:
            await self._orchestrator.run(RunTrigger.CRON)
        except asyncio.CancelledError:
            raise
        except Exception:
            log.exception("scheduled_scan_failed")

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval_s)
