"""CLI 入口模块 -- python -m taskcenter.core <command>

支持的命令：
  scan          执行一次扫描（trigger=cron，供宿主机定时任务调用）
  logs [limit]  查看最近的运行记录
"""

import asyncio
import sys

from .config import get_db_path, load_engine_config
from .logging_config import setup_logging
from .models.enums import RunStatus, RunTrigger

USAGE = """用法: python -m taskcenter.core <command>
命令:
  scan          执行一次扫描（trigger=cron）
  logs [limit]  查看最近的运行记录"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1]
    setup_logging()

    if command == "scan":
        status = asyncio.run(run_scan())
        # 致命失败返回非零，便于宿主机告警
        sys.exit(1 if status == RunStatus.FAILED else 0)
    elif command == "logs":
        try:
            limit = int(sys.argv[2]) if len(sys.argv) > 2 else None
        except ValueError:
            print(f"limit 必须是整数: {sys.argv[2]}")
            sys.exit(1)
        asyncio.run(show_logs(limit))
    else:
        print(f"未知命令: {command}")
        print("可用命令: scan, logs")
        sys.exit(1)


async def run_scan() -> RunStatus:
    """执行一次扫描并打印汇总"""
    from .orchestrator import ScanOrchestrator
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    try:
        orchestrator = ScanOrchestrator(store_group, config=load_engine_config())
        run_log = await orchestrator.run(RunTrigger.CRON)
    finally:
        await store_group.close()

    print(
        f"扫描完成 [{run_log.overall_status.value}] "
        f"新建 {run_log.created} / 刷新 {run_log.refreshed} / 完成 {run_log.completed}，"
        f"耗时 {run_log.duration_ms}ms"
    )
    for outcome in run_log.per_rule:
        if outcome.error:
            print(f"  {outcome.rule_type.value}: {outcome.error}")
    return run_log.overall_status


async def show_logs(limit: int | None) -> None:
    """打印最近的运行记录"""
    from .orchestrator import ScanOrchestrator
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        orchestrator = ScanOrchestrator(store_group, config=load_engine_config())
        logs = await orchestrator.recent_logs(limit=limit)
    finally:
        await store_group.close()

    if not logs:
        print("暂无运行记录")
        return
    for run_log in logs:
        print(
            f"{run_log.started_at.isoformat()}  {run_log.run_id}  "
            f"{run_log.trigger.value:<6} {run_log.overall_status.value:<8} "
            f"+{run_log.created} ~{run_log.refreshed} -{run_log.completed}"
        )


if __name__ == "__main__":
    main()
