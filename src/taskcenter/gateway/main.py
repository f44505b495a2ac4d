"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭、扫描编排器、定时扫描、路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from taskcenter.core.config import get_db_path, load_engine_config
from taskcenter.core.logging_config import setup_logfire, setup_logging
from taskcenter.core.orchestrator import ScanOrchestrator
from taskcenter.core.store import create_store_group

from .middleware.logging_mw import LoggingMiddleware
from .responses import error_response
from .routes import health, tasks, tasks_service
from .services.scan_scheduler import ScanScheduler

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 Store 与定时扫描，关闭时清理"""
    config = load_engine_config()
    app.state.engine_config = config

    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    orchestrator = ScanOrchestrator(store_group, config=config)
    app.state.orchestrator = orchestrator

    scheduler = None
    if config.scan_interval_s > 0:
        scheduler = ScanScheduler(orchestrator, interval_s=config.scan_interval_s)
        scheduler.start()
    else:
        log.info("scan_scheduler_disabled")
    app.state.scan_scheduler = scheduler

    log.info("gateway_started", db_path=db_path, timezone=config.timezone)

    yield

    if scheduler is not None:
        await scheduler.stop()
    if getattr(app.state, "store_group", None):
        await app.state.store_group.close()


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    """请求校验失败统一返回 400 错误结构"""
    return error_response(400, "INVALID_REQUEST", str(exc.errors()))


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Task Center",
        version="0.1.0",
        description="任务生成与生命周期引擎",
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    setup_logging()
    setup_logfire(app)

    app.include_router(tasks_service.router, tags=["tasks-service"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
