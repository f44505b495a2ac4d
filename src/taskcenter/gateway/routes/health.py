"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，SQLite 连通性与定时扫描状态。
"""

import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- SQLite 不可用时返回 503"""
    checks = {}
    all_ok = True

    store_group = getattr(request.app.state, "store_group", None)
    if store_group is not None and await store_group.ping():
        checks["sqlite"] = "ok"
    else:
        # 只探测不重连，重连由下一次扫描/查询负责
        log.warning("ready_check_sqlite_failed")
        checks["sqlite"] = "error: database unreachable"
        all_ok = False

    scheduler = getattr(request.app.state, "scan_scheduler", None)
    if scheduler is None:
        checks["scan_scheduler"] = "disabled"
    else:
        checks["scan_scheduler"] = "running" if scheduler.running else "stopped"

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
        },
    )
