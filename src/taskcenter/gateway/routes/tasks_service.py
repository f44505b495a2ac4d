"""任务服务路由 -- 扫描触发与运行日志

POST /tasks-service: {"action": "triggerScan"} | {"action": "getLogs", "limit", "offset"}
GET  /tasks-service?action=getLogs&limit=&offset=

action 为判别联合，经显式处理表分派；未知 action 返回 400。
"""

from collections.abc import Awaitable, Callable
from typing import Annotated, Literal

import structlog
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from starlette.responses import JSONResponse

from taskcenter.core.config import MAX_LOG_LIMIT
from taskcenter.core.models.enums import RunTrigger
from taskcenter.core.orchestrator import ScanOrchestrator

from ..deps import get_orchestrator
from ..responses import error_response, run_log_to_dict

log = structlog.get_logger()

router = APIRouter()


class TriggerScanAction(BaseModel):
    """手动触发一次扫描"""

    action: Literal["triggerScan"]


class GetLogsAction(BaseModel):
    """分页查询运行日志"""

    action: Literal["getLogs"]
    limit: int | None = Field(default=None, ge=1, le=MAX_LOG_LIMIT)
    offset: int = Field(default=0, ge=0)


ServiceAction = Annotated[TriggerScanAction | GetLogsAction, Field(discriminator="action")]

_action_adapter: TypeAdapter[ServiceAction] = TypeAdapter(ServiceAction)


async def _trigger_scan(action: TriggerScanAction, orchestrator: ScanOrchestrator) -> JSONResponse:
    run_log = await orchestrator.run(RunTrigger.MANUAL)
    summary = run_log_to_dict(run_log)
    if run_log.error is not None:
        # 致命失败：数据库不可达，未执行任何规则
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "summary": summary,
                "error": {"code": "SCAN_FAILED", "message": run_log.error},
            },
        )
    return JSONResponse(status_code=200, content={"success": True, "summary": summary})


async def _get_logs(action: GetLogsAction, orchestrator: ScanOrchestrator) -> JSONResponse:
    try:
        logs = await orchestrator.recent_logs(limit=action.limit, offset=action.offset)
    except Exception as e:
        log.error("get_logs_failed", error_type=type(e).__name__, error=str(e))
        return error_response(500, "DB_UNAVAILABLE", f"{type(e).__name__}: {e}")
    return JSONResponse(
        status_code=200,
        content={"success": True, "data": [run_log_to_dict(r) for r in logs]},
    )


_HANDLERS: dict[type[BaseModel], Callable[..., Awaitable[JSONResponse]]] = {
    TriggerScanAction: _trigger_scan,
    GetLogsAction: _get_logs,
}

_KNOWN_ACTIONS = ("triggerScan", "getLogs")


def _parse_action(payload: object) -> ServiceAction | JSONResponse:
    if not isinstance(payload, dict) or payload.get("action") not in _KNOWN_ACTIONS:
        name = payload.get("action") if isinstance(payload, dict) else None
        return error_response(
            400,
            "UNKNOWN_ACTION",
            f"Unknown action: {name!r}. Supported: {', '.join(_KNOWN_ACTIONS)}",
        )
    try:
        return _action_adapter.validate_python(payload)
    except ValidationError as e:
        return error_response(400, "INVALID_REQUEST", str(e.errors(include_url=False)))


async def _dispatch(payload: object, orchestrator: ScanOrchestrator) -> JSONResponse:
    parsed = _parse_action(payload)
    if isinstance(parsed, JSONResponse):
        return parsed
    log.info("tasks_service_action", action=parsed.action)
    handler = _HANDLERS[type(parsed)]
    return await handler(parsed, orchestrator)


@router.post("/tasks-service")
async def tasks_service(
    request: Request,
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
):
    """任务服务命令入口"""
    try:
        payload = await request.json()
    except ValueError:
        return error_response(400, "INVALID_REQUEST", "Request body must be valid JSON")
    return await _dispatch(payload, orchestrator)


@router.get("/tasks-service")
async def tasks_service_query(
    action: str = Query(description="仅支持 getLogs"),
    limit: int | None = Query(default=None),
    offset: int = Query(default=0),
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
):
    """只读查询入口；扫描只能通过 POST 触发"""
    if action != "getLogs":
        return error_response(
            400,
            "UNKNOWN_ACTION",
            f"Unknown action for GET: {action!r}. Supported: getLogs",
        )
    payload: dict = {"action": action, "offset": offset}
    if limit is not None:
        payload["limit"] = limit
    return await _dispatch(payload, orchestrator)
