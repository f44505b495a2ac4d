"""依赖注入模块 -- 通过 FastAPI Depends 注入共享组件

StoreGroup / ScanOrchestrator 在 lifespan 中初始化，挂在 app.state 上。
"""

from fastapi import Request

from taskcenter.core.config import EngineConfig
from taskcenter.core.orchestrator import ScanOrchestrator
from taskcenter.core.store import StoreGroup


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_orchestrator(request: Request) -> ScanOrchestrator:
    """从 app.state 获取 ScanOrchestrator 实例"""
    return request.app.state.orchestrator


def get_engine_config(request: Request) -> EngineConfig:
    return request.app.state.engine_config
