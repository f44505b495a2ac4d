"""gateway 测试配置 -- FastAPI app（绕过 lifespan 手动初始化）+ httpx AsyncClient"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskcenter.core.config import EngineConfig
from taskcenter.core.orchestrator import ScanOrchestrator


@pytest_asyncio.fixture
async def app(stores, monkeypatch: pytest.MonkeyPatch):
    """测试用 app，与 stores fixture 共用数据库连接"""
    monkeypatch.setenv("TASKCENTER_DB_PATH", stores.db_path)
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    from taskcenter.gateway.main import create_app

    application = create_app()

    config = EngineConfig()
    application.state.engine_config = config
    application.state.store_group = stores
    application.state.orchestrator = ScanOrchestrator(stores, config=config)
    application.state.scan_scheduler = None

    yield application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
