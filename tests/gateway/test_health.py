"""健康检查与请求日志中间件测试

测试内容：
1. GET /health 返回 200 + ok
2. GET /ready 正常时 200，SQLite 不可用时 503
3. 响应头 X-Request-ID（生成 / 透传）
"""

from httpx import AsyncClient


class TestHealthCheck:
    async def test_health_returns_200(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_ready_returns_200(self, client: AsyncClient):
        resp = await client.get("/ready")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ready"
        assert data["checks"]["sqlite"] == "ok"
        assert data["checks"]["scan_scheduler"] == "disabled"

    async def test_ready_sqlite_failure(self, client: AsyncClient, stores):
        await stores.conn.close()

        resp = await client.get("/ready")

        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "not_ready"
        assert data["checks"]["sqlite"].startswith("error")


class TestRequestId:
    async def test_request_id_generated(self, client: AsyncClient):
        resp = await client.get("/health")
        request_id = resp.headers.get("X-Request-ID")
        assert request_id
        assert len(request_id) == 26  # ULID

    async def test_request_id_propagated(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Request-ID": "upstream-123"})
        assert resp.headers["X-Request-ID"] == "upstream-123"
