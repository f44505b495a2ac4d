"""/tasks-service 路由测试 -- triggerScan / getLogs / 错误处理"""

from dataclasses import replace

import pytest
from httpx import AsyncClient
from taskcenter.core.orchestrator import ScanOrchestrator
from taskcenter.core.rules import RULE_CATALOG


async def _broken_loader(source, today):
    raise RuntimeError("boom")


class TestTriggerScan:
    async def test_trigger_scan_returns_summary(self, client: AsyncClient, seed):
        await seed.project("p1")
        await seed.collaboration("c1", "p1", planned="2020-01-01")

        resp = await client.post("/tasks-service", json={"action": "triggerScan"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        summary = body["summary"]
        assert summary["trigger"] == "manual"
        assert summary["overallStatus"] == "success"
        assert summary["created"] == 1
        assert len(summary["perRule"]) == len(RULE_CATALOG)
        assert summary["perRule"][0] == {
            "ruleType": "PROJECT_PENDING_PUBLISH",
            "created": 1,
            "refreshed": 0,
            "completed": 0,
            "error": None,
        }
        assert summary["error"] is None

    async def test_partial_still_200(self, client: AsyncClient, app, stores):
        rules = list(RULE_CATALOG)
        rules[0] = replace(rules[0], load=_broken_loader)
        app.state.orchestrator = ScanOrchestrator(stores, rules=rules)

        resp = await client.post("/tasks-service", json={"action": "triggerScan"})

        assert resp.status_code == 200
        summary = resp.json()["summary"]
        assert summary["overallStatus"] == "partial"
        assert summary["perRule"][0]["error"] == "RuntimeError: boom"

    async def test_catastrophic_failure_500(
        self, client: AsyncClient, stores, monkeypatch: pytest.MonkeyPatch
    ):
        async def unreachable():
            raise ConnectionError("database unreachable")

        monkeypatch.setattr(stores, "ensure_connected", unreachable)

        resp = await client.post("/tasks-service", json={"action": "triggerScan"})

        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "SCAN_FAILED"
        assert body["summary"]["overallStatus"] == "failed"
        assert body["summary"]["perRule"] == []


class TestGetLogs:
    async def test_logs_newest_first(self, client: AsyncClient):
        first = (await client.post("/tasks-service", json={"action": "triggerScan"})).json()
        second = (await client.post("/tasks-service", json={"action": "triggerScan"})).json()

        resp = await client.post("/tasks-service", json={"action": "getLogs"})

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert [r["runId"] for r in data] == [
            second["summary"]["runId"],
            first["summary"]["runId"],
        ]

    async def test_logs_paging(self, client: AsyncClient):
        for _ in range(3):
            await client.post("/tasks-service", json={"action": "triggerScan"})

        resp = await client.post(
            "/tasks-service", json={"action": "getLogs", "limit": 2, "offset": 2}
        )
        assert len(resp.json()["data"]) == 1

    async def test_get_method(self, client: AsyncClient):
        await client.post("/tasks-service", json={"action": "triggerScan"})

        resp = await client.get("/tasks-service", params={"action": "getLogs", "limit": 5})

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert len(resp.json()["data"]) == 1


class TestErrors:
    async def test_unknown_action(self, client: AsyncClient):
        resp = await client.post("/tasks-service", json={"action": "dropTables"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "UNKNOWN_ACTION"

    async def test_missing_action(self, client: AsyncClient):
        resp = await client.post("/tasks-service", json={"limit": 3})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "UNKNOWN_ACTION"

    async def test_malformed_body(self, client: AsyncClient):
        resp = await client.post(
            "/tasks-service",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_REQUEST"

    async def test_invalid_limit(self, client: AsyncClient):
        resp = await client.post("/tasks-service", json={"action": "getLogs", "limit": 0})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_REQUEST"

    async def test_get_cannot_trigger_scan(self, client: AsyncClient, stores):
        resp = await client.get("/tasks-service", params={"action": "triggerScan"})
        assert resp.status_code == 400
        assert await stores.run_log_store.count() == 0

    async def test_get_without_action(self, client: AsyncClient):
        resp = await client.get("/tasks-service")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_REQUEST"


class TestLogsDatabaseUnavailable:
    async def test_get_logs_structured_500(
        self, client: AsyncClient, stores, monkeypatch: pytest.MonkeyPatch
    ):
        async def fail():
            raise ConnectionError("database unreachable")

        monkeypatch.setattr(stores, "ensure_connected", fail)

        resp = await client.post("/tasks-service", json={"action": "getLogs"})

        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "DB_UNAVAILABLE"
