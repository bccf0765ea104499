"""Tests for the admin API."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import make_candles
from fakes import STRATEGY, FakeExecutor, FakeMarketData, FakeRepository, make_state
from range_keeper.api import create_app
from range_keeper.engine import RebalanceEngine
from range_keeper.errors import ExecutionFailure
from range_keeper.models import ZERO_ADDRESS, HurstExponent, Pool, Volatility

NOW = datetime(2024, 3, 1, 12, tzinfo=timezone.utc)

ETH = Pool(address="0xEthPool", name="ETH/USDC 0.05%", strategy_address=STRATEGY)
BTC = Pool(address="0xbtcpool", name="WBTC/USDC 0.3%", strategy_address=STRATEGY)


class ExitFailingExecutor(FakeExecutor):
    async def emergency_exit(self, strategy_address):
        raise ExecutionFailure("emergencyExit failed after 3 attempts: reverted", attempts=3)


def _client(repo, executor=None, history=None):
    engine = RebalanceEngine(
        market_data=FakeMarketData(history=history or make_candles([2000.0 + (i % 3) for i in range(48)])),
        repository=repo,
        executor=executor or FakeExecutor(),
        clock=lambda: NOW,
    )
    return TestClient(create_app(engine, [ETH, BTC]))


@pytest.fixture
def repo():
    state = make_state(ETH.address, 1900.0, 2100.0)
    state.update_metrics(Volatility(value=0.55), HurstExponent(value=0.62))
    return FakeRepository([state])


class TestHealth:
    def test_health(self, repo):
        assert _client(repo).get("/api/health").json() == {"status": "ok", "pools": 2}


class TestAnalyze:
    def test_analyze_all(self, repo):
        resp = _client(repo).post("/api/analyze")
        assert resp.status_code == 200
        body = resp.json()
        assert [r["pool_id"] for r in body] == [ETH.address, BTC.address]
        assert body[0]["status"] == "HELD"
        # BTC had no state yet and is seeded on its first cycle.
        assert body[1]["initialized"] is True

    def test_analyze_configured_pool(self, repo):
        resp = _client(repo).post(f"/api/analyze/{ETH.address.lower()}")
        assert resp.status_code == 200
        assert resp.json()["pool_id"] == ETH.address

    def test_analyze_ad_hoc_pool_without_strategy_never_executes(self, repo):
        repo.states["0xadhoc"] = make_state("0xadhoc", 90.0, 110.0, strategy=ZERO_ADDRESS)
        executor = FakeExecutor()
        history = make_candles([100.0 + i * 0.5 for i in range(20)])
        resp = _client(repo, executor=executor, history=history).post("/api/analyze/0xadhoc")
        assert resp.status_code == 200
        body = resp.json()
        assert body["pool_id"] == "0xadhoc"
        assert body["status"] == "REBALANCED"
        assert body["transaction_id"] is None
        assert executor.rebalance_calls == []

    def test_ad_hoc_address_case_maps_to_one_state(self, repo):
        client = _client(repo)
        first = client.post("/api/analyze/0xADHOC").json()
        second = client.post("/api/analyze/0xadhoc").json()

        assert first["initialized"] is True
        assert second["initialized"] is False
        assert [k for k in repo.states if k.lower() == "0xadhoc"] == ["0xadhoc"]


class TestStatus:
    def test_status(self, repo):
        resp = _client(repo).get(f"/api/status/{ETH.address}")
        assert resp.status_code == 200
        body = resp.json()
        assert body["pool_id"] == ETH.address
        assert body["range"]["lower"] == 1900.0
        assert body["range"]["upper"] == 2100.0
        assert body["last_rebalance"]["price"] == 2000.0
        assert body["metrics"]["volatility"] == "55.00%"
        assert body["metrics"]["hurst"] == 0.62
        assert body["metrics"]["regime"] == "TRENDING"
        assert body["is_active"] is True

    def test_status_unknown_pool(self, repo):
        resp = _client(repo).get("/api/status/0xnothing")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "No state found for this pool"


class TestEmergencyExit:
    def test_exit(self, repo):
        executor = FakeExecutor()
        resp = _client(repo, executor=executor).post(f"/api/emergency-exit/{ETH.address}")
        assert resp.status_code == 200
        assert resp.json()["transaction_id"] == "0xexit"
        assert executor.exit_calls == [STRATEGY]
        assert not repo.states[ETH.address].is_active

    def test_exit_unconfigured_pool_uses_persisted_strategy(self, repo):
        repo.states["0xlegacy"] = make_state("0xlegacy", 90.0, 110.0)
        executor = FakeExecutor()
        engine = RebalanceEngine(market_data=FakeMarketData(), repository=repo, executor=executor)
        resp = TestClient(create_app(engine, [])).post("/api/emergency-exit/0xLegacy")

        assert resp.status_code == 200
        assert resp.json() == {"pool_id": "0xlegacy", "transaction_id": "0xexit"}
        assert executor.exit_calls == [STRATEGY]
        assert not repo.states["0xlegacy"].is_active

    def test_exit_unknown_pool(self, repo):
        resp = _client(repo).post(f"/api/emergency-exit/{BTC.address}")
        assert resp.status_code == 404

    def test_exit_execution_failure(self, repo):
        resp = _client(repo, executor=ExitFailingExecutor()).post(
            f"/api/emergency-exit/{ETH.address}"
        )
        assert resp.status_code == 502
        assert repo.states[ETH.address].is_active


class TestLifespan:
    def test_background_task_spans_app_lifetime(self, repo):
        started = []
        cancelled = []

        async def background():
            started.append(True)
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        engine = RebalanceEngine(
            market_data=FakeMarketData(), repository=repo, executor=FakeExecutor(),
        )
        with TestClient(create_app(engine, [ETH], background=background)) as client:
            assert client.get("/api/health").status_code == 200
            assert started == [True]
        assert cancelled == [True]
