"""Uniswap v3 subgraph client — hourly pool candles over GraphQL."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

import httpx

from range_keeper.errors import MarketDataError
from range_keeper.models import Candle

_CANDLE_FIELDS = """
    periodStartUnix
    open
    high
    low
    close
    volumeUSD
"""

HISTORY_QUERY = """
query GetPoolHourDatas($pool: String!, $start: Int!) {
  poolHourDatas(
    where: { pool: $pool, periodStartUnix_gt: $start }
    orderBy: periodStartUnix
    orderDirection: asc
    first: 1000
  ) {%s}
}
""" % _CANDLE_FIELDS

LATEST_QUERY = """
query GetLatestCandle($pool: String!) {
  poolHourDatas(
    where: { pool: $pool }
    orderBy: periodStartUnix
    orderDirection: desc
    first: 1
  ) {%s}
}
""" % _CANDLE_FIELDS


class UniswapGraphMarketData:
    """Async MarketDataProvider backed by the Uniswap v3 subgraph."""

    def __init__(
        self,
        subgraph_url: str = "https://api.thegraph.com/subgraphs/name/uniswap/uniswap-v3",
        timeout_s: float = 15.0,
    ):
        self.subgraph_url = subgraph_url
        self.timeout_s = timeout_s
        self._http: httpx.AsyncClient | None = None

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self.timeout_s)
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    async def _query(self, query: str, variables: dict[str, Any]) -> dict:
        http = await self._get_http()
        resp = await http.post(self.subgraph_url, json={"query": query, "variables": variables})
        resp.raise_for_status()
        body = resp.json()
        if body.get("errors"):
            raise MarketDataError(f"subgraph error: {body['errors'][0].get('message', body['errors'])}")
        return body.get("data") or {}

    async def get_history(self, pool_id: str, lookback_hours: int) -> list[Candle]:
        """Hourly candles newer than now - lookback_hours, oldest first."""
        start = int(time.time()) - lookback_hours * 3600
        data = await self._query(HISTORY_QUERY, {"pool": pool_id.lower(), "start": start})
        return [self.to_candle(d) for d in data.get("poolHourDatas", [])]

    async def get_latest_candle(self, pool_id: str) -> Candle:
        data = await self._query(LATEST_QUERY, {"pool": pool_id.lower()})
        rows = data.get("poolHourDatas") or []
        if not rows:
            raise MarketDataError(f"No candle data found for pool {pool_id}")
        return self.to_candle(rows[0])

    @staticmethod
    def to_candle(data: dict) -> Candle:
        """Map a poolHourData entity onto a Candle (string decimals -> float)."""
        return Candle(
            ts=datetime.fromtimestamp(int(data["periodStartUnix"]), tz=timezone.utc),
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
            volume=float(data["volumeUSD"]),
        )
