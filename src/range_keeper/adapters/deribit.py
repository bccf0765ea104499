"""Deribit DVOL client — implied volatility for BTC / ETH."""

from __future__ import annotations

import time

import httpx
import structlog

from range_keeper.errors import ExternalQuoteUnavailable

log = structlog.get_logger("deribit")


class DeribitImpliedVolatility:
    """ImpliedVolatilityProvider reading Deribit's DVOL index.

    DVOL is quoted in volatility points (65.3 == 65.3%), so the latest
    hourly close is divided by 100.
    """

    SUPPORTED = frozenset({"BTC", "ETH"})

    def __init__(
        self,
        base_url: str = "https://www.deribit.com/api/v2",
        timeout_s: float = 10.0,
        window_hours: int = 6,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.window_hours = window_hours
        self._http: httpx.AsyncClient | None = None

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self.timeout_s)
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    async def get_implied_volatility(self, asset_symbol: str) -> float:
        currency = asset_symbol.upper()
        if currency not in self.SUPPORTED:
            raise ExternalQuoteUnavailable(f"no DVOL index for {currency}")

        end_ms = int(time.time() * 1000)
        start_ms = end_ms - self.window_hours * 3600 * 1000
        http = await self._get_http()
        try:
            resp = await http.get(
                f"{self.base_url}/public/get_volatility_index_data",
                params={
                    "currency": currency,
                    "start_timestamp": start_ms,
                    "end_timestamp": end_ms,
                    "resolution": "3600",
                },
            )
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalQuoteUnavailable(f"DVOL request failed for {currency}: {exc}") from exc

        return self.parse_latest(body, currency)

    @staticmethod
    def parse_latest(body: dict, currency: str = "") -> float:
        """Latest DVOL close from a get_volatility_index_data response, as a fraction.

        Rows are ``[timestamp_ms, open, high, low, close]``.
        """
        rows = (body.get("result") or {}).get("data") or []
        if not rows:
            raise ExternalQuoteUnavailable(f"empty DVOL series for {currency}")
        latest = max(rows, key=lambda r: r[0])
        value = float(latest[4]) / 100
        if value <= 0:
            raise ExternalQuoteUnavailable(f"non-positive DVOL for {currency}: {latest[4]}")
        log.debug("dvol_quote", currency=currency, iv=value)
        return value
