"""EVM strategy executor — sends rebalance / emergencyExit from the keeper wallet."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog
from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3

from range_keeper.errors import ExecutionFailure

log = structlog.get_logger("evm_executor")

STRATEGY_ABI = [
    {
        "type": "function",
        "name": "rebalance",
        "inputs": [],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "emergencyExit",
        "inputs": [],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]

GAS_BUFFER_PCT = 120


class TransactionReverted(RuntimeError):
    """The transaction was mined with status 0."""


class EvmStrategyExecutor:
    """StrategyExecutor over JSON-RPC.

    Each call is attempted ``max_attempts`` times with a delay of
    ``base_delay_s * 2**attempt`` between attempts; the final failure is
    raised as ExecutionFailure. A sent but unconfirmed transaction is
    re-polled rather than sent again with a fresh nonce.
    """

    def __init__(
        self,
        rpc_url: str = "http://localhost:8545",
        private_key: str | None = None,
        max_attempts: int = 3,
        base_delay_s: float = 1.0,
        fallback_gas_limit: int = 3_000_000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.rpc_url = rpc_url
        self.max_attempts = max_attempts
        self.base_delay_s = base_delay_s
        self.fallback_gas_limit = fallback_gas_limit
        self._sleep = sleep
        self._w3: AsyncWeb3 | None = None
        self._account = Account.from_key(private_key) if private_key else None
        if self._account is None:
            log.warning("no_keeper_key", detail="execution will fail")

    @property
    def keeper_address(self) -> str | None:
        return self._account.address if self._account else None

    def _get_w3(self) -> AsyncWeb3:
        if self._w3 is None:
            self._w3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_url))
        return self._w3

    # ── Public API ────────────────────────────────────────────

    async def rebalance(self, strategy_address: str) -> str:
        return await self._with_retry(strategy_address, "rebalance", estimate=True)

    async def emergency_exit(self, strategy_address: str) -> str:
        return await self._with_retry(strategy_address, "emergencyExit", estimate=False)

    # ── Internals ─────────────────────────────────────────────

    async def _with_retry(self, strategy_address: str, method: str, estimate: bool) -> str:
        """Submit once, then keep polling that transaction until it is final.

        A new transaction is only built when nothing is in flight: either the
        submit itself failed or the previous one was mined and reverted.
        """
        if self._account is None:
            raise ExecutionFailure(f"{method}: keeper wallet not initialised", attempts=0)

        pending: bytes | None = None
        last_exc: Exception | None = None
        for attempt in range(self.max_attempts):
            try:
                if pending is None:
                    pending = await self._submit(strategy_address, method, estimate)
                return await self._confirm(method, pending)
            except Exception as exc:
                last_exc = exc
                if isinstance(exc, TransactionReverted):
                    pending = None
                log.warning(
                    "execution_attempt_failed",
                    context=method,
                    attempt=attempt + 1,
                    max_attempts=self.max_attempts,
                    in_flight=pending is not None,
                    error=str(exc),
                )
                if attempt < self.max_attempts - 1:
                    await self._sleep(self.base_delay_s * 2 ** attempt)

        raise ExecutionFailure(
            f"{method} failed after {self.max_attempts} attempts: {last_exc}",
            attempts=self.max_attempts,
        ) from last_exc

    async def _submit(self, strategy_address: str, method: str, estimate: bool) -> bytes:
        w3 = self._get_w3()
        account = self._account
        contract = w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(strategy_address),
            abi=STRATEGY_ABI,
        )
        fn = getattr(contract.functions, method)()
        log.info("executing", method=method, strategy=strategy_address)

        gas_limit = self.fallback_gas_limit
        if estimate:
            try:
                gas_limit = await fn.estimate_gas({"from": account.address}) * GAS_BUFFER_PCT // 100
            except Exception as exc:
                log.warning("gas_estimation_failed", fallback=self.fallback_gas_limit, error=str(exc))

        tx = await fn.build_transaction({
            "from": account.address,
            "nonce": await w3.eth.get_transaction_count(account.address),
            "gas": gas_limit,
        })
        signed = account.sign_transaction(tx)
        tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
        log.info("transaction_sent", method=method, tx=AsyncWeb3.to_hex(tx_hash))
        return tx_hash

    async def _confirm(self, method: str, tx_hash: bytes) -> str:
        receipt = await self._get_w3().eth.wait_for_transaction_receipt(tx_hash)
        tx_id = AsyncWeb3.to_hex(receipt["transactionHash"])
        if receipt["status"] != 1:
            raise TransactionReverted(f"transaction {tx_id} reverted")
        log.info("transaction_confirmed", method=method, tx=tx_id)
        return tx_id
