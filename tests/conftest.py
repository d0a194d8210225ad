"""Shared fixtures: an in-memory chain client and a patched asyncio.sleep."""

from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, patch

import pytest

from core.chain import ChainContext, TxReceipt
from core.registry import TOKEN_REGISTRY

ACCOUNT = "0x1111111111111111111111111111111111111111"
APPROVE_PREFIX = "0x095ea7b3"
STAKE_PREFIX = "0xa694fc3a"


class FakeChainClient:
    """In-memory ChainClient that records every submitted transaction.

    Attributes:
        balances: token address -> raw balance of the account.
        effects: contract address -> callback(client, tx) applied when a
            transaction to that contract is confirmed successfully.
        receipt_statuses: queue of receipt statuses (default 1).
        submit_errors: queue of exceptions raised by submit (None = ok).
    """

    def __init__(self, address: str = ACCOUNT):
        self.address = address
        self.balances: Dict[str, int] = {}
        self.decimals: Dict[str, int] = {}
        self.nonce = 7
        self.gas_price = 1_000_000_000
        self.gas_estimate = 100_000
        self.estimate_error: Optional[Exception] = None
        self.balance_error: Optional[Exception] = None
        self.receipt_statuses: List[int] = []
        self.submit_errors: List[Optional[Exception]] = []
        self.effects: Dict[str, Callable[["FakeChainClient", Dict[str, Any]], None]] = {}
        self.submitted: List[Dict[str, Any]] = []
        self.estimated: List[Dict[str, Any]] = []
        self.nonce_calls = 0
        self.gas_price_calls = 0
        self._pending: Dict[str, Dict[str, Any]] = {}
        self.closed = False

    def set_balance(self, symbol: str, raw: int) -> None:
        self.balances[TOKEN_REGISTRY[symbol].address] = raw

    def balance(self, symbol: str) -> int:
        return self.balances.get(TOKEN_REGISTRY[symbol].address, 0)

    def calls_to(self, address: str) -> List[Dict[str, Any]]:
        return [tx for tx in self.submitted if tx["to"].lower() == address.lower()]

    def approvals(self) -> List[Dict[str, Any]]:
        return [tx for tx in self.submitted if tx["data"].startswith(APPROVE_PREFIX)]

    def stakes(self) -> List[Dict[str, Any]]:
        return [tx for tx in self.submitted if tx["data"].startswith(STAKE_PREFIX)]

    async def get_balance(self, token_address: str, account: str) -> int:
        if self.balance_error:
            raise self.balance_error
        return self.balances.get(token_address, 0)

    async def get_decimals(self, token_address: str) -> int:
        if token_address in self.decimals:
            return self.decimals[token_address]
        for token in TOKEN_REGISTRY.values():
            if token.address == token_address:
                return token.decimals
        return 18

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        self.estimated.append(tx)
        if self.estimate_error:
            raise self.estimate_error
        return self.gas_estimate

    async def get_gas_price(self) -> int:
        self.gas_price_calls += 1
        return self.gas_price

    async def get_next_nonce(self, account: str) -> int:
        self.nonce_calls += 1
        return self.nonce

    async def submit_transaction(self, tx: Dict[str, Any]) -> str:
        if self.submit_errors:
            error = self.submit_errors.pop(0)
            if error is not None:
                raise error
        self.submitted.append(dict(tx))
        self.nonce += 1
        tx_hash = "0x" + f"{len(self.submitted):064x}"
        self._pending[tx_hash] = dict(tx)
        return tx_hash

    async def wait_for_confirmation(self, tx_hash: str, confirmations: int = 1) -> TxReceipt:
        status = self.receipt_statuses.pop(0) if self.receipt_statuses else 1
        tx = self._pending.pop(tx_hash)
        if status == 1 and tx["to"] in self.effects:
            self.effects[tx["to"]](self, tx)
        return TxReceipt(status=status, tx_hash=tx_hash, block_number=1, gas_used=21000)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def mock_sleep():
    """Never really sleep in tests; assert on the requested delays instead."""
    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.fixture
def chain_client():
    return FakeChainClient()


@pytest.fixture
def context(chain_client):
    return ChainContext(
        address=ACCOUNT,
        client=chain_client,
        chain_id=421614,
        explorer_tx_url="https://sepolia.arbiscan.io/tx/",
    )
