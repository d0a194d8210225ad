"""Chain access layer.

Defines the narrow RPC interface the workflow depends on
(:class:`ChainClient`), the per-run :class:`ChainContext` handed to every
component, and :class:`Web3ChainClient`, the ``AsyncWeb3`` implementation
that signs transactions locally with an ``eth_account`` key.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from eth_abi import encode
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

logger = logging.getLogger(__name__)

ERC20_ABI = [
    {
        "name": "approve", "type": "function", "stateMutability": "nonpayable",
        "inputs": [{"name": "spender", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "balanceOf", "type": "function", "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "decimals", "type": "function", "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]

APPROVE_SELECTOR = function_signature_to_4byte_selector("approve(address,uint256)")
STAKE_SELECTOR = function_signature_to_4byte_selector("stake(uint256)")


def encode_approve(spender: str, amount: int) -> str:
    """Calldata for ``approve(spender, amount)``."""
    args = encode(["address", "uint256"], [to_checksum_address(spender), amount])
    return "0x" + (APPROVE_SELECTOR + args).hex()


def encode_stake(amount: int) -> str:
    """Calldata for ``stake(amount)``."""
    return "0x" + (STAKE_SELECTOR + encode(["uint256"], [amount])).hex()


@dataclass(frozen=True)
class TxReceipt:
    """The fields of a mined transaction receipt the workflow cares about."""

    status: int
    tx_hash: str
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class ChainClient(Protocol):
    """Narrow RPC interface consumed by the core."""

    async def get_balance(self, token_address: str, account: str) -> int: ...

    async def get_decimals(self, token_address: str) -> int: ...

    async def estimate_gas(self, tx: Dict[str, Any]) -> int: ...

    async def get_gas_price(self) -> int: ...

    async def get_next_nonce(self, account: str) -> int: ...

    async def submit_transaction(self, tx: Dict[str, Any]) -> str: ...

    async def wait_for_confirmation(self, tx_hash: str, confirmations: int = 1) -> TxReceipt: ...

    async def close(self) -> None: ...


@dataclass(frozen=True)
class ChainContext:
    """Everything a component needs to act for the account.

    Attributes:
        address: Checksummed account address.
        client: :class:`ChainClient` bound to the account's signer.
        chain_id: Identifier of the target network.
        explorer_tx_url: Prefix used to build transaction links.
    """

    address: str
    client: ChainClient
    chain_id: int
    explorer_tx_url: str = ""

    def tx_link(self, tx_hash: str) -> str:
        return f"{self.explorer_tx_url}{tx_hash}" if self.explorer_tx_url else tx_hash


class Web3ChainClient:
    """
    ``AsyncWeb3`` implementation of :class:`ChainClient`.
    Holds the account key and signs every submitted transaction locally.
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        receipt_timeout: float = 120.0,
        w3: Optional[AsyncWeb3] = None,
    ):
        """
        Initialize the client.

        Args:
            rpc_url: HTTP JSON-RPC endpoint.
            private_key: Hex-encoded account secret.
            receipt_timeout: Seconds to wait for a receipt before the RPC
                layer gives up.
            w3: Pre-built ``AsyncWeb3`` instance (tests).
        """
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self.account: LocalAccount = Account.from_key(private_key)
        self.receipt_timeout = receipt_timeout

    @property
    def address(self) -> str:
        return self.account.address

    def _token(self, token_address: str):
        return self.w3.eth.contract(address=to_checksum_address(token_address), abi=ERC20_ABI)

    @staticmethod
    def _normalize(tx: Dict[str, Any]) -> Dict[str, Any]:
        normalized = dict(tx)
        for key in ("to", "from"):
            if normalized.get(key):
                normalized[key] = to_checksum_address(normalized[key])
        return normalized

    async def get_balance(self, token_address: str, account: str) -> int:
        return await self._token(token_address).functions.balanceOf(
            to_checksum_address(account)
        ).call()

    async def get_decimals(self, token_address: str) -> int:
        return int(await self._token(token_address).functions.decimals().call())

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return int(await self.w3.eth.estimate_gas(self._normalize(tx)))

    async def get_gas_price(self) -> int:
        return int(await self.w3.eth.gas_price)

    async def get_next_nonce(self, account: str) -> int:
        return await self.w3.eth.get_transaction_count(to_checksum_address(account), "pending")

    async def submit_transaction(self, tx: Dict[str, Any]) -> str:
        signed = self.account.sign_transaction(self._normalize(tx))
        tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    async def wait_for_confirmation(self, tx_hash: str, confirmations: int = 1) -> TxReceipt:
        # A mined receipt is the first confirmation; deeper waits are not needed here
        receipt = await self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )
        return TxReceipt(
            status=int(receipt["status"]),
            tx_hash=tx_hash,
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
        )

    async def close(self) -> None:
        provider = self.w3.provider
        if hasattr(provider, "disconnect"):
            await provider.disconnect()
