"""Single-transaction execution with gas bounding and bounded retry.

:class:`TransactionExecutor` submits one contract call for the account:

* Fresh nonce and gas price for every attempt (never cached).
* Gas estimation with a fixed fallback and a 1.2x safety margin.
* Exactly one confirmation; a mined-but-reverted receipt is a failure.
* Retry driven by an explicit :class:`RetryPolicy` with randomized
  backoff between attempts.

Classes:
    RetryPolicy: Attempt budget and backoff range.
    TransactionAttempt: Parameters of one in-flight attempt.
    TxOutcome: Terminal result of :meth:`TransactionExecutor.execute`.
    TransactionFailed: Raised internally for non-success receipts.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.chain import ChainContext
from core.utils import truncate

logger = logging.getLogger(__name__)

DEFAULT_GAS_UNITS = 500_000
# Safety margin applied to the gas estimate, as a ratio of integers
GAS_MULTIPLIER_NUMERATOR = 12
GAS_MULTIPLIER_DENOMINATOR = 10
BACKOFF_MIN_SECONDS = 7.0
BACKOFF_MAX_SECONDS = 10.0


def gas_limit_for(gas_units: int) -> int:
    """Return ``ceil(gas_units * 1.2)`` without float rounding."""
    return -(-gas_units * GAS_MULTIPLIER_NUMERATOR // GAS_MULTIPLIER_DENOMINATOR)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget for one transaction.

    Attributes:
        max_attempts: Total attempts including the first (>= 1).
        backoff_min: Lower bound of the randomized wait between attempts.
        backoff_max: Upper bound of the randomized wait between attempts.
    """

    max_attempts: int = 1
    backoff_min: float = BACKOFF_MIN_SECONDS
    backoff_max: float = BACKOFF_MAX_SECONDS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_min > self.backoff_max:
            raise ValueError("backoff_min must not exceed backoff_max")

    @classmethod
    def with_retries(cls, retries: int, backoff_min: float = BACKOFF_MIN_SECONDS,
                     backoff_max: float = BACKOFF_MAX_SECONDS) -> "RetryPolicy":
        """Policy allowing *retries* additional attempts after the first."""
        return cls(max_attempts=retries + 1, backoff_min=backoff_min, backoff_max=backoff_max)

    def backoff(self) -> float:
        return random.uniform(self.backoff_min, self.backoff_max)


SINGLE_ATTEMPT = RetryPolicy(max_attempts=1)
MINT_RETRY_POLICY = RetryPolicy.with_retries(2)


@dataclass
class TransactionAttempt:
    """Parameters of one submission attempt. Not persisted."""

    nonce: int
    gas_units: int
    gas_limit: int
    gas_price: int
    attempts_remaining: int
    estimated: bool = True


@dataclass
class TxOutcome:
    """Terminal result of an execution."""

    success: bool
    attempts: int
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    gas_limit: Optional[int] = None


class TransactionFailed(Exception):
    """A transaction was mined but its receipt status is not success."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


def summarize_error(error: BaseException, limit: int = 100) -> str:
    """Short human-readable reason for a failed RPC/transaction call.

    Prefers a ``reason`` or ``message`` attribute (as set by web3 revert
    errors) over ``str(error)``.
    """
    for attr in ("reason", "message"):
        value = getattr(error, attr, None)
        if isinstance(value, str) and value:
            return truncate(value, limit)
    text = str(error) or error.__class__.__name__
    return truncate(text, limit)


class TransactionExecutor:
    """Submits contract calls for the context's account."""

    def __init__(self, context: ChainContext, default_gas_units: int = DEFAULT_GAS_UNITS):
        self.context = context
        self.default_gas_units = default_gas_units

    async def _prepare(self, tx: Dict[str, Any], attempts_remaining: int,
                       label: str) -> TransactionAttempt:
        client = self.context.client
        nonce = await client.get_next_nonce(self.context.address)
        tx["nonce"] = nonce
        logger.debug(f"📝 Preparing {label} tx (Nonce: {nonce})")

        estimated = True
        try:
            gas_units = await client.estimate_gas(dict(tx))
            logger.debug(f"⛽ Gas estimate for {label}: {gas_units}")
        except Exception as e:
            estimated = False
            gas_units = self.default_gas_units
            logger.warning(
                f"⚠️ Gas estimate failed for {label}, using default ({gas_units}). "
                f"{summarize_error(e, 40)}"
            )

        gas_price = await client.get_gas_price()
        return TransactionAttempt(
            nonce=nonce,
            gas_units=gas_units,
            gas_limit=gas_limit_for(gas_units),
            gas_price=gas_price,
            attempts_remaining=attempts_remaining,
            estimated=estimated,
        )

    async def execute(
        self,
        contract_address: str,
        call_payload: str,
        policy: RetryPolicy = SINGLE_ATTEMPT,
        label: str = "transaction",
    ) -> TxOutcome:
        """Submit *call_payload* to *contract_address* and wait for it.

        Args:
            contract_address: Target contract.
            call_payload: ABI-encoded calldata (hex string).
            policy: :class:`RetryPolicy` bounding the attempts.
            label: Operation name used in log lines.

        Returns:
            :class:`TxOutcome`; ``success`` only for a confirmed
            transaction with success status.
        """
        client = self.context.client
        attempts_remaining = policy.max_attempts
        attempts = 0
        last_hash: Optional[str]

        while True:
            attempts += 1
            attempt: Optional[TransactionAttempt] = None
            last_hash = None
            try:
                tx: Dict[str, Any] = {
                    "from": self.context.address,
                    "to": contract_address,
                    "data": call_payload,
                    "value": 0,
                    "chainId": self.context.chain_id,
                }
                attempt = await self._prepare(tx, attempts_remaining, label)
                tx["gas"] = attempt.gas_limit
                tx["gasPrice"] = attempt.gas_price

                logger.debug(
                    f"🚀 Sending {label} tx (gas limit {attempt.gas_limit}, "
                    f"{'estimated' if attempt.estimated else 'default'} units {attempt.gas_units}, "
                    f"{attempt.attempts_remaining} attempt(s) left)"
                )
                last_hash = await client.submit_transaction(tx)
                logger.info(f"⏳ Waiting for {label} confirmation (Tx: {last_hash})...")
                receipt = await client.wait_for_confirmation(last_hash, confirmations=1)
                if not receipt.succeeded:
                    raise TransactionFailed(
                        f"{label} tx failed (status {receipt.status})", tx_hash=last_hash
                    )
                return TxOutcome(
                    success=True,
                    attempts=attempts,
                    tx_hash=last_hash,
                    gas_limit=attempt.gas_limit,
                )
            except Exception as e:
                attempts_remaining -= 1
                reason = summarize_error(e)
                if attempts_remaining > 0:
                    delay = policy.backoff()
                    logger.warning(
                        f"⚠️ Failed {label} ({truncate(reason, 40)}). "
                        f"Retry ({attempts_remaining} left) in {delay:.1f}s..."
                    )
                    await asyncio.sleep(delay)
                    continue

                logger.error(f"❌ {label} failed: {reason}")
                if last_hash:
                    logger.error(f"Tx: {self.context.tx_link(last_hash)}")
                return TxOutcome(
                    success=False,
                    attempts=attempts,
                    tx_hash=last_hash,
                    error=reason,
                    gas_limit=attempt.gas_limit if attempt else None,
                )
