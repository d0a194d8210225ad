"""Balance gating and allowance management.

:class:`TokenLedgerGate` answers "does the account hold enough of token
X" from live on-chain reads.  :class:`ApprovalManager` grants a spender
contract an exact allowance before an action that pulls tokens.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from core.chain import ChainContext, encode_approve
from core.executor import SINGLE_ATTEMPT, TransactionExecutor
from core.registry import TokenDescriptor
from core.utils import format_units, short_address, truncate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenBalance:
    """A live balance read, with the precision used to interpret it."""

    token: TokenDescriptor
    raw: int
    decimals: int

    @property
    def formatted(self) -> str:
        return format_units(self.raw, self.decimals)

    @property
    def is_zero(self) -> bool:
        return self.raw == 0

    def __str__(self) -> str:
        return f"{self.formatted} {self.token.symbol}"


class TokenLedgerGate:
    """Live balance and precision reads for the context's account."""

    def __init__(self, context: ChainContext):
        self.context = context

    async def resolve_decimals(self, token: TokenDescriptor) -> int:
        """Return the token's live precision.

        The on-chain value wins when it disagrees with the descriptor; a
        failed read falls back to the descriptor's value.
        """
        try:
            live = int(await self.context.client.get_decimals(token.address))
        except Exception as e:
            logger.debug(f"decimals() read failed for {token.symbol}: {e}")
            return token.decimals
        if live != token.decimals:
            logger.info(
                f"(Info: contract decimals {token.symbol} = {live}, using contract)"
            )
        return live

    async def balance_of(self, token: TokenDescriptor, purpose: str = "") -> TokenBalance:
        """Read the account's balance of *token*.

        A failed read is logged and reported as a zero balance so the
        dependent operation is skipped rather than attempted blind.
        """
        logger.info(f"  -> Checking {token.symbol} balance for {purpose or 'next operation'}")
        decimals = await self.resolve_decimals(token)
        try:
            raw = int(await self.context.client.get_balance(token.address, self.context.address))
        except Exception as e:
            logger.error(f"❌ Failed to check balance {token.symbol}: {truncate(str(e))}")
            return TokenBalance(token=token, raw=0, decimals=decimals)

        balance = TokenBalance(token=token, raw=raw, decimals=decimals)
        logger.info(f"     Balance {token.symbol}: {balance}")
        return balance


@dataclass
class ApprovalOutcome:
    """Result of an allowance grant.

    ``amount_display`` and ``spender_display`` are for log output only.
    """

    success: bool
    amount_display: str
    spender_display: str
    tx_hash: Optional[str] = None
    error: Optional[str] = None


class ApprovalManager:
    """Grants exact allowances with a single, un-retried transaction."""

    def __init__(self, context: ChainContext, executor: TransactionExecutor):
        self.context = context
        self.executor = executor

    async def ensure_approval(
        self,
        token: TokenDescriptor,
        spender: str,
        amount: int,
        label: str = "",
        decimals: Optional[int] = None,
    ) -> ApprovalOutcome:
        """Approve *spender* to pull exactly *amount* of *token*.

        Args:
            token: Token being approved.
            spender: Contract receiving the allowance.
            amount: Allowance in base units (never unlimited).
            label: Name of the dependent operation, for logging.
            decimals: Precision for the displayed amount (defaults to
                the descriptor's).
        """
        if decimals is None:
            decimals = token.decimals
        amount_display = f"{format_units(amount, decimals)} {token.symbol}"
        spender_display = short_address(spender)
        logger.info(f"  -> Approving {amount_display} for {label} ({spender_display})")

        outcome = await self.executor.execute(
            token.address,
            encode_approve(spender, amount),
            policy=SINGLE_ATTEMPT,
            label=f"Approve {token.symbol}",
        )
        if outcome.success:
            logger.info(f"✅ Approval for {token.symbol} succeeded (Tx: {outcome.tx_hash}).")
        else:
            logger.error(f"❌ Failed to approve {token.symbol}: {outcome.error}")

        return ApprovalOutcome(
            success=outcome.success,
            amount_display=amount_display,
            spender_display=spender_display,
            tx_hash=outcome.tx_hash,
            error=outcome.error,
        )
