"""Mint and stake operations.

:class:`OperationRunner` composes the balance gate, the approval manager
and the transaction executor into the two named operations of the
workflow:

* ``mint(output, input, contract, payload)`` -- approve an input amount
  chosen by :func:`mint_amount_rule`, then send the opaque mint call with
  up to two retries.
* ``stake(token, contract)`` -- approve and stake the full live balance
  in a single attempt.

Both return ``True`` only for a confirmed, successful transaction and
record a :class:`~core.monitoring.StepOutcome` in the runner's journal.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from core.chain import ChainContext, encode_stake
from core.executor import (
    MINT_RETRY_POLICY,
    SINGLE_ATTEMPT,
    RetryPolicy,
    TransactionExecutor,
)
from core.ledger import ApprovalManager, TokenLedgerGate
from core.monitoring import StepOutcome, StepStatus
from core.registry import TokenDescriptor
from core.utils import format_units, parse_units

logger = logging.getLogger(__name__)


class AmountMode(Enum):
    """How the approve amount for a mint is chosen."""
    MINIMUM_BALANCE = "minimum_balance"  # Full balance, but only above a floor
    FIXED = "fixed"  # A fixed number of whole tokens
    FULL_BALANCE = "full_balance"  # Whatever the account holds


@dataclass(frozen=True)
class AmountRule:
    mode: AmountMode
    whole_tokens: int = 0


MINT_AMOUNT_RULES = {
    "AI16Z": AmountRule(AmountMode.MINIMUM_BALANCE, 5),
    "ATH": AmountRule(AmountMode.FIXED, 50),
    "VIRTUAL": AmountRule(AmountMode.FIXED, 2),
}
FULL_BALANCE_RULE = AmountRule(AmountMode.FULL_BALANCE)


def mint_amount_rule(input_symbol: str) -> AmountRule:
    return MINT_AMOUNT_RULES.get(input_symbol.upper(), FULL_BALANCE_RULE)


class OperationRunner:
    """Runs mint and stake operations for the context's account."""

    def __init__(
        self,
        context: ChainContext,
        executor: Optional[TransactionExecutor] = None,
        gate: Optional[TokenLedgerGate] = None,
        approvals: Optional[ApprovalManager] = None,
        mint_policy: RetryPolicy = MINT_RETRY_POLICY,
        stake_policy: RetryPolicy = SINGLE_ATTEMPT,
    ):
        self.context = context
        self.executor = executor or TransactionExecutor(context)
        self.gate = gate or TokenLedgerGate(context)
        self.approvals = approvals or ApprovalManager(context, self.executor)
        self.mint_policy = mint_policy
        self.stake_policy = stake_policy
        self.journal: List[StepOutcome] = []

    def drain_journal(self) -> List[StepOutcome]:
        """Return and clear the outcomes recorded since the last drain."""
        outcomes, self.journal = self.journal, []
        return outcomes

    def _finish(self, name: str, kind: str, status: StepStatus, detail: str = "",
                tx_hash: Optional[str] = None) -> bool:
        self.journal.append(StepOutcome(name, kind, status, detail, tx_hash))
        suffix = "" if status is StepStatus.SUCCESS else " (Failed/Skipped)"
        logger.info(f"--- End {name}{suffix} ---")
        return status is StepStatus.SUCCESS

    async def _mint_amount(self, input_token: TokenDescriptor, label: str):
        """Pick the approve amount for a mint.

        Returns:
            ``(amount, decimals, None)`` when the mint may proceed, or
            ``(None, decimals, reason)`` when it must be skipped.
        """
        rule = mint_amount_rule(input_token.symbol)

        if rule.mode is AmountMode.MINIMUM_BALANCE:
            balance = await self.gate.balance_of(input_token, label)
            minimum = parse_units(rule.whole_tokens, balance.decimals)
            if balance.raw < minimum:
                return None, balance.decimals, (
                    f"Balance {input_token.symbol} ({balance.formatted}) < {rule.whole_tokens}"
                )
            return balance.raw, balance.decimals, None

        if rule.mode is AmountMode.FIXED:
            decimals = await self.gate.resolve_decimals(input_token)
            amount = parse_units(rule.whole_tokens, decimals)
            # Re-read after computing the fixed amount
            balance = await self.gate.balance_of(input_token, label)
            if balance.raw < amount:
                return None, balance.decimals, (
                    f"Balance {input_token.symbol} ({balance.formatted}) < required "
                    f"({rule.whole_tokens})"
                )
            return amount, decimals, None

        balance = await self.gate.balance_of(input_token, label)
        if balance.is_zero:
            return None, balance.decimals, f"Balance {input_token.symbol} is 0"
        return balance.raw, balance.decimals, None

    async def mint(
        self,
        output_token: TokenDescriptor,
        input_token: TokenDescriptor,
        contract: str,
        payload: str,
    ) -> bool:
        """Mint *output_token* from *input_token* through *contract*.

        Returns:
            ``True`` only on a confirmed successful mint transaction.
            A skip or failure returns ``False`` and the dependent stake
            must not run.
        """
        name = f"Mint {output_token.symbol}"
        logger.info(f"--- Mint {output_token.symbol} from {input_token.symbol} ---")

        amount, decimals, skip_reason = await self._mint_amount(input_token, name)
        if amount is None:
            logger.warning(f"🟡 {skip_reason}. Skipping mint {output_token.symbol}.")
            return self._finish(name, "mint", StepStatus.SKIPPED, skip_reason)

        approval = await self.approvals.ensure_approval(
            input_token, contract, amount, label=name, decimals=decimals
        )
        if not approval.success:
            return self._finish(
                name, "mint", StepStatus.FAILED, f"Approval failed: {approval.error}"
            )

        outcome = await self.executor.execute(
            contract, payload, policy=self.mint_policy, label=name
        )
        if not outcome.success:
            return self._finish(
                name, "mint", StepStatus.FAILED,
                f"{outcome.error} after {outcome.attempts} attempt(s)", outcome.tx_hash,
            )

        logger.info(f"✅ Mint {output_token.symbol} successful (Tx: {outcome.tx_hash}).")
        await self.gate.balance_of(output_token, f"After Mint {output_token.symbol}")
        return self._finish(
            name, "mint", StepStatus.SUCCESS,
            f"Spent {format_units(amount, decimals)} {input_token.symbol}", outcome.tx_hash,
        )

    async def stake(self, token: TokenDescriptor, contract: str) -> bool:
        """Stake the full live balance of *token* into *contract*.

        Returns:
            ``True`` only on a confirmed successful staking transaction.
        """
        name = f"Stake {token.symbol}"
        logger.info(f"--- Staking {token.symbol} ---")

        balance = await self.gate.balance_of(token, name)
        if balance.is_zero:
            logger.warning(f"🟡 Balance {token.symbol} = 0, skipping staking.")
            return self._finish(name, "stake", StepStatus.SKIPPED, f"Balance {token.symbol} is 0")

        approval = await self.approvals.ensure_approval(
            token, contract, balance.raw, label=name, decimals=balance.decimals
        )
        if not approval.success:
            return self._finish(
                name, "stake", StepStatus.FAILED, f"Approval failed: {approval.error}"
            )

        logger.info(f"  -> Staking {balance}...")
        outcome = await self.executor.execute(
            contract, encode_stake(balance.raw), policy=self.stake_policy, label=name
        )
        if not outcome.success:
            return self._finish(name, "stake", StepStatus.FAILED, outcome.error or "", outcome.tx_hash)

        logger.info(f"✅ Stake {token.symbol} successful (Tx: {outcome.tx_hash}).")
        return self._finish(name, "stake", StepStatus.SUCCESS, f"Staked {balance}", outcome.tx_hash)
