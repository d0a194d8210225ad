"""Workflow orchestration and cycle scheduling.

One cycle for the account is strictly sequential and never branches
back::

    ClaimFaucets -> [settle delay if significant]
        -> Mint/Stake(AUSD <- ATH) -> Mint/Stake(VUSD <- VIRTUAL)
        -> Mint/Stake(AZUSD <- AI16Z)
        -> Stake(LVLUSD) -> Stake(USDe) -> Stake(USD1) -> Done

A step's failure never aborts the cycle.  Nonce ordering is only correct
under strict serialization, so no two transactions are ever in flight
for the account at the same time.

Classes:
    WorkflowOrchestrator: Runs one cycle and returns a ``CycleReport``.
    CycleScheduler: Repeats the orchestrator every fixed period.
"""

import asyncio
import logging
from typing import Optional, Sequence, Tuple

from core.chain import ChainContext
from core.monitoring import CountdownDisplay, CycleReport
from core.operations import OperationRunner
from core.registry import (
    TRAILING_STAKES,
    WORKFLOW_BLOCKS,
    MintStakeBlock,
    get_contract,
    get_mint_payload,
    get_token,
)
from faucets.collector import FaucetCollector

logger = logging.getLogger(__name__)

SETTLE_DELAY_SECONDS = 10.0
STEP_COOLDOWN_SECONDS = 5.0
CYCLE_INTERVAL_SECONDS = 24 * 60 * 60


class WorkflowOrchestrator:
    """
    Runs the daily workflow for a single account.

    Drives the faucet collector once, then each mint/stake block in a
    fixed order, then the stake-only steps, pausing between steps.
    """

    def __init__(
        self,
        context: ChainContext,
        runner: OperationRunner,
        collector: Optional[FaucetCollector] = None,
        settle_delay: float = SETTLE_DELAY_SECONDS,
        step_cooldown: float = STEP_COOLDOWN_SECONDS,
        blocks: Sequence[MintStakeBlock] = WORKFLOW_BLOCKS,
        trailing_stakes: Sequence[Tuple[str, str]] = TRAILING_STAKES,
    ):
        """
        Initialize the orchestrator.

        Args:
            context: Account context shared by every component.
            runner: Executes mint and stake operations.
            collector: Faucet collector; ``None`` skips the faucet phase.
            settle_delay: Pause after a significant faucet claim.
            step_cooldown: Pause between consecutive steps.
            blocks: Ordered mint/stake blocks.
            trailing_stakes: ``(token, staking contract)`` pairs run last.
        """
        self.context = context
        self.runner = runner
        self.collector = collector
        self.settle_delay = settle_delay
        self.step_cooldown = step_cooldown
        self.blocks = tuple(blocks)
        self.trailing_stakes = tuple(trailing_stakes)

    async def _claim_faucets(self, report: CycleReport) -> None:
        if self.collector is None:
            logger.info("Faucet phase disabled, going straight to mint/stake.")
            return
        report.faucets = await self.collector.claim_all(self.context.address)
        if report.faucets.significant_claim:
            logger.info(f"  -> Wait {self.settle_delay:.0f} seconds before next step...")
            await asyncio.sleep(self.settle_delay)

    async def _run_block(self, block: MintStakeBlock) -> None:
        output_token = get_token(block.output_symbol)
        minted = await self.runner.mint(
            output_token,
            get_token(block.input_symbol),
            get_contract(block.mint_contract),
            get_mint_payload(block.output_symbol),
        )
        if minted:
            await asyncio.sleep(self.step_cooldown)
            await self.runner.stake(output_token, get_contract(block.stake_contract))

    async def run_cycle(self) -> CycleReport:
        """Run one full cycle; always reaches the end."""
        report = CycleReport(address=self.context.address)
        logger.info(f"=== Starting Session for Wallet: {self.context.address} ===")

        await self._claim_faucets(report)

        for block in self.blocks:
            await self._run_block(block)
            await asyncio.sleep(self.step_cooldown)

        for index, (symbol, contract_name) in enumerate(self.trailing_stakes):
            if index:
                await asyncio.sleep(self.step_cooldown)
            await self.runner.stake(get_token(symbol), get_contract(contract_name))

        for outcome in self.runner.drain_journal():
            report.record(outcome)
        report.finish()
        logger.info(f"=== Session Done for Wallet: {self.context.address} ===")
        return report


class CycleScheduler:
    """Repeats the workflow every *interval_seconds*, forever."""

    def __init__(
        self,
        orchestrator: WorkflowOrchestrator,
        interval_seconds: int = CYCLE_INTERVAL_SECONDS,
        countdown: Optional[CountdownDisplay] = None,
        render_reports: bool = True,
    ):
        self.orchestrator = orchestrator
        self.interval_seconds = int(interval_seconds)
        self.countdown = countdown or CountdownDisplay()
        self.render_reports = render_reports
        self.cycles_completed = 0
        self._stop_event = asyncio.Event()

    async def run_once(self) -> CycleReport:
        report = await self.orchestrator.run_cycle()
        self.cycles_completed += 1
        if self.render_reports:
            report.render(self.countdown.console)
        return report

    async def wait_for_next_cycle(self) -> None:
        """Count down the interval, one tick per second."""
        logger.info("=== Waiting for next cycle ===")
        finished = False
        try:
            for remaining in range(self.interval_seconds, 0, -1):
                if self._stop_event.is_set():
                    return
                self.countdown.update(remaining)
                await asyncio.sleep(1)
            finished = not self._stop_event.is_set()
        finally:
            self.countdown.stop(finished=finished)

    async def run_forever(self) -> None:
        """Alternate cycles and countdowns until :meth:`stop` is called."""
        while not self._stop_event.is_set():
            await self.run_once()
            if self._stop_event.is_set():
                break
            await self.wait_for_next_cycle()

    def stop(self) -> None:
        logger.info("Stopping scheduler...")
        self._stop_event.set()
