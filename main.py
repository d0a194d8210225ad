"""
Maitrix Auto Task Bot - Main Entry Point

Claims testnet faucets, mints AUSD / VUSD / AZUSD and stakes the results
for a single account, then repeats every 24 hours.

Usage:
    python main.py                  # Run forever (one cycle per day)
    python main.py --once           # Run a single cycle and exit
    python main.py --skip-faucets   # Mint/stake only

Exit codes:
    0  single cycle finished (``--once``) or stopped by the user
    1  missing configuration or unrecovered fatal error
"""
from dotenv import load_dotenv

# Load environment variables from .env file into os.environ
load_dotenv()

import argparse
import asyncio
import logging
import signal
import sys

from rich.console import Console

from core.chain import ChainContext, Web3ChainClient
from core.config import BotSettings, ConfigurationError
from core.executor import RetryPolicy, TransactionExecutor
from core.logging_setup import setup_logging
from core.monitoring import CountdownDisplay
from core.operations import OperationRunner
from core.orchestrator import CycleScheduler, WorkflowOrchestrator
from core.registry import FAUCET_TARGETS
from faucets.base import FaucetClient
from faucets.collector import FaucetCollector

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maitrix Auto Task Bot")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument("--skip-faucets", action="store_true", help="Skip the faucet claim phase")
    parser.add_argument("--log-level", type=str, help="Override LOG_LEVEL (e.g. DEBUG)")
    return parser.parse_args(argv)


def build_scheduler(settings: BotSettings, client, faucet_client, console: Console,
                    skip_faucets: bool = False) -> CycleScheduler:
    """Wire the workflow components around one account context."""
    context = ChainContext(
        address=client.address,
        client=client,
        chain_id=settings.chain_id,
        explorer_tx_url=settings.explorer_tx_url,
    )
    executor = TransactionExecutor(context, default_gas_units=settings.default_gas_units)
    runner = OperationRunner(
        context,
        executor=executor,
        mint_policy=RetryPolicy.with_retries(
            settings.mint_max_retries,
            settings.retry_backoff_min_seconds,
            settings.retry_backoff_max_seconds,
        ),
    )
    collector = None
    if not skip_faucets:
        collector = FaucetCollector(
            faucet_client, FAUCET_TARGETS, pacing_seconds=settings.faucet_pacing_seconds
        )
    orchestrator = WorkflowOrchestrator(
        context,
        runner,
        collector,
        settle_delay=settings.settle_delay_seconds,
        step_cooldown=settings.step_cooldown_seconds,
    )
    return CycleScheduler(
        orchestrator,
        interval_seconds=settings.cycle_interval_seconds,
        countdown=CountdownDisplay(console),
    )


async def main(argv=None) -> int:
    """
    Main execution loop.

    1. Parses command line arguments and loads settings.
    2. Validates RPC_URL / PRIVATE_KEY before any network activity.
    3. Sets up logging with the account secret redacted.
    4. Runs the cycle scheduler until stopped.
    """
    args = parse_args(argv)
    settings = BotSettings()
    try:
        settings.require_credentials()
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    console = Console()
    setup_logging(
        args.log_level or settings.log_level,
        settings.log_file,
        secrets=[settings.secret_value()],
        console=console,
    )

    try:
        client = Web3ChainClient(
            settings.rpc_url,
            settings.secret_value(),
            receipt_timeout=settings.receipt_timeout_seconds,
        )
    except Exception:
        # Never echo the exception: it may quote the key material
        logger.error("❌ PRIVATE_KEY is not a valid account key")
        return 1

    faucet_client = FaucetClient()
    scheduler = build_scheduler(settings, client, faucet_client, console, args.skip_faucets)

    logger.info("🤖 Maitrix Auto Task Bot Started 🤖")
    logger.info(f"Wallet: {client.address}")

    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGTERM, scheduler.stop)

    try:
        if args.once:
            await scheduler.run_once()
        else:
            await scheduler.run_forever()
    finally:
        logger.info("🧹 Cleaning up resources...")
        await faucet_client.close()
        await client.close()
    return 0


def run() -> None:
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("👋 Stopping bot (KeyboardInterrupt)...")
        exit_code = 0
    except Exception:
        logger.exception("💥 Fatal Error in Script")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
