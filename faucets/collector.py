"""Drives the faucet client across every configured faucet target."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from core.utils import truncate
from faucets.base import ClaimResult, FaucetClient, FaucetRequestError, FaucetTarget

logger = logging.getLogger(__name__)


@dataclass
class FaucetEntry:
    """Outcome of one target within a :meth:`FaucetCollector.claim_all` call."""

    target: FaucetTarget
    result: Optional[ClaimResult] = None
    error: Optional[str] = None

    @property
    def processed(self) -> bool:
        return self.result is not None and self.result.processed


@dataclass
class FaucetSummary:
    """Aggregated result of a faucet pass."""

    total: int = 0
    processed_count: int = 0
    significant_claim: bool = False
    entries: List[FaucetEntry] = field(default_factory=list)


class FaucetCollector:
    """Claims from each faucet target once, in order.

    A failing target is logged and skipped; the loop always visits every
    target and never retries within the same pass.
    """

    def __init__(
        self,
        client: FaucetClient,
        targets: Sequence[FaucetTarget],
        pacing_seconds: float = 2.0,
    ):
        self.client = client
        self.targets = tuple(targets)
        self.pacing_seconds = pacing_seconds

    async def claim_all(self, address: str) -> FaucetSummary:
        logger.info("=== Starting Faucet Claim Process ===")
        summary = FaucetSummary(total=len(self.targets))

        for target in self.targets:
            entry = FaucetEntry(target=target)
            try:
                entry.result = await self.client.claim(target, address)
            except FaucetRequestError as e:
                entry.error = str(e)
            except Exception as e:
                entry.error = f"{e.__class__.__name__}: {e}"
            self._report(entry)

            if entry.processed:
                summary.processed_count += 1
                if entry.result.is_significant(target):
                    summary.significant_claim = True
            summary.entries.append(entry)

            await asyncio.sleep(self.pacing_seconds)

        logger.info(
            f"=== Finished Faucet Claims ({summary.processed_count}/{summary.total} processed) ==="
        )
        return summary

    @staticmethod
    def _report(entry: FaucetEntry) -> None:
        name = entry.target.name
        if entry.error is not None:
            logger.error(f"❌ [{name}] Error: {truncate(entry.error, 60)}")
        elif entry.processed:
            logger.info(f"✅ [{name}] {entry.result.describe()}")
        else:
            logger.warning(f"🟡 [{name}] {entry.result.describe()}")
