"""Per-cycle outcome tracking and console presentation.

Every mint, stake and faucet result is recorded in a :class:`CycleReport`
that is rendered as a Rich table once the cycle finishes.  The 24-hour
wait between cycles is shown by :class:`CountdownDisplay`.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from core.utils import format_countdown, short_address

if TYPE_CHECKING:
    from faucets.collector import FaucetSummary

logger = logging.getLogger(__name__)


class StepStatus(Enum):
    """Terminal state of a workflow step."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


STATUS_STYLES = {
    StepStatus.SUCCESS: "[green]✅ success[/green]",
    StepStatus.FAILED: "[red]❌ failed[/red]",
    StepStatus.SKIPPED: "[yellow]🟡 skipped[/yellow]",
}


@dataclass
class StepOutcome:
    """Outcome of one mint or stake step.

    Attributes:
        name: Step label (e.g. ``"Mint AUSD"``).
        kind: ``"mint"`` or ``"stake"``.
        status: :class:`StepStatus`.
        detail: Human-readable reason or result.
        tx_hash: Hash of the action transaction, if one was sent.
    """

    name: str
    kind: str
    status: StepStatus
    detail: str = ""
    tx_hash: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is StepStatus.SUCCESS


@dataclass
class CycleReport:
    """Everything that happened during one workflow cycle."""

    address: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    faucets: Optional["FaucetSummary"] = None
    steps: List[StepOutcome] = field(default_factory=list)

    def record(self, outcome: StepOutcome) -> None:
        self.steps.append(outcome)

    def finish(self) -> None:
        self.finished_at = datetime.now(timezone.utc)

    def count(self, status: StepStatus) -> int:
        return sum(1 for step in self.steps if step.status is status)

    @property
    def duration_seconds(self) -> float:
        end = self.finished_at or datetime.now(timezone.utc)
        return (end - self.started_at).total_seconds()

    def build_table(self) -> Table:
        table = Table(
            title=f"Cycle summary for {short_address(self.address)}",
            box=box.ROUNDED,
        )
        table.add_column("Step", style="cyan")
        table.add_column("Status")
        table.add_column("Detail")
        table.add_column("Tx", style="dim")

        if self.faucets is not None:
            faucet_status = StepStatus.SUCCESS if self.faucets.processed_count else StepStatus.FAILED
            table.add_row(
                "Faucets",
                STATUS_STYLES[faucet_status],
                f"{self.faucets.processed_count}/{self.faucets.total} processed"
                + (" (significant claim)" if self.faucets.significant_claim else ""),
                "",
            )
        for step in self.steps:
            table.add_row(
                step.name,
                STATUS_STYLES[step.status],
                step.detail,
                short_address(step.tx_hash) if step.tx_hash else "",
            )
        return table

    def render(self, console: Optional[Console] = None) -> None:
        (console or Console()).print(self.build_table())
        logger.info(
            f"Cycle finished in {self.duration_seconds:.0f}s: "
            f"{self.count(StepStatus.SUCCESS)} succeeded, "
            f"{self.count(StepStatus.FAILED)} failed, "
            f"{self.count(StepStatus.SKIPPED)} skipped"
        )


class CountdownDisplay:
    """Spinner line showing the time left until the next cycle."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._status = None

    def start(self, remaining: int) -> None:
        self._status = self.console.status(self._text(remaining))
        self._status.start()

    def update(self, remaining: int) -> None:
        if self._status is None:
            self.start(remaining)
        else:
            self._status.update(self._text(remaining))

    def stop(self, finished: bool = True) -> None:
        """Clear the spinner; announce the next cycle only if the wait ran out."""
        if self._status is not None:
            self._status.stop()
            self._status = None
        if finished:
            self.console.print("[green]✅ Wait finished. Starting next cycle...[/green]")

    @staticmethod
    def _text(remaining: int) -> str:
        return f"[blue]⏳ Next cycle in {format_countdown(remaining)}[/blue]"
