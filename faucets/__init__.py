"""
Faucets module for the Maitrix auto-task bot.

Testnet tokens are dispensed by plain HTTP endpoints: the bot POSTs the
account address and classifies the JSON answer.  No browser is involved.

Submodules:
    base: ``FaucetTarget``, the ``ClaimResult`` outcome set and
        ``FaucetClient`` (aiohttp).
    collector: ``FaucetCollector`` that walks every target once per cycle.
"""

from .base import (
    AlreadyClaimed,
    Claimed,
    ClaimResult,
    ClaimTag,
    FaucetClient,
    FaucetRequestError,
    FaucetTarget,
    Rejected,
    ResponseKind,
    Unclassified,
)
from .collector import FaucetCollector, FaucetSummary

__all__ = [
    "AlreadyClaimed",
    "Claimed",
    "ClaimResult",
    "ClaimTag",
    "FaucetClient",
    "FaucetCollector",
    "FaucetRequestError",
    "FaucetSummary",
    "FaucetTarget",
    "Rejected",
    "ResponseKind",
    "Unclassified",
]
