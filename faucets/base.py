"""Faucet targets, claim results and the HTTP claim client.

This module defines the immutable :class:`FaucetTarget` description of a
faucet endpoint, the closed set of :class:`ClaimResult` outcomes a claim
can produce, and :class:`FaucetClient`, the thin ``aiohttp`` wrapper that
POSTs an address to a faucet and classifies the answer.

Result classes:
    Claimed: ``code == 200``; tokens were sent (carries the tx hash).
    AlreadyClaimed: ``code == 202``; carries the remaining cooldown.
    Rejected: any other ``code``; carries the server message.
    Unclassified: a successful HTTP response without a usable ``code``
        (always the case for ``plain`` targets).
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import aiohttp

from core.utils import format_remaining

logger = logging.getLogger(__name__)

FAUCET_HEADERS: Dict[str, str] = {
    "Content-Type": "application/json",
    "Origin": "https://app.testnet.themaitrix.ai",
    "Referer": "https://app.testnet.themaitrix.ai/",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/91.0.4472.124 Safari/537.36"
    ),
}

CODE_CLAIMED = 200
CODE_ALREADY_CLAIMED = 202


class ResponseKind(Enum):
    """Shape of a faucet's response body."""
    PLAIN = "plain"  # Body is ignored; any HTTP success counts
    CODED = "coded"  # JSON body with a numeric ``code`` field


class ClaimTag(Enum):
    """Classification tag deciding whether a fresh claim is significant."""
    GENERAL = "general"
    USD1 = "usd1"
    AI16Z = "ai16z"


SIGNIFICANT_TAGS = frozenset({ClaimTag.USD1, ClaimTag.AI16Z})


@dataclass(frozen=True)
class FaucetTarget:
    """A single faucet endpoint.

    Attributes:
        url: Endpoint receiving the ``POST``.
        name: Display name used in log lines.
        token_symbol: Symbol of the token the faucet dispenses.
        kind: :class:`ResponseKind` of the endpoint.
        timeout: Request timeout in seconds.
        tag: :class:`ClaimTag` classification.
    """

    url: str
    name: str
    token_symbol: str
    kind: ResponseKind
    timeout: float
    tag: ClaimTag = ClaimTag.GENERAL


class FaucetRequestError(Exception):
    """Raised when a faucet request fails at the network or HTTP level."""


@dataclass(frozen=True)
class ClaimResult:
    """Base class of the closed faucet outcome set."""

    @property
    def processed(self) -> bool:
        return True

    def is_significant(self, target: FaucetTarget) -> bool:
        return False

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Claimed(ClaimResult):
    tx_hash: str = ""

    def is_significant(self, target: FaucetTarget) -> bool:
        return target.tag in SIGNIFICANT_TAGS

    def describe(self) -> str:
        suffix = f" (Tx: ...{self.tx_hash[-6:]})" if self.tx_hash else ""
        return f"Claimed!{suffix}"


@dataclass(frozen=True)
class AlreadyClaimed(ClaimResult):
    remaining_seconds: int = 0

    def describe(self) -> str:
        return f"Already claimed. Retry in {format_remaining(self.remaining_seconds)}."


@dataclass(frozen=True)
class Rejected(ClaimResult):
    message: str = "Unknown status"

    @property
    def processed(self) -> bool:
        return False

    def describe(self) -> str:
        return f"Failed: {self.message}."


@dataclass(frozen=True)
class Unclassified(ClaimResult):
    http_status: int = 200
    expected_code: bool = False

    def describe(self) -> str:
        if self.expected_code:
            return f"No 'code' field but request sent (Status: {self.http_status})."
        return f"Claim request sent (Status: {self.http_status})."


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def classify_response(
    target: FaucetTarget, http_status: int, body: Any,
) -> ClaimResult:
    """Map a successful HTTP response onto a :class:`ClaimResult`.

    Args:
        target: Target the response came from.
        http_status: HTTP status code of the response.
        body: Decoded JSON body, or ``None`` if it was not JSON.

    Returns:
        The classified outcome.  ``plain`` targets are always
        :class:`Unclassified`; so are ``coded`` targets whose body lacks
        a ``code`` field.
    """
    if target.kind is ResponseKind.PLAIN:
        return Unclassified(http_status=http_status)

    if not isinstance(body, dict) or body.get("code") is None:
        return Unclassified(http_status=http_status, expected_code=True)

    code = body["code"]
    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    if code == CODE_CLAIMED:
        return Claimed(tx_hash=str(data.get("txHash") or ""))
    if code == CODE_ALREADY_CLAIMED:
        return AlreadyClaimed(remaining_seconds=_as_int(data.get("remainTime")) or 0)
    return Rejected(message=str(body.get("message") or "Unknown status"))


class FaucetClient:
    """HTTP client posting claim requests to faucet endpoints.

    One ``aiohttp`` session is reused for every request and must be
    released with :meth:`close`.
    """

    def __init__(self, headers: Optional[Dict[str, str]] = None):
        self.headers = dict(headers or FAUCET_HEADERS)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers)
        return self._session

    async def claim(self, target: FaucetTarget, address: str) -> ClaimResult:
        """Send one claim request and classify the response.

        Raises:
            FaucetRequestError: On timeouts, connection failures and
                non-2xx responses.
        """
        timeout = aiohttp.ClientTimeout(total=target.timeout)
        try:
            session = await self._get_session()
            async with session.post(
                target.url, json={"address": address}, timeout=timeout
            ) as response:
                body = await self._read_json(response)
                if response.status >= 400:
                    message = None
                    if isinstance(body, dict):
                        message = body.get("message")
                    raise FaucetRequestError(message or f"Error {response.status}")
                return classify_response(target, response.status, body)
        except asyncio.TimeoutError as e:
            raise FaucetRequestError("No response from server.") from e
        except aiohttp.ClientError as e:
            raise FaucetRequestError(str(e) or e.__class__.__name__) from e

    @staticmethod
    async def _read_json(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except ValueError:
            return None

    async def close(self) -> None:
        if self._session:
            await self._session.close()
