import pytest
from unittest.mock import AsyncMock, MagicMock

from core.registry import FAUCET_TARGETS
from faucets.base import (
    AlreadyClaimed,
    Claimed,
    FaucetRequestError,
    Rejected,
    Unclassified,
)
from faucets.collector import FaucetCollector

ADDRESS = "0x1111111111111111111111111111111111111111"


def make_client(results):
    """Client whose claim() answers per token symbol (exceptions are raised)."""
    client = MagicMock()

    async def claim(target, address):
        outcome = results.get(target.token_symbol, Unclassified())
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    client.claim = AsyncMock(side_effect=claim)
    return client


@pytest.mark.asyncio
async def test_visits_every_target_in_order(mock_sleep):
    client = make_client({})
    collector = FaucetCollector(client, FAUCET_TARGETS)

    summary = await collector.claim_all(ADDRESS)

    visited = [call.args[0].name for call in client.claim.await_args_list]
    assert visited == [t.name for t in FAUCET_TARGETS]
    assert all(call.args[1] == ADDRESS for call in client.claim.await_args_list)
    assert summary.total == 6
    assert summary.processed_count == 6
    assert summary.significant_claim is False
    assert [c.args[0] for c in mock_sleep.await_args_list] == [2.0] * 6


@pytest.mark.asyncio
async def test_errors_do_not_stop_the_pass():
    client = make_client({
        "ATH": FaucetRequestError("No response from server."),
        "USDe": RuntimeError("unexpected"),
        "USD1": Rejected("Invalid address"),
    })
    collector = FaucetCollector(client, FAUCET_TARGETS)

    summary = await collector.claim_all(ADDRESS)

    assert client.claim.await_count == 6
    assert summary.processed_count == 3
    errors = {e.target.token_symbol: e.error for e in summary.entries if e.error}
    assert errors["ATH"] == "No response from server."
    assert errors["USDe"] == "RuntimeError: unexpected"


@pytest.mark.asyncio
async def test_fresh_usd1_claim_is_significant():
    client = make_client({"USD1": Claimed("0xabc")})
    summary = await FaucetCollector(client, FAUCET_TARGETS).claim_all(ADDRESS)
    assert summary.significant_claim is True


@pytest.mark.asyncio
async def test_fresh_ai16z_claim_is_significant():
    client = make_client({"AI16Z": Claimed("0xabc"), "USD1": AlreadyClaimed(3600)})
    summary = await FaucetCollector(client, FAUCET_TARGETS).claim_all(ADDRESS)
    assert summary.significant_claim is True


@pytest.mark.asyncio
async def test_already_claimed_is_not_significant():
    client = make_client({"USD1": AlreadyClaimed(3661), "AI16Z": AlreadyClaimed(10)})
    summary = await FaucetCollector(client, FAUCET_TARGETS).claim_all(ADDRESS)
    assert summary.significant_claim is False
    assert summary.processed_count == 6


@pytest.mark.asyncio
async def test_custom_pacing(mock_sleep):
    client = make_client({})
    collector = FaucetCollector(client, FAUCET_TARGETS[:2], pacing_seconds=0.5)

    await collector.claim_all(ADDRESS)

    assert mock_sleep.await_count == 2
    mock_sleep.assert_awaited_with(0.5)
