"""Token, contract and faucet registry for the Maitrix testnet.

Static tables describing every token the workflow touches, the mint and
staking contracts it calls, the faucet endpoints it claims from, and the
fixed order of mint/stake blocks.  All tables are immutable.

Usage::

    from core.registry import get_token, get_contract

    ath = get_token("ath")
    minter = get_contract("mintAUSD")
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

from faucets.base import ClaimTag, FaucetTarget, ResponseKind


@dataclass(frozen=True)
class TokenDescriptor:
    """An ERC-20 token known to the bot.

    ``decimals`` is the configured precision; a live on-chain read may
    override it for a single operation without mutating the descriptor.
    """

    symbol: str
    address: str
    decimals: int


@dataclass(frozen=True)
class MintStakeBlock:
    """One mint step followed by staking of the minted token."""

    output_symbol: str
    input_symbol: str
    mint_contract: str
    stake_contract: str


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------
TOKEN_REGISTRY: Mapping[str, TokenDescriptor] = MappingProxyType({
    token.symbol: token for token in (
        TokenDescriptor("ATH", "0x1428444Eacdc0Fd115dd4318FcE65B61Cd1ef399", 18),
        TokenDescriptor("AUSD", "0x78De28aABBD5198657B26A8dc9777f441551B477", 18),
        TokenDescriptor("USDe", "0xf4BE938070f59764C85fAcE374F92A4670ff3877", 18),
        TokenDescriptor("LVLUSD", "0x8802b7bcF8EedCc9E1bA6C20E139bEe89dd98E83", 18),
        TokenDescriptor("VIRTUAL", "0xFF27D611ab162d7827bbbA59F140C1E7aE56e95C", 9),
        TokenDescriptor("VUSD", "0xc14A8E2Fc341A97a57524000bF0F7F1bA4de4802", 9),
        TokenDescriptor("USD1", "0x16a8A3624465224198d216b33E825BcC3B80abf7", 18),
        TokenDescriptor("AI16Z", "0x2d5a4f5634041f50180A25F26b2A8364452E3152", 9),
        TokenDescriptor("AZUSD", "0x5966cd11aED7D68705C9692e74e5688C892cb162", 9),
    )
})

# ---------------------------------------------------------------------------
# Contracts (operation name -> address)
# ---------------------------------------------------------------------------
CONTRACT_REGISTRY: Mapping[str, str] = MappingProxyType({
    "mintAUSD": "0x2cFDeE1d5f04dD235AEA47E1aD2fB66e3A61C13e",
    "mintVUSD": "0x3dCACa90A714498624067948C092Dd0373f08265",
    "mintAZUSD": "0xB0b53d8B4ef06F9Bbe5db624113C6A5D35bB7522",
    "stakeAUSD": "0x054de909723ECda2d119E31583D40a52a332f85c",
    "stakeUSDe": "0x3988053b7c748023a1aE19a8ED4c1Bf217932bDB",
    "stakeLVLUSD": "0x5De3fBd40D4c3892914c3b67b5B529D776A1483A",
    "stakeVUSD": "0x5bb9Fa02a3DCCDB4E9099b48e8Ba5841D2e59d51",
    "stakeUSD1": "0x7799841734Ac448b8634F1c1d7522Bc8887A7bB9",
    "stakeAZUSD": "0xf45Fde3F484C44CC35Bdc2A7fCA3DDDe0C8f252E",
})

# Pre-encoded mint calldata keyed by output token; opaque to the bot.
MINT_PAYLOADS: Mapping[str, str] = MappingProxyType({
    "AUSD": "0x1bf6318b000000000000000000000000000000000000000000000002b5e3af16b1880000",
    "VUSD": "0xa6d675100000000000000000000000000000000000000000000000000000000077359400",
    "AZUSD": "0xa6d6751000000000000000000000000000000000000000000000000000000001a13b8600",
})

# ---------------------------------------------------------------------------
# Faucets (order defines claim sequence)
# ---------------------------------------------------------------------------
FAUCET_TARGETS: Tuple[FaucetTarget, ...] = (
    FaucetTarget("https://app.x-network.io/maitrix-faucet/faucet", "ATH Faucet", "ATH",
                 ResponseKind.PLAIN, 15.0, ClaimTag.GENERAL),
    FaucetTarget("https://app.x-network.io/maitrix-usde/faucet", "USDe Faucet", "USDe",
                 ResponseKind.PLAIN, 15.0, ClaimTag.GENERAL),
    FaucetTarget("https://app.x-network.io/maitrix-lvl/faucet", "LVL Faucet", "LVLUSD",
                 ResponseKind.PLAIN, 15.0, ClaimTag.GENERAL),
    FaucetTarget("https://app.x-network.io/maitrix-virtual/faucet", "Virtual Faucet", "VIRTUAL",
                 ResponseKind.PLAIN, 15.0, ClaimTag.GENERAL),
    FaucetTarget("https://app.x-network.io/maitrix-usd1/faucet", "USD1 Faucet", "USD1",
                 ResponseKind.CODED, 20.0, ClaimTag.USD1),
    FaucetTarget("https://app.x-network.io/maitrix-ai16z/faucet", "ai16z Faucet", "AI16Z",
                 ResponseKind.CODED, 20.0, ClaimTag.AI16Z),
)

# ---------------------------------------------------------------------------
# Workflow order
# ---------------------------------------------------------------------------
WORKFLOW_BLOCKS: Tuple[MintStakeBlock, ...] = (
    MintStakeBlock("AUSD", "ATH", "mintAUSD", "stakeAUSD"),
    MintStakeBlock("VUSD", "VIRTUAL", "mintVUSD", "stakeVUSD"),
    MintStakeBlock("AZUSD", "AI16Z", "mintAZUSD", "stakeAZUSD"),
)

# (token symbol, staking contract name), run unconditionally after the blocks
TRAILING_STAKES: Tuple[Tuple[str, str], ...] = (
    ("LVLUSD", "stakeLVLUSD"),
    ("USDe", "stakeUSDe"),
    ("USD1", "stakeUSD1"),
)


def _lookup(table: Mapping[str, object], name: str, kind: str):
    if name in table:
        return table[name]
    lowered = name.lower()
    for key, value in table.items():
        if key.lower() == lowered:
            return value
    raise KeyError(f"Unknown {kind}: {name!r}")


def get_token(symbol: str) -> TokenDescriptor:
    """Resolve a token descriptor by symbol (case-insensitive).

    Raises:
        KeyError: If *symbol* is not registered.
    """
    return _lookup(TOKEN_REGISTRY, symbol, "token")


def get_contract(name: str) -> str:
    """Resolve a contract address by operation name (case-insensitive).

    Raises:
        KeyError: If *name* is not registered.
    """
    return _lookup(CONTRACT_REGISTRY, name, "contract")


def get_mint_payload(output_symbol: str) -> str:
    return _lookup(MINT_PAYLOADS, output_symbol, "mint payload")
