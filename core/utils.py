"""Formatting helpers shared by the core and faucet modules.

Token amounts travel through the bot as integers in base units; these
helpers convert them to and from human-readable decimal strings, and
shorten addresses and durations for log lines.
"""

from decimal import Decimal, localcontext
from typing import Union


def parse_units(value: Union[int, str, Decimal], decimals: int) -> int:
    """Convert a whole-token amount into base units.

    Args:
        value: Amount in whole tokens (``"50"``, ``2``, ``Decimal("0.5")``).
        decimals: Token decimal precision.

    Returns:
        Integer amount in base units.

    Raises:
        ValueError: If *value* has more fractional digits than *decimals*.
    """
    if isinstance(value, int):
        return value * 10 ** decimals
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = Decimal(str(value)).scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value} has more precision than {decimals} decimals")
    return int(scaled)


def format_units(amount: int, decimals: int) -> str:
    """Render a base-unit integer as a decimal string (``"50.0"``)."""
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), 10 ** decimals)
    digits = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{digits or '0'}"


def short_address(address: str) -> str:
    """Truncate an address to ``0x1234...abcd``."""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_remaining(seconds: int) -> str:
    """Format a cooldown as ``"1h 1m"`` (seconds dropped)."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    return f"{hours}h {rest // 60}m"


def format_countdown(seconds: int) -> str:
    """Format a countdown as ``"23h 59m 59s"``."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h {minutes}m {secs}s"


def truncate(message: str, limit: int = 100) -> str:
    return message if len(message) <= limit else message[:limit]
