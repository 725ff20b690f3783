"""Ether <-> wei conversion for amounts that arrive as decimal strings."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

from web3 import Web3

ETHER_DECIMALS = 18


def parse_ether(amount: str | Decimal) -> int:
    """
    Convert an ether amount ("0.05") to wei.

    Raises:
        ValueError: If the amount is not a number, is negative, or has more than 18 decimals.
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        msg = f"Invalid ether amount: {amount!r}"
        raise ValueError(msg) from e

    if not value.is_finite() or value < 0:
        msg = f"Invalid ether amount: {amount!r}"
        raise ValueError(msg)

    with localcontext() as ctx:
        ctx.prec = 100
        wei = value.scaleb(ETHER_DECIMALS)
        if wei != wei.to_integral_value():
            msg = f"Too many decimal places in ether amount (max {ETHER_DECIMALS})"
            raise ValueError(msg)

    return Web3.to_wei(value, "ether")


def format_ether(wei: int) -> str:
    """Render wei as ether, always with a fractional part ("1.5", "0.0")."""
    text = f"{Decimal(Web3.from_wei(wei, 'ether')):f}"
    if "." not in text:
        return f"{text}.0"
    text = text.rstrip("0")
    return f"{text}0" if text.endswith(".") else text
