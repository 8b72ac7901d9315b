"""Conversion between human-entered amounts and smallest-unit integers."""

from __future__ import annotations


def _split(amount: str) -> tuple[str, str]:
    text = str(amount).strip()
    if not text:
        return "", ""
    if text.count(".") > 1 or not text.replace(".", "").isdigit():
        raise ValueError(f"not a decimal amount: {amount!r}")
    whole, _, fraction = text.partition(".")
    return whole, fraction


def to_decimals(amount: str, decimals: int, truncate: bool = True) -> str:
    """``"1.5"`` with 18 decimals -> ``"1500000000000000000"``.

    With ``truncate=False`` digits beyond ``decimals`` are kept after a
    ``"."`` so callers can detect over-precise input.
    """
    whole, fraction = _split(amount)
    if not whole and not fraction:
        return "0"
    digits = (whole + fraction).ljust(len(whole) + decimals, "0")
    scaled = digits[:len(whole) + decimals].lstrip("0") or "0"
    rest = digits[len(whole) + decimals:].rstrip("0")
    if not truncate and rest:
        return f"{scaled}.{rest}"
    return scaled


def from_decimals(value: int | str, decimals: int) -> str:
    """``1500000000000000000`` with 18 decimals -> ``"1.5"``."""
    number = int(value)
    sign = "-" if number < 0 else ""
    digits = str(abs(number))
    if decimals <= 0:
        return sign + digits
    digits = digits.rjust(decimals + 1, "0")
    whole, fraction = digits[:-decimals], digits[-decimals:].rstrip("0")
    return f"{sign}{whole}.{fraction}" if fraction else sign + whole
