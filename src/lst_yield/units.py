"""Fixed-point unit conversion helpers.

On-chain values are unsigned 256-bit integers carrying an implicit number of
decimal places. `to_real` turns them into floats for the yield math and
`to_fixed_point` goes the other way for human-entered values.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

UINT256_MAX = 2**256 - 1

# 10**78 > 2**256, so more decimals than this cannot describe a uint256
MAX_DECIMALS = 77

# enough significant digits to hold any uint256 exactly
_PRECISION = 100


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise TypeError(f"decimals must be an int, got {type(decimals).__name__}")
    if not 0 <= decimals <= MAX_DECIMALS:
        raise ValueError(f"decimals must be within 0..{MAX_DECIMALS}, got {decimals}")


def to_real(value: int, decimals: int = 18) -> float:
    """Convert a fixed-point unsigned integer to a float.

    The result is the correctly rounded float of the exact decimal
    ``value / 10**decimals``, the same as formatting the units as a string
    and parsing it.

    Args:
        value: Unsigned integer amount (e.g. wei).
        decimals: Number of implied decimal places.

    Returns:
        The real-valued amount as a float.

    Raises:
        TypeError: if `value` or `decimals` is not an int.
        ValueError: if `value` is negative or wider than 256 bits, or
            `decimals` is outside 0..77.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"value must be an int, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"value {value} is not a uint256")
    _check_decimals(decimals)

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return float(Decimal(value).scaleb(-decimals))


def to_fixed_point(amount: str | int | Decimal, decimals: int = 18) -> int:
    """Convert a decimal amount into its fixed-point integer representation.

    Strings are parsed exactly, so ``"1.05"`` becomes ``105 * 10**16`` with
    no float rounding. Digits beyond `decimals` are rejected rather than
    truncated.

    Raises:
        ValueError: if the amount cannot be parsed, is negative, carries more
            precision than `decimals`, or overflows a uint256.
    """
    _check_decimals(decimals)
    try:
        dec = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise ValueError(f"cannot parse amount {amount!r}") from e

    if not dec.is_finite():
        raise ValueError(f"amount must be finite, got {amount!r}")
    if dec < 0:
        raise ValueError(f"amount must be non-negative, got {amount!r}")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = dec.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"amount {amount!r} has more than {decimals} decimal places")
        result = int(scaled)

    if result > UINT256_MAX:
        raise ValueError(f"amount {amount!r} overflows uint256")
    return result
