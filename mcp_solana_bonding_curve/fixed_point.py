"""
Fixed-point helpers shared by the pricing modules.

Every conversion from an exact rational or decimal value to integer lamports goes
through `round_down`, matching the truncating u64 arithmetic of the on-chain
program. Intermediate values are kept exact (`Fraction`) or at a fixed decimal
precision (`PRICE_CONTEXT`), never compared as native floats. Decimal
intermediates are snapped to `PRICE_GRID` before rounding down (`to_lamports`),
so a price that is an exact integer in real arithmetic never loses a lamport
to truncation noise.
"""
from decimal import Context, Decimal, ROUND_DOWN, ROUND_FLOOR, ROUND_HALF_EVEN
from fractions import Fraction
from typing import Union

from mcp_solana_bonding_curve import config

# Fixed so results do not depend on the caller's thread-local decimal context.
PRICE_CONTEXT = Context(prec=50, rounding=ROUND_DOWN)

# Largest amount an on-chain u64 price can hold.
MAX_LAMPORTS = 2**64 - 1

# Resolution kept before rounding to whole lamports. Errors of the 50-digit
# intermediates are many orders of magnitude smaller.
PRICE_GRID = Decimal("1e-12")

Number = Union[int, float, Fraction, Decimal]


def to_fraction(value: Number) -> Fraction:
    """Exact rational value of an int, float, Decimal or Fraction."""
    if isinstance(value, Fraction):
        return value
    return Fraction(value)


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, Fraction):
        return PRICE_CONTEXT.divide(Decimal(value.numerator), Decimal(value.denominator))
    return Decimal(value)


def round_down(value: Number) -> int:
    """Largest integer <= value, computed without float rounding."""
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        return int(value.to_integral_value(rounding=ROUND_FLOOR))
    frac = to_fraction(value)
    return frac.numerator // frac.denominator


def snap_to_grid(value: Decimal) -> Decimal:
    """Round to PRICE_GRID (half-even), absorbing arithmetic noise far below one lamport."""
    return value.quantize(PRICE_GRID, rounding=ROUND_HALF_EVEN, context=PRICE_CONTEXT)


def to_lamports(value: Number) -> int:
    """
    Whole lamports of a computed price: snap to PRICE_GRID, then round down.

    Without the snap, a value such as 6.99999...9 from a truncated 50-digit
    intermediate would floor to 6 instead of 7. Callers check the u64 bound
    first; values must stay well inside PRICE_CONTEXT's precision.
    """
    return round_down(snap_to_grid(to_decimal(value)))


def lamports_to_sol(lamports: int) -> Decimal:
    """Convert lamports to SOL."""
    return PRICE_CONTEXT.divide(Decimal(lamports), Decimal(config.LAMPORTS_PER_SOL))


def sol_to_lamports(sol: Union[str, float, Decimal]) -> int:
    """Convert SOL to lamports, rounding down."""
    return round_down(Decimal(str(sol)) * config.LAMPORTS_PER_SOL)


def format_lamports(lamports: Number, decimals: int = 4) -> str:
    """Format a lamport amount as a SOL string with the given decimal places."""
    sol = PRICE_CONTEXT.divide(to_decimal(lamports), Decimal(config.LAMPORTS_PER_SOL))
    return f"{sol:.{decimals}f}"
