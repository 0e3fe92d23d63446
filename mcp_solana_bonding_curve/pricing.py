"""
Edition Pricing Engine with Bonding Curves

This module computes the price of the next edition of an NFT collection from its
bonding curve configuration. Prices are integer lamports and depend only on the
configuration and the zero-based index of the edition being minted, so the same
inputs always give the same price.

Bonding Curve Types Supported:
- Linear: base_price + supply * price_increment
- Exponential: base_price * (1 + price_increment / base_price) ^ supply
- Logarithmic: base_price + price_increment * ln(1 + supply)
- Bezier: piecewise cubic Bezier in normalized (supply, price) space, mapped
  onto [min_price, max_price]

Price Calculation Process:
1. Check 0 <= supply < max_supply
2. Apply the curve formula in exact integer arithmetic (linear) or at the
   fixed 50-digit precision of PRICE_CONTEXT (the others); the exponential
   power costs O(log supply) multiplications
3. Reject prices above the u64 lamport limit
4. Snap to PRICE_GRID and round down to whole lamports

Entry Points:
- `calculate_price` raises `PricingError` subclasses; used by code that already
  holds a validated configuration (sampler, analytics).
- `price_at` validates the configuration first and reports any failure as a
  `PriceResult` instead of raising, for UI and minting callers.
"""
from bisect import bisect_left
from decimal import Decimal, Overflow
from fractions import Fraction
from typing import Optional, Sequence

from mcp_solana_bonding_curve import config as settings
from mcp_solana_bonding_curve.bezier import refine_t_for_x, solve_t_for_x, y_at_decimal
from mcp_solana_bonding_curve.errors import (
    CurveValidationError,
    PriceOverflowError,
    PricingError,
    SupplyOutOfRangeError,
)
from mcp_solana_bonding_curve.fixed_point import MAX_LAMPORTS, PRICE_CONTEXT, Number, to_decimal, to_lamports
from mcp_solana_bonding_curve.schemas import (
    BezierCurveData,
    BezierSegment,
    BondingCurveConfig,
    CurveKind,
    PriceResult,
)
from mcp_solana_bonding_curve.validator import validate
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)

_ZERO = Decimal(0)
_ONE = Decimal(1)


def check_supply(config: BondingCurveConfig, supply: int) -> None:
    if supply < 0 or supply >= config.max_supply:
        raise SupplyOutOfRangeError(supply, config.max_supply)


def normalize_supply(supply: int, max_supply: int) -> Fraction:
    """Map an edition index exactly onto [0, 1]; the last edition maps to 1."""
    if max_supply <= 1:
        return Fraction(0)
    value = Fraction(supply, max_supply - 1)
    return min(max(value, Fraction(0)), Fraction(1))


def locate_segment(segments: Sequence[BezierSegment], x: float) -> int:
    """
    Index of the segment whose x-domain contains x.

    Segment end points increase monotonically on a valid curve, so this is a
    binary search over them. A value on a shared boundary belongs to the left
    segment; both give the same y.
    """
    if not segments:
        raise CurveValidationError("Curve must have at least one segment")
    ends = [segment.p3.x for segment in segments]
    return min(bisect_left(ends, x), len(segments) - 1)


def evaluate_bezier_curve(
    data: BezierCurveData,
    normalized_x: Number,
    tolerance: Optional[float] = None,
    max_iterations: Optional[int] = None,
) -> Decimal:
    """
    Normalized price (y in [0, 1]) of the curve at a normalized supply.

    The float root finder locates t, which is then polished in Decimal, so the
    result carries PRICE_CONTEXT precision rather than float precision.
    """
    x = min(max(to_decimal(normalized_x), _ZERO), _ONE)
    segment = data.segments[locate_segment(data.segments, float(x))]
    t_hint = solve_t_for_x(segment, float(x), tolerance=tolerance, max_iterations=max_iterations)
    t = refine_t_for_x(segment, x, t_hint)
    return min(max(y_at_decimal(segment, t), _ZERO), _ONE)


def _to_price(value: Decimal, supply: int) -> int:
    if value > MAX_LAMPORTS:
        raise PriceOverflowError(supply, MAX_LAMPORTS)
    return to_lamports(value)


def _linear_price(config: BondingCurveConfig, supply: int) -> int:
    price = config.base_price + supply * config.price_increment
    if price > MAX_LAMPORTS:
        raise PriceOverflowError(supply, MAX_LAMPORTS)
    return price


def growth_factor(config: BondingCurveConfig) -> Fraction:
    """Per-edition multiplier of an exponential curve."""
    if config.base_price > 0:
        return Fraction(config.base_price + config.price_increment, config.base_price)
    return 1 + Fraction(settings.DEFAULT_GROWTH_RATE)


def _exponential_price(config: BondingCurveConfig, supply: int) -> int:
    # 0 * factor^supply is 0 for any factor; skip a power that may overflow.
    if config.base_price == 0 or supply == 0:
        return config.base_price
    factor = to_decimal(growth_factor(config))
    try:
        value = PRICE_CONTEXT.multiply(Decimal(config.base_price), PRICE_CONTEXT.power(factor, Decimal(supply)))
    except Overflow:
        raise PriceOverflowError(supply, MAX_LAMPORTS)
    return _to_price(value, supply)


def _logarithmic_price(config: BondingCurveConfig, supply: int) -> int:
    log_value = Decimal(1 + supply).ln(PRICE_CONTEXT)
    value = PRICE_CONTEXT.add(
        Decimal(config.base_price), PRICE_CONTEXT.multiply(Decimal(config.price_increment), log_value)
    )
    return _to_price(value, supply)


def _bezier_price(
    config: BondingCurveConfig,
    supply: int,
    tolerance: Optional[float] = None,
    max_iterations: Optional[int] = None,
) -> int:
    data = config.bezier
    if data is None:
        raise CurveValidationError("Bezier curve configuration is missing its curve data")
    normalized_supply = normalize_supply(supply, config.max_supply)
    normalized_price = evaluate_bezier_curve(data, normalized_supply, tolerance, max_iterations)
    value = PRICE_CONTEXT.add(
        Decimal(data.min_price),
        PRICE_CONTEXT.multiply(normalized_price, Decimal(data.max_price - data.min_price)),
    )
    return _to_price(value, supply)


def calculate_price(
    config: BondingCurveConfig,
    supply: int,
    tolerance: Optional[float] = None,
    max_iterations: Optional[int] = None,
) -> int:
    """
    Price in lamports of the edition at zero-based index `supply`.

    The configuration is assumed valid; use `price_at` when it may not be.

    Args:
        config: The collection's bonding curve configuration.
        supply: Index of the edition about to be minted (editions already minted).
        tolerance: Root-finding tolerance for Bezier curves (default from config).
        max_iterations: Root-finding budget for Bezier curves (default from config).

    Returns:
        The price in lamports.

    Raises:
        SupplyOutOfRangeError: If supply < 0 or supply >= max_supply.
        CurveValidationError: If a Bezier configuration has no curve data.
        RootFindingDivergenceError: If the Bezier segment cannot be inverted.
        PriceOverflowError: If the price exceeds 2^64 - 1 lamports.
    """
    check_supply(config, supply)

    kind = config.kind
    if kind == CurveKind.linear:
        price = _linear_price(config, supply)
    elif kind == CurveKind.exponential:
        price = _exponential_price(config, supply)
    elif kind == CurveKind.logarithmic:
        price = _logarithmic_price(config, supply)
    elif kind == CurveKind.bezier:
        price = _bezier_price(config, supply, tolerance, max_iterations)
    else:
        # Unreachable while CurveKind and this dispatch agree
        raise CurveValidationError(f"Invalid curve kind '{kind}'")

    logger.debug(f"Price for edition {supply}/{config.max_supply} on {kind.value} curve: {price} lamports")
    return price


def price_at(config: BondingCurveConfig, supply: int) -> PriceResult:
    """
    Validate the configuration and price one edition, reporting failures as a result.

    Returns:
        PriceResult with `price` set, or with `error`, `message` and (for invalid
        configurations) `issues` set.
    """
    result = validate(config)
    if not result.valid:
        summary = "; ".join(issue.message for issue in result.issues)
        err = CurveValidationError(f"Invalid bonding curve configuration: {summary}", issues=result.issues)
        return PriceResult(supply=supply, error=err.kind, message=str(err), issues=result.issues)

    try:
        return PriceResult(supply=supply, price=calculate_price(config, supply))
    except PricingError as e:
        logger.warning(f"Could not price edition {supply} on {config.kind.value} curve: {e}")
        return PriceResult(supply=supply, error=e.kind, message=str(e), issues=getattr(e, "issues", []))
