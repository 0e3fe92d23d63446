"""
Collection-level analytics built on edition pricing.

Batch cost, averages, ROI between two editions, price tables and parameter
estimation for the analytic curve kinds. Amounts are integer lamports;
ratios and percentages are `Decimal` at the engine's fixed precision.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from mcp_solana_bonding_curve.errors import SupplyOutOfRangeError
from mcp_solana_bonding_curve.fixed_point import PRICE_CONTEXT, round_down
from mcp_solana_bonding_curve.presets import create_default_bezier_curve
from mcp_solana_bonding_curve.pricing import calculate_price
from mcp_solana_bonding_curve.schemas import BondingCurveConfig, CurveKind
from mcp_solana_bonding_curve.validator import ensure_valid
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)

_HUNDRED = Decimal(100)


class RoiSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    buy_price: int
    sell_price: int
    profit: int
    roi_percentage: Optional[Decimal] = None


class PriceTableRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    supply: int
    price: int
    cumulative_revenue: int


def _percentage_change(start: int, end: int) -> Optional[Decimal]:
    if start == 0:
        return None
    return PRICE_CONTEXT.multiply(PRICE_CONTEXT.divide(Decimal(end - start), Decimal(start)), _HUNDRED)


def calculate_total_cost(config: BondingCurveConfig, start_supply: int, quantity: int) -> int:
    """
    Total lamports to mint `quantity` editions starting at index `start_supply`.

    Raises:
        ValueError: If quantity is negative.
        SupplyOutOfRangeError: If the batch runs past the last edition.
        PricingError: If the configuration is invalid.
    """
    if quantity < 0:
        raise ValueError("Quantity must be a non-negative integer")
    ensure_valid(config)
    if quantity and (start_supply < 0 or start_supply + quantity > config.max_supply):
        raise SupplyOutOfRangeError(max(start_supply, start_supply + quantity - 1), config.max_supply)
    total = sum(calculate_price(config, supply) for supply in range(start_supply, start_supply + quantity))
    logger.debug(f"Total cost of {quantity} edition(s) from {start_supply}: {total} lamports")
    return total


def calculate_average_price(config: BondingCurveConfig) -> Decimal:
    """Average price across every edition of the collection."""
    total = calculate_total_cost(config, 0, config.max_supply)
    return PRICE_CONTEXT.divide(Decimal(total), Decimal(config.max_supply))


def _is_non_decreasing(config: BondingCurveConfig) -> bool:
    # Analytic kinds never decrease once validated; Bezier y may.
    return config.kind != CurveKind.bezier


def find_supply_at_price(config: BondingCurveConfig, target_price: int) -> Optional[int]:
    """First edition index whose price is >= target_price, or None if none reaches it."""
    ensure_valid(config)
    last = config.max_supply - 1

    if _is_non_decreasing(config):
        if calculate_price(config, last) < target_price:
            return None
        lo, hi = 0, last
        while lo < hi:
            mid = (lo + hi) // 2
            if calculate_price(config, mid) >= target_price:
                hi = mid
            else:
                lo = mid + 1
        return lo

    for supply in range(config.max_supply):
        if calculate_price(config, supply) >= target_price:
            return supply
    return None


def calculate_roi(config: BondingCurveConfig, buy_supply: int, sell_supply: int) -> RoiSummary:
    """Return on buying the edition at `buy_supply` and selling at the price of `sell_supply`."""
    ensure_valid(config)
    buy_price = calculate_price(config, buy_supply)
    sell_price = calculate_price(config, sell_supply)
    return RoiSummary(
        buy_price=buy_price,
        sell_price=sell_price,
        profit=sell_price - buy_price,
        roi_percentage=_percentage_change(buy_price, sell_price),
    )


def calculate_appreciation_rate(config: BondingCurveConfig, start_supply: int, end_supply: int) -> Optional[Decimal]:
    """Percentage price change between two editions; None when the start price is 0."""
    ensure_valid(config)
    return _percentage_change(calculate_price(config, start_supply), calculate_price(config, end_supply))


def generate_price_table(
    config: BondingCurveConfig, start_supply: int, end_supply: int, step: int = 1
) -> List[PriceTableRow]:
    """
    Prices from start_supply to end_supply inclusive, every `step` editions.

    Cumulative revenue sums only the rows included in the table.
    """
    if step < 1:
        raise ValueError("Step must be a positive integer")
    ensure_valid(config)
    rows: List[PriceTableRow] = []
    cumulative = 0
    for supply in range(start_supply, end_supply + 1, step):
        price = calculate_price(config, supply)
        cumulative += price
        rows.append(PriceTableRow(supply=supply, price=price, cumulative_revenue=cumulative))
    return rows


def estimate_optimal_curve(
    max_supply: int,
    floor_price: int,
    ceiling_price: int,
    kind: CurveKind = CurveKind.exponential,
) -> BondingCurveConfig:
    """
    Curve parameters whose first edition costs `floor_price` and whose last edition
    costs approximately `ceiling_price`.

    For bezier, the default S-curve spanning the two prices is returned.
    """
    if max_supply < 1:
        raise ValueError("Max supply must be a positive integer")
    if floor_price < 0 or ceiling_price < floor_price:
        raise ValueError("Prices must satisfy 0 <= floor_price <= ceiling_price")

    if kind == CurveKind.bezier:
        if ceiling_price == floor_price:
            raise ValueError("A bezier curve needs ceiling_price > floor_price")
        return BondingCurveConfig(
            kind=kind, max_supply=max_supply, bezier=create_default_bezier_curve(floor_price, ceiling_price)
        )

    steps = max_supply - 1
    increment = 0
    if steps > 0 and ceiling_price > floor_price:
        spread = Decimal(ceiling_price - floor_price)
        if kind == CurveKind.linear:
            increment = (ceiling_price - floor_price) // steps
        elif kind == CurveKind.exponential:
            if floor_price == 0:
                raise ValueError("An exponential curve needs floor_price > 0")
            ratio = PRICE_CONTEXT.divide(Decimal(ceiling_price), Decimal(floor_price))
            per_edition = PRICE_CONTEXT.divide(ratio.ln(PRICE_CONTEXT), Decimal(steps)).exp(PRICE_CONTEXT)
            increment = round_down(PRICE_CONTEXT.multiply(Decimal(floor_price), PRICE_CONTEXT.subtract(per_edition, 1)))
        elif kind == CurveKind.logarithmic:
            increment = round_down(PRICE_CONTEXT.divide(spread, Decimal(max_supply).ln(PRICE_CONTEXT)))

    config = BondingCurveConfig(kind=kind, base_price=floor_price, price_increment=increment, max_supply=max_supply)
    logger.info(f"Estimated {kind.value} curve for {max_supply} editions: "
                f"base={floor_price}, increment={increment} lamports")
    return config
