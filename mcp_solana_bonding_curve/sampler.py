"""
Curve sampling for charts and price lookup tables.

Each sample is an independent `calculate_price` call on an immutable
configuration, so samples can be computed on worker threads without any
coordination and are always returned in supply order.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from mcp_solana_bonding_curve import config as settings
from mcp_solana_bonding_curve.errors import InvalidArgumentError, PricingError
from mcp_solana_bonding_curve.pricing import calculate_price
from mcp_solana_bonding_curve.schemas import BondingCurveConfig, PricePoint, SampleResult
from mcp_solana_bonding_curve.validator import ensure_valid
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)


def sample_supplies(max_supply: int, count: int) -> List[int]:
    """
    `count` evenly spaced edition indices from 0 to max_supply - 1.

    Indices are rounded down and de-duplicated, so fewer than `count` values are
    returned when the collection has fewer editions than requested samples. Both
    ends are always included.
    """
    if count < 1:
        raise InvalidArgumentError("Sample count must be a positive integer")
    if max_supply < 1:
        raise InvalidArgumentError("Max supply must be a positive integer")
    last = max_supply - 1
    if count == 1 or last == 0:
        return [0]

    supplies: List[int] = []
    for i in range(count):
        supply = (i * last) // (count - 1)
        if not supplies or supplies[-1] != supply:
            supplies.append(supply)
    return supplies


def sample_curve(config: BondingCurveConfig, count: int, max_workers: Optional[int] = None) -> List[PricePoint]:
    """
    Sample a validated curve at up to `count` evenly spaced supplies.

    Args:
        config: The bonding curve configuration.
        count: Number of samples requested (1..MAX_SAMPLE_COUNT).
        max_workers: Worker threads; defaults to SAMPLER_MAX_WORKERS. 1 runs inline.

    Returns:
        PricePoints in increasing supply order. Fewer than `count` points come
        back when the collection has fewer than `count` editions.

    Raises:
        InvalidArgumentError: If count is out of bounds (also a ValueError).
        PricingError: If the configuration is invalid or a price cannot be computed.
    """
    if count < 1 or count > settings.MAX_SAMPLE_COUNT:
        raise InvalidArgumentError(f"Sample count must be between 1 and {settings.MAX_SAMPLE_COUNT}, got {count}")
    ensure_valid(config)

    supplies = sample_supplies(config.max_supply, count)
    workers = settings.SAMPLER_MAX_WORKERS if max_workers is None else max_workers

    if workers <= 1 or len(supplies) <= 1:
        prices = [calculate_price(config, supply) for supply in supplies]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            prices = list(executor.map(lambda supply: calculate_price(config, supply), supplies))

    logger.debug(f"Sampled {len(supplies)} point(s) of {config.kind.value} curve with {workers} worker(s)")
    return [PricePoint(supply=supply, price=price) for supply, price in zip(supplies, prices)]


def sample(config: BondingCurveConfig, count: int, max_workers: Optional[int] = None) -> SampleResult:
    """
    Sample a curve, reporting every failure as a result instead of raising.

    Points are de-duplicated by supply, so a collection with fewer editions than
    `count` yields one point per edition rather than exactly `count` points. A
    count outside 1..MAX_SAMPLE_COUNT gives an INVALID_ARGUMENT result.
    """
    try:
        points = sample_curve(config, count, max_workers=max_workers)
    except PricingError as e:
        logger.warning(f"Could not sample {config.kind.value} curve: {e}")
        return SampleResult(error=e.kind, message=str(e), issues=getattr(e, "issues", []))
    return SampleResult(points=points)


def build_price_lookup_table(config: BondingCurveConfig, max_workers: Optional[int] = None) -> List[int]:
    """
    Price of every edition, index 0 through max_supply - 1.

    This is the table a Bezier collection publishes so the chain can charge
    without evaluating the curve itself.
    """
    ensure_valid(config)
    workers = settings.SAMPLER_MAX_WORKERS if max_workers is None else max_workers
    supplies = range(config.max_supply)
    if workers <= 1:
        table = [calculate_price(config, supply) for supply in supplies]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            table = list(executor.map(lambda supply: calculate_price(config, supply), supplies))
    logger.info(f"Built {config.kind.value} price lookup table with {len(table)} entries "
                f"({table[0]} - {table[-1]} lamports)")
    return table
