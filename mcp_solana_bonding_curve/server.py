"""
Bonding Curve Pricing - MCP Server Implementation

Exposes the pricing engine to the studio's editor and minting workflow as MCP
tools. Every tool takes curve configurations as JSON strings and returns a JSON
string; failures come back as JSON results or error messages, never as
exceptions crossing the tool boundary.

Tools:
- validate_curve: structural validation with one issue per violated invariant
- get_price: price of one edition
- sample_price_curve: evenly spaced (supply, price) points for charts
- get_total_cost: cost of minting a batch of editions
- get_default_bezier_curve: the editor's starting S-curve
- get_onchain_price: price of the next edition of a deployed curve

License: MIT-0
"""

import json
import time
from typing import Optional

import httpx
from pydantic import Field, ValidationError
from solders.pubkey import Pubkey

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.fastmcp.utilities.logging import get_logger

from mcp_solana_bonding_curve import config
from mcp_solana_bonding_curve import analytics
from mcp_solana_bonding_curve import onchain
from mcp_solana_bonding_curve import presets
from mcp_solana_bonding_curve import pricing
from mcp_solana_bonding_curve import sampler
from mcp_solana_bonding_curve import validator
from mcp_solana_bonding_curve.errors import OnChainAccountError, PricingError
from mcp_solana_bonding_curve.fixed_point import format_lamports
from mcp_solana_bonding_curve.schemas import BezierCurveData, BondingCurveConfig

logger = get_logger(__name__)

# Constants
MAX_CONFIG_JSON_LENGTH = 100_000  # Bezier curves with many segments stay well below this
MAX_PRICE_LAMPORTS = 10**18

# --- Server Setup ---
mcp = FastMCP(name="Solana Bonding Curve Pricing")


def parse_curve_config(config_json: str) -> BondingCurveConfig:
    """
    Parse and type-check a curve configuration JSON string.

    Raises:
        ValueError: If the string is empty or too large.
        json.JSONDecodeError: If the string is not JSON.
        ValidationError: If the JSON does not describe a BondingCurveConfig.
    """
    if not config_json or not isinstance(config_json, str):
        raise ValueError("Configuration JSON must be a non-empty string")
    if len(config_json) > MAX_CONFIG_JSON_LENGTH:
        raise ValueError(f"Configuration JSON is too large (max {MAX_CONFIG_JSON_LENGTH // 1000}KB)")
    return BondingCurveConfig.model_validate(json.loads(config_json))


def _config_error_message(operation: str, error: Exception) -> str:
    if isinstance(error, json.JSONDecodeError):
        logger.error(f"Error decoding JSON for {operation} request: {error}")
        return "Error: Invalid JSON format provided. Please check your JSON syntax."
    if isinstance(error, ValidationError):
        logger.error(f"Invalid curve configuration provided to {operation}: {error}")
        return f"Error: Invalid curve configuration - {error}"
    logger.error(f"Validation error in {operation}: {error}")
    return f"Error: {error}"


@mcp.tool()
async def validate_curve(
    context: Context,
    config_json: str = Field(..., description="The bonding curve configuration as a JSON string."),
) -> str:
    """Check a curve configuration and list every violated invariant."""
    try:
        curve = parse_curve_config(config_json)
        return validator.validate(curve).model_dump_json(indent=2)
    except (ValueError, ValidationError) as e:
        return _config_error_message("validate_curve", e)
    except Exception as e:
        logger.exception(f"Unexpected error validating curve: {e}")
        return "An unexpected error occurred while validating the curve."


@mcp.tool()
async def get_price(
    context: Context,
    config_json: str = Field(..., description="The bonding curve configuration as a JSON string."),
    supply: int = Field(..., description="Zero-based index of the edition about to be minted."),
) -> str:
    """Get the price in lamports of one edition."""
    start_time = time.time()
    try:
        curve = parse_curve_config(config_json)
        result = pricing.price_at(curve, supply)
        logger.debug(f"get_price supply={supply} -> {result.price} ({time.time() - start_time:.3f}s)")
        return result.model_dump_json(indent=2)
    except (ValueError, ValidationError) as e:
        return _config_error_message("get_price", e)
    except Exception as e:
        logger.exception(f"Unexpected error pricing edition {supply}: {e}")
        return "An unexpected error occurred while calculating the price."


@mcp.tool()
async def sample_price_curve(
    context: Context,
    config_json: str = Field(..., description="The bonding curve configuration as a JSON string."),
    count: int = Field(config.DEFAULT_SAMPLE_COUNT, description="Number of evenly spaced samples."),
) -> str:
    """Sample (supply, price) points across the whole collection for a chart."""
    start_time = time.time()
    try:
        if not isinstance(count, int) or count < 1 or count > config.MAX_SAMPLE_COUNT:
            raise ValueError(f"Count must be an integer between 1 and {config.MAX_SAMPLE_COUNT}")
        curve = parse_curve_config(config_json)
        result = sampler.sample(curve, count)
        logger.info(f"Sampled {len(result.points)} point(s) in {time.time() - start_time:.3f}s")
        return result.model_dump_json(indent=2)
    except (ValueError, ValidationError) as e:
        return _config_error_message("sample_price_curve", e)
    except Exception as e:
        logger.exception(f"Unexpected error sampling curve: {e}")
        return "An unexpected error occurred while sampling the curve."


@mcp.tool()
async def get_total_cost(
    context: Context,
    config_json: str = Field(..., description="The bonding curve configuration as a JSON string."),
    start_supply: int = Field(..., description="Index of the first edition in the batch."),
    quantity: int = Field(..., description="Number of editions to mint."),
) -> str:
    """Get the total cost of minting a batch of consecutive editions."""
    try:
        curve = parse_curve_config(config_json)
        total = analytics.calculate_total_cost(curve, start_supply, quantity)
        return json.dumps(
            {
                "start_supply": start_supply,
                "quantity": quantity,
                "total_cost": total,
                "total_cost_sol": format_lamports(total, 9),
            },
            indent=2,
        )
    except PricingError as e:
        logger.warning(f"Could not price batch of {quantity} from {start_supply}: {e}")
        return json.dumps({"error": e.kind.value, "message": str(e)}, indent=2)
    except (ValueError, ValidationError) as e:
        return _config_error_message("get_total_cost", e)
    except Exception as e:
        logger.exception(f"Unexpected error calculating batch cost: {e}")
        return "An unexpected error occurred while calculating the batch cost."


@mcp.tool()
async def get_default_bezier_curve(
    context: Context,
    min_price: int = Field(..., description="Price of the first edition in lamports."),
    max_price: int = Field(..., description="Price of the last edition in lamports."),
) -> str:
    """Get the default S-curve Bezier data the curve editor starts from."""
    try:
        if min_price < 0 or max_price > MAX_PRICE_LAMPORTS or max_price <= min_price:
            raise ValueError("Prices must satisfy 0 <= min_price < max_price <= 10^18")
        return presets.create_default_bezier_curve(min_price, max_price).model_dump_json(indent=2)
    except ValueError as e:
        logger.error(f"Validation error in get_default_bezier_curve: {e}")
        return f"Error: {e}"


@mcp.tool()
async def get_onchain_price(
    context: Context,
    collection_mint: str = Field(..., description="The collection mint address."),
    bezier_json: Optional[str] = Field(None, description="Curve data JSON, required for bezier curves."),
) -> str:
    """Get the price of the next edition of a deployed bonding curve."""
    start_time = time.time()
    try:
        mint = Pubkey.from_string(collection_mint)
        bezier = BezierCurveData.model_validate(json.loads(bezier_json)) if bezier_json else None

        async with httpx.AsyncClient(timeout=httpx.Timeout(10.0, connect=5.0)) as client:
            state = await onchain.fetch_bonding_curve(client, mint)

        if state.sold_out:
            return f"Collection {collection_mint} is sold out ({state.current_supply}/{state.max_supply})."

        result = onchain.current_price(state, bezier)
        logger.info(f"On-chain price for {collection_mint}: {result.price} lamports "
                    f"(duration={time.time() - start_time:.3f}s)")
        return result.model_dump_json(indent=2)
    except OnChainAccountError as e:
        logger.error(f"On-chain lookup failed for {collection_mint}: {e}")
        return f"Error: {e}"
    except (ValueError, ValidationError) as e:
        return _config_error_message("get_onchain_price", e)
    except Exception as e:
        logger.exception(f"Unexpected error fetching on-chain price for {collection_mint}: {e}")
        return "An unexpected error occurred while fetching the on-chain price."


def main() -> None:
    logger.info("Starting Solana Bonding Curve Pricing MCP Server...")
    try:
        mcp.run(transport="stdio")
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")


# --- Main Execution ---
if __name__ == "__main__":
    main()
