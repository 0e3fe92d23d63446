import os
import logging
from typing import Optional
from solders.pubkey import Pubkey
from dotenv import load_dotenv

from mcp_solana_bonding_curve.errors import ConfigurationError

"""
Configuration Management for the Bonding Curve Pricing Engine

This module loads the engine's numeric settings and the RPC settings used by the
on-chain mirror. Values come from environment variables (optionally via a .env
file) with defaults defined here, and are validated on import.

Environment Variables:
    RPC_ENDPOINT: Solana RPC endpoint URL used to read deployed curve accounts
    BONDING_CURVE_PROGRAM_ID: Address of the on-chain bonding curve program
    NEWTON_TOLERANCE: Convergence tolerance on x for the Bezier root finder
    NEWTON_MAX_ITERATIONS: Iteration budget for Newton-Raphson and for bisection
    DERIVATIVE_EPSILON: |dx/dt| below this switches the root finder to bisection
    EXACT_REFINE_ITERATIONS: Budget for polishing a root to full decimal precision
    DEFAULT_GROWTH_RATE: Exponential growth rate used when base_price is 0
    DEFAULT_SAMPLE_COUNT: Number of chart samples when the caller gives none
    MAX_SAMPLE_COUNT: Upper bound on samples per request
    SAMPLER_MAX_WORKERS: Worker threads used by the sampler (1 = sequential)
"""

# Set up logger
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()


def _get_env_str(key: str, default: str, required: bool = False) -> str:
    """Get environment variable as string with validation."""
    value = os.getenv(key, default)
    if required and not value:
        raise ConfigurationError(f"Required environment variable {key} is not set")
    return value


def _get_env_int(key: str, default: int, min_val: Optional[int] = None, max_val: Optional[int] = None) -> int:
    """Get environment variable as integer with validation."""
    try:
        value = int(os.getenv(key, str(default)))
    except ValueError:
        raise ConfigurationError(f"Environment variable {key} must be a valid integer")
    if min_val is not None and value < min_val:
        raise ConfigurationError(f"Environment variable {key} must be >= {min_val}")
    if max_val is not None and value > max_val:
        raise ConfigurationError(f"Environment variable {key} must be <= {max_val}")
    return value


def _get_env_float(key: str, default: float, min_val: Optional[float] = None, max_val: Optional[float] = None) -> float:
    """Get environment variable as float with validation."""
    try:
        value = float(os.getenv(key, str(default)))
    except ValueError:
        raise ConfigurationError(f"Environment variable {key} must be a valid float")
    if min_val is not None and value < min_val:
        raise ConfigurationError(f"Environment variable {key} must be >= {min_val}")
    if max_val is not None and value > max_val:
        raise ConfigurationError(f"Environment variable {key} must be <= {max_val}")
    return value


def _get_env_pubkey(key: str, default: str) -> Pubkey:
    """Get environment variable as Pubkey with validation."""
    try:
        value = os.getenv(key, default)
        return Pubkey.from_string(value)
    except Exception as e:
        raise ConfigurationError(f"Environment variable {key} must be a valid public key: {e}")


try:
    # --- Solana Configuration ---
    RPC_ENDPOINT = _get_env_str("RPC_ENDPOINT", "https://api.devnet.solana.com", required=True)
    LAMPORTS_PER_SOL = 10**9
    BONDING_CURVE_PROGRAM_ID = _get_env_pubkey(
        "BONDING_CURVE_PROGRAM_ID", "BC11111111111111111111111111111111111111111"
    )

    # --- Root Finding ---
    NEWTON_TOLERANCE = _get_env_float("NEWTON_TOLERANCE", 1e-9, min_val=1e-15, max_val=1e-2)
    NEWTON_MAX_ITERATIONS = _get_env_int("NEWTON_MAX_ITERATIONS", 50, min_val=1, max_val=1000)
    DERIVATIVE_EPSILON = _get_env_float("DERIVATIVE_EPSILON", 1e-12, min_val=0.0, max_val=1e-3)
    EXACT_REFINE_ITERATIONS = _get_env_int("EXACT_REFINE_ITERATIONS", 200, min_val=1, max_val=10000)

    # --- Analytic Curves ---
    # Kept as a string so it can be read exactly as a Fraction.
    DEFAULT_GROWTH_RATE = _get_env_str("DEFAULT_GROWTH_RATE", "0.05")
    if float(DEFAULT_GROWTH_RATE) < 0:
        raise ConfigurationError("Environment variable DEFAULT_GROWTH_RATE must be >= 0")

    # --- Sampling ---
    DEFAULT_SAMPLE_COUNT = _get_env_int("DEFAULT_SAMPLE_COUNT", 50, min_val=1, max_val=100000)
    MAX_SAMPLE_COUNT = _get_env_int("MAX_SAMPLE_COUNT", 10000, min_val=1, max_val=1000000)
    SAMPLER_MAX_WORKERS = _get_env_int("SAMPLER_MAX_WORKERS", 1, min_val=1, max_val=64)

    logger.info("Configuration loaded successfully")

except ConfigurationError as e:
    logger.error(f"Configuration error: {e}")
    raise
except Exception as e:
    logger.error(f"Unexpected error loading configuration: {e}")
    raise ConfigurationError(f"Failed to load configuration: {e}")
