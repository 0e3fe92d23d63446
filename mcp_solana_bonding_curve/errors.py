"""
Custom Exception Classes for the Bonding Curve Pricing Engine

This module defines the exception classes raised by the pricing engine. Internal
functions raise them; the pricing boundary (`pricing.price_at`, `sampler.sample`)
and the MCP tools convert them into explicit result objects so that a UI caller
can show "invalid curve" without the process aborting.

Exception Categories:
- Curve Errors: configuration violates a structural invariant
- Supply Errors: requested edition index is outside the curve's supply
- Numerical Errors: root finding failed on a pathological segment, or a
  price does not fit in a u64
- Argument Errors: a request parameter (e.g. sample count) is out of bounds
- Configuration Errors: invalid environment settings
- On-chain Errors: failures fetching or decoding a deployed curve account

Every pricing error carries a `kind` code (see `PricingErrorKind`) used when
the error is reported as a result instead of raised.
"""
from enum import Enum
from typing import List, Optional


class PricingErrorKind(str, Enum):
    validation_error = "VALIDATION_ERROR"
    supply_out_of_range = "SUPPLY_OUT_OF_RANGE"
    root_finding_divergence = "ROOT_FINDING_DIVERGENCE"
    price_overflow = "PRICE_OVERFLOW"
    invalid_argument = "INVALID_ARGUMENT"


class PricingError(Exception):
    """Base class for errors raised while validating or pricing a curve."""

    kind: PricingErrorKind = PricingErrorKind.validation_error


class CurveValidationError(PricingError):
    """Raised when a configuration violates an invariant and must not be priced."""

    kind = PricingErrorKind.validation_error

    def __init__(self, message: str, issues: Optional[List] = None):
        super().__init__(message)
        self.issues = list(issues or [])


class SupplyOutOfRangeError(PricingError):
    """Raised when the edition index is negative or >= max_supply."""

    kind = PricingErrorKind.supply_out_of_range

    def __init__(self, supply: int, max_supply: int):
        super().__init__(f"Supply {supply} is out of range [0, {max_supply - 1}]")
        self.supply = supply
        self.max_supply = max_supply


class RootFindingDivergenceError(PricingError):
    """Raised when neither Newton-Raphson nor bisection converges for a segment."""

    kind = PricingErrorKind.root_finding_divergence


class PriceOverflowError(PricingError):
    """Raised when an edition's price does not fit in a u64 lamport amount."""

    kind = PricingErrorKind.price_overflow

    def __init__(self, supply: int, max_lamports: int):
        super().__init__(f"Price of edition {supply} exceeds the maximum of {max_lamports} lamports")
        self.supply = supply
        self.max_lamports = max_lamports


class InvalidArgumentError(PricingError, ValueError):
    """Raised for a bad request argument, such as a sample count out of bounds."""

    kind = PricingErrorKind.invalid_argument


class ConfigurationError(Exception):
    """Raised when there are configuration-related errors."""


class OnChainAccountError(Exception):
    """Raised when a bonding curve account cannot be fetched or decoded."""
