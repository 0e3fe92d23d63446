"""
Curve Configuration Validator

Checks a `BondingCurveConfig` against the structural invariants it must satisfy
before it is priced or deployed, and reports every violation found. Validation
is advisory: nothing here repairs a configuration.

Analytic kinds (linear, exponential, logarithmic) need non-negative base price
and increment and a positive max supply. Bezier curves additionally need:

1. at least one segment
2. every control-point coordinate in [0, 1]
3. first segment starting at x = 0 and last segment ending at x = 1
4. adjacent segments sharing their endpoint exactly
5. x non-decreasing in t within every segment (and p0.x < p3.x)
6. max_price > min_price >= 0
"""
import math
from fractions import Fraction
from typing import List

from mcp_solana_bonding_curve.errors import CurveValidationError
from mcp_solana_bonding_curve.schemas import (
    BezierCurveData,
    BezierSegment,
    BondingCurveConfig,
    CurveInvariant,
    CurveKind,
    ValidationIssue,
    ValidationResult,
)
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)

_POINT_NAMES = ("p0", "p1", "p2", "p3")


def is_x_monotonic(segment: BezierSegment) -> bool:
    """
    True if x(t) is non-decreasing on [0, 1].

    dx/dt is 3 times the quadratic Bernstein polynomial with coefficients
    a = x1 - x0, b = x2 - x1, c = x3 - x2. It is non-negative on [0, 1] iff
    a >= 0, c >= 0 and either b >= 0 or b^2 <= a*c. Evaluated exactly.
    """
    if not all(math.isfinite(p.x) for p in segment.control_points()):
        return False
    x0, x1, x2, x3 = (Fraction(p.x) for p in segment.control_points())
    a, b, c = x1 - x0, x2 - x1, x3 - x2
    if a < 0 or c < 0:
        return False
    return b >= 0 or b * b <= a * c


def _in_unit_interval(value: float) -> bool:
    # Written this way so NaN fails.
    return 0.0 <= value <= 1.0


def _check_bezier(data: BezierCurveData) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []

    if data.min_price < 0:
        issues.append(ValidationIssue(
            invariant=CurveInvariant.price_range,
            message=f"Minimum price cannot be negative (got {data.min_price})",
        ))
    if data.max_price <= data.min_price:
        issues.append(ValidationIssue(
            invariant=CurveInvariant.price_range,
            message=f"Maximum price ({data.max_price}) must be greater than minimum price ({data.min_price})",
        ))

    segments = data.segments
    if not segments:
        issues.append(ValidationIssue(
            invariant=CurveInvariant.non_empty_segments,
            message="Curve must have at least one segment",
        ))
        return issues

    for idx, segment in enumerate(segments):
        for name, point in zip(_POINT_NAMES, segment.control_points()):
            if not (_in_unit_interval(point.x) and _in_unit_interval(point.y)):
                issues.append(ValidationIssue(
                    invariant=CurveInvariant.control_points_in_unit_square,
                    message=f"Segment {idx}, {name}=({point.x}, {point.y}) must lie in [0, 1] x [0, 1]",
                    segment_index=idx,
                ))

    if segments[0].p0.x != 0.0:
        issues.append(ValidationIssue(
            invariant=CurveInvariant.spans_full_domain,
            message=f"First segment must start at x = 0 (got {segments[0].p0.x})",
            segment_index=0,
        ))
    last = len(segments) - 1
    if segments[last].p3.x != 1.0:
        issues.append(ValidationIssue(
            invariant=CurveInvariant.spans_full_domain,
            message=f"Last segment must end at x = 1 (got {segments[last].p3.x})",
            segment_index=last,
        ))

    for idx in range(last):
        end, start = segments[idx].p3, segments[idx + 1].p0
        if end != start:
            issues.append(ValidationIssue(
                invariant=CurveInvariant.continuity,
                message=(
                    f"Segment {idx} ends at ({end.x}, {end.y}) but segment {idx + 1} "
                    f"starts at ({start.x}, {start.y})"
                ),
                segment_index=idx + 1,
            ))

    for idx, segment in enumerate(segments):
        if not segment.p0.x < segment.p3.x:
            issues.append(ValidationIssue(
                invariant=CurveInvariant.monotonic_x,
                message=f"Segment {idx} must advance in x (p0.x={segment.p0.x}, p3.x={segment.p3.x})",
                segment_index=idx,
            ))
        elif not is_x_monotonic(segment):
            issues.append(ValidationIssue(
                invariant=CurveInvariant.monotonic_x,
                message=f"Segment {idx} folds back in x; move its handles so x increases along the curve",
                segment_index=idx,
            ))

    return issues


def validate(config: BondingCurveConfig) -> ValidationResult:
    """
    Check a configuration against every invariant that applies to its kind.

    Returns:
        ValidationResult with `valid=True` and no issues, or `valid=False` and one
        issue per violation.
    """
    issues: List[ValidationIssue] = []

    if config.max_supply <= 0:
        issues.append(ValidationIssue(
            invariant=CurveInvariant.positive_max_supply,
            message=f"Max supply must be positive (got {config.max_supply})",
        ))

    if config.kind == CurveKind.bezier:
        if config.bezier is None:
            issues.append(ValidationIssue(
                invariant=CurveInvariant.bezier_data_matches_kind,
                message="Bezier curve configuration is missing its curve data",
            ))
        else:
            issues.extend(_check_bezier(config.bezier))
    else:
        if config.base_price < 0:
            issues.append(ValidationIssue(
                invariant=CurveInvariant.non_negative_base_price,
                message=f"Base price cannot be negative (got {config.base_price})",
            ))
        if config.price_increment < 0:
            issues.append(ValidationIssue(
                invariant=CurveInvariant.non_negative_price_increment,
                message=f"Price increment cannot be negative (got {config.price_increment})",
            ))
        if config.bezier is not None:
            issues.append(ValidationIssue(
                invariant=CurveInvariant.bezier_data_matches_kind,
                message=f"Bezier curve data is only allowed for bezier curves, not {config.kind.value}",
            ))

    if issues:
        logger.warning(f"Invalid {config.kind.value} curve configuration: {len(issues)} issue(s)")
        for issue in issues:
            logger.debug(f"  {issue.invariant.value}: {issue.message}")
        return ValidationResult(valid=False, issues=issues)
    return ValidationResult(valid=True)


def ensure_valid(config: BondingCurveConfig) -> None:
    """Raise CurveValidationError listing every violation if the configuration is invalid."""
    result = validate(config)
    if not result.valid:
        summary = "; ".join(issue.message for issue in result.issues)
        raise CurveValidationError(f"Invalid bonding curve configuration: {summary}", issues=result.issues)
