"""
Cubic Bezier Evaluation and Inversion

Pure geometry on a single `BezierSegment`:

- `point_at` evaluates B(t) = (1-t)^3 P0 + 3(1-t)^2 t P1 + 3(1-t) t^2 P2 + t^3 P3
  independently on x and y. `t` outside [0, 1] extrapolates; callers clamp.
- `derivative_x_at` is the analytic dx/dt used by the root finder.
- `solve_t_for_x` inverts x(t) = target with Newton-Raphson, falling back to
  bisection when the segment is flat in x or Newton runs out of iterations.
- `refine_t_for_x` / `y_at_decimal` polish that float root and evaluate y in
  Decimal at PRICE_CONTEXT, for prices that must be right to the lamport.

The bisection fallback relies on x(t) being non-decreasing on [0, 1], which the
validator guarantees before any segment is priced. Every loop is bounded by
its iteration budget, so the worst-case cost of a price is fixed.
"""
from decimal import Decimal, localcontext
from typing import Optional, Tuple

from mcp_solana_bonding_curve import config
from mcp_solana_bonding_curve.errors import RootFindingDivergenceError
from mcp_solana_bonding_curve.fixed_point import PRICE_CONTEXT
from mcp_solana_bonding_curve.schemas import BezierSegment
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)

# Five digits of headroom below PRICE_CONTEXT's precision.
_EXACT_TOLERANCE = Decimal(10) ** -(PRICE_CONTEXT.prec - 5)


def _blend(a, b, c, d, t):
    # Integer literals keep this usable with both float and Decimal operands.
    mt = 1 - t
    return mt * mt * mt * a + 3 * mt * mt * t * b + 3 * mt * t * t * c + t * t * t * d


def _blend_derivative(a, b, c, d, t):
    mt = 1 - t
    return 3 * mt * mt * (b - a) + 6 * mt * t * (c - b) + 3 * t * t * (d - c)


def _clamp_unit(value: float) -> float:
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def point_at(segment: BezierSegment, t: float) -> Tuple[float, float]:
    """Return the (x, y) point of the segment at parameter t."""
    p0, p1, p2, p3 = segment.control_points()
    return (
        _blend(p0.x, p1.x, p2.x, p3.x, t),
        _blend(p0.y, p1.y, p2.y, p3.y, t),
    )


def x_at(segment: BezierSegment, t: float) -> float:
    p0, p1, p2, p3 = segment.control_points()
    return _blend(p0.x, p1.x, p2.x, p3.x, t)


def y_at(segment: BezierSegment, t: float) -> float:
    p0, p1, p2, p3 = segment.control_points()
    return _blend(p0.y, p1.y, p2.y, p3.y, t)


def derivative_x_at(segment: BezierSegment, t: float) -> float:
    """dx/dt of the segment at t. Zero everywhere only for a segment with all x equal."""
    p0, p1, p2, p3 = segment.control_points()
    return _blend_derivative(p0.x, p1.x, p2.x, p3.x, t)


def derivative_at(segment: BezierSegment, t: float) -> Tuple[float, float]:
    """(dx/dt, dy/dt) of the segment at t."""
    p0, p1, p2, p3 = segment.control_points()
    return (
        _blend_derivative(p0.x, p1.x, p2.x, p3.x, t),
        _blend_derivative(p0.y, p1.y, p2.y, p3.y, t),
    )


def x_bounds(segment: BezierSegment) -> Tuple[float, float]:
    """The x-domain [p0.x, p3.x] owned by the segment."""
    return (min(segment.p0.x, segment.p3.x), max(segment.p0.x, segment.p3.x))


def _bisect(segment: BezierSegment, target_x: float, tolerance: float, max_iterations: int) -> Optional[float]:
    lo, hi = 0.0, 1.0
    for _ in range(max_iterations):
        mid = (lo + hi) / 2.0
        error = x_at(segment, mid) - target_x
        if abs(error) < tolerance:
            return mid
        if error < 0.0:
            lo = mid
        else:
            hi = mid
    return None


def solve_t_for_x(
    segment: BezierSegment,
    target_x: float,
    tolerance: Optional[float] = None,
    max_iterations: Optional[int] = None,
    derivative_epsilon: Optional[float] = None,
) -> float:
    """
    Find t in [0, 1] such that x(t) is within `tolerance` of `target_x`.

    Newton-Raphson starts from t0 = target_x clamped to [0, 1] and clamps every
    iterate back into [0, 1]. If |dx/dt| drops below `derivative_epsilon`, or the
    iteration budget is spent, the search restarts as bisection over [0, 1].

    Args:
        segment: A segment whose x(t) is non-decreasing on [0, 1].
        target_x: The x value to invert; clamped into the segment's x-domain.
        tolerance: Convergence tolerance on x. Defaults to NEWTON_TOLERANCE.
        max_iterations: Budget for each method. Defaults to NEWTON_MAX_ITERATIONS.
        derivative_epsilon: Flatness threshold. Defaults to DERIVATIVE_EPSILON.

    Returns:
        The parameter t.

    Raises:
        RootFindingDivergenceError: If neither method converges within the budget.
    """
    tolerance = config.NEWTON_TOLERANCE if tolerance is None else tolerance
    max_iterations = config.NEWTON_MAX_ITERATIONS if max_iterations is None else max_iterations
    derivative_epsilon = config.DERIVATIVE_EPSILON if derivative_epsilon is None else derivative_epsilon

    lo_x, hi_x = x_bounds(segment)
    target = min(max(target_x, lo_x), hi_x)

    t = _clamp_unit(target_x)
    for _ in range(max_iterations):
        error = x_at(segment, t) - target
        if abs(error) < tolerance:
            return t
        slope = derivative_x_at(segment, t)
        if abs(slope) < derivative_epsilon:
            logger.debug(f"Flat segment at t={t:.12f} (dx/dt={slope:.3e}); switching to bisection")
            break
        t = _clamp_unit(t - error / slope)
    else:
        if abs(x_at(segment, t) - target) < tolerance:
            return t
        logger.debug(f"Newton did not converge for x={target} in {max_iterations} iterations; switching to bisection")

    result = _bisect(segment, target, tolerance, max_iterations)
    if result is None:
        logger.warning(f"Root finding diverged for x={target} on segment {segment}")
        raise RootFindingDivergenceError(
            f"Could not solve x(t)={target} within tolerance {tolerance} in {max_iterations} iterations"
        )
    return result


def refine_t_for_x(
    segment: BezierSegment,
    target_x: Decimal,
    t_hint: float,
    max_iterations: Optional[int] = None,
) -> Decimal:
    """
    Polish a float root of x(t) = target_x to PRICE_CONTEXT precision.

    Safeguarded Newton in Decimal, started from `t_hint` (normally the result of
    `solve_t_for_x`). Each evaluation narrows a bracket around the root, and a
    step that would leave the bracket is replaced by bisection, so the search
    cannot diverge. Returns the best t found within the budget.
    """
    max_iterations = config.EXACT_REFINE_ITERATIONS if max_iterations is None else max_iterations

    with localcontext(PRICE_CONTEXT):
        a, b, c, d = (Decimal(p.x) for p in segment.control_points())
        target = min(max(target_x, min(a, d)), max(a, d))
        lo, hi = Decimal(0), Decimal(1)
        t = Decimal(_clamp_unit(t_hint))

        for _ in range(max_iterations):
            error = _blend(a, b, c, d, t) - target
            if abs(error) <= _EXACT_TOLERANCE:
                return t
            if error < 0:
                lo = t
            else:
                hi = t
            slope = _blend_derivative(a, b, c, d, t)
            step = t - error / slope if slope else None
            t = step if step is not None and lo < step < hi else (lo + hi) / 2

        logger.debug(f"Decimal refinement for x={target} used its full budget of {max_iterations} iterations")
        return t


def y_at_decimal(segment: BezierSegment, t: Decimal) -> Decimal:
    """The segment's y at a Decimal parameter, at PRICE_CONTEXT precision."""
    with localcontext(PRICE_CONTEXT):
        p0, p1, p2, p3 = segment.control_points()
        return _blend(Decimal(p0.y), Decimal(p1.y), Decimal(p2.y), Decimal(p3.y), t)


def y_at_x(
    segment: BezierSegment,
    target_x: float,
    tolerance: Optional[float] = None,
    max_iterations: Optional[int] = None,
) -> float:
    """The segment's y at the given x (solve for t, then evaluate y)."""
    t = solve_t_for_x(segment, target_x, tolerance=tolerance, max_iterations=max_iterations)
    return y_at(segment, t)
