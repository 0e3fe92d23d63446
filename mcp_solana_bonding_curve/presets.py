"""
Ready-made Bezier curves for the curve editor.

Every preset is built from a `BezierPath`, so adjacent segments always share
their endpoint. Nothing here adjusts a curve a user has authored; discontinuous
input is rejected by `create_multi_segment_bezier`.
"""
from typing import Dict, Sequence, Tuple

from mcp_solana_bonding_curve.schemas import (
    BezierCurveData,
    BezierPath,
    BezierSegment,
    BondingCurveConfig,
    ControlPoint,
    CurveKind,
)


def _point(x: float, y: float) -> ControlPoint:
    return ControlPoint(x=x, y=y)


# Handles (p1, p2) of single-segment approximations of the analytic kinds.
_KIND_HANDLES: Dict[CurveKind, Tuple[Tuple[float, float], Tuple[float, float]]] = {
    CurveKind.linear: ((1 / 3, 1 / 3), (2 / 3, 2 / 3)),
    CurveKind.exponential: ((0.1, 0.0), (0.5, 0.7)),
    CurveKind.logarithmic: ((0.5, 0.3), (0.9, 1.0)),
}


def default_bezier_path(min_price: int, max_price: int) -> BezierPath:
    """Slow start, fast finish: (0,0) (0.2,0) (0.8,1) (1,1)."""
    return BezierPath(
        anchors=(_point(0.0, 0.0), _point(1.0, 1.0)),
        handles=((_point(0.2, 0.0), _point(0.8, 1.0)),),
        min_price=min_price,
        max_price=max_price,
    )


def create_default_bezier_curve(min_price: int, max_price: int) -> BezierCurveData:
    """The default S-curve the editor starts from."""
    return default_bezier_path(min_price, max_price).to_curve_data()


def create_multi_segment_bezier(
    segments: Sequence[BezierSegment], min_price: int, max_price: int
) -> BezierCurveData:
    """
    Build curve data from authored segments.

    Raises:
        CurveValidationError: If a segment does not start where the previous one ends.
    """
    data = BezierCurveData(segments=tuple(segments), min_price=min_price, max_price=max_price)
    return BezierPath.from_curve_data(data).to_curve_data()


def curve_kind_to_bezier(kind: CurveKind, min_price: int, max_price: int) -> BezierCurveData:
    """Single-segment Bezier approximating the shape of an analytic curve kind."""
    if kind not in _KIND_HANDLES:
        raise ValueError(f"No Bezier approximation for curve kind '{kind.value}'")
    (x1, y1), (x2, y2) = _KIND_HANDLES[kind]
    path = BezierPath(
        anchors=(_point(0.0, 0.0), _point(1.0, 1.0)),
        handles=((_point(x1, y1), _point(x2, y2)),),
        min_price=min_price,
        max_price=max_price,
    )
    return path.to_curve_data()


def bezier_config(data: BezierCurveData, max_supply: int) -> BondingCurveConfig:
    """Wrap curve data in a bezier BondingCurveConfig."""
    return BondingCurveConfig(kind=CurveKind.bezier, max_supply=max_supply, bezier=data)
