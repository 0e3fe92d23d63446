import pytest

from mcp_solana_bonding_curve.schemas import (
    BezierCurveData,
    BezierSegment,
    BondingCurveConfig,
    ControlPoint,
    CurveKind,
)


def point(x, y):
    return ControlPoint(x=x, y=y)


def segment(p0, p1, p2, p3):
    return BezierSegment(p0=point(*p0), p1=point(*p1), p2=point(*p2), p3=point(*p3))


@pytest.fixture
def linear_config():
    """Linear{base=100, increment=10, max_supply=5}: prices 100..140."""
    return BondingCurveConfig(kind=CurveKind.linear, base_price=100, price_increment=10, max_supply=5)


@pytest.fixture
def s_curve_segment():
    return segment((0.0, 0.0), (0.2, 0.0), (0.8, 1.0), (1.0, 1.0))


@pytest.fixture
def s_curve_config(s_curve_segment):
    """The editor's default S-curve between 1 and 10 lamports over 101 editions."""
    data = BezierCurveData(segments=(s_curve_segment,), min_price=1, max_price=10)
    return BondingCurveConfig(kind=CurveKind.bezier, max_supply=101, bezier=data)


@pytest.fixture
def two_segment_data():
    # Shared endpoint at (0.5, 0.5); supply 500 of 1001 maps to x = 0.5 exactly.
    return BezierCurveData(
        segments=(
            segment((0.0, 0.0), (0.2, 0.1), (0.35, 0.4), (0.5, 0.5)),
            segment((0.5, 0.5), (0.65, 0.6), (0.8, 0.9), (1.0, 1.0)),
        ),
        min_price=0,
        max_price=1_000_000,
    )


@pytest.fixture
def two_segment_config(two_segment_data):
    return BondingCurveConfig(kind=CurveKind.bezier, max_supply=1001, bezier=two_segment_data)
