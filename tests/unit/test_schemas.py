import json

import pytest
from pydantic import ValidationError

from mcp_solana_bonding_curve.bezier import point_at
from mcp_solana_bonding_curve.errors import CurveValidationError
from mcp_solana_bonding_curve.presets import default_bezier_path
from mcp_solana_bonding_curve.schemas import (
    BezierCurveData,
    BezierPath,
    BondingCurveConfig,
    ControlPoint,
    CurveInvariant,
    CurveKind,
)
from mcp_solana_bonding_curve.validator import validate


def test_parses_studio_json():
    payload = {
        "type": "bezier",
        "maxSupply": 100,
        "bezierCurve": {
            "segments": [
                {
                    "p0": {"x": 0, "y": 0},
                    "p1": {"x": 0.2, "y": 0},
                    "p2": {"x": 0.8, "y": 1},
                    "p3": {"x": 1, "y": 1},
                }
            ],
            "minPrice": 1_000_000,
            "maxPrice": 5_000_000,
        },
    }
    config = BondingCurveConfig.model_validate_json(json.dumps(payload))
    assert config.kind == CurveKind.bezier
    assert config.max_supply == 100
    assert config.base_price == 0
    assert config.bezier.min_price == 1_000_000
    assert config.bezier.segments[0].p1 == ControlPoint(x=0.2, y=0.0)


def test_parses_snake_case():
    config = BondingCurveConfig.model_validate(
        {"kind": "linear", "base_price": 100, "price_increment": 10, "max_supply": 5}
    )
    assert config.price_increment == 10


def test_rejects_unknown_kind():
    with pytest.raises(ValidationError):
        BondingCurveConfig.model_validate({"kind": "sigmoid", "max_supply": 5})


def test_models_are_frozen(linear_config, s_curve_segment):
    with pytest.raises(ValidationError):
        linear_config.base_price = 1
    with pytest.raises(ValidationError):
        s_curve_segment.p0.x = 0.5


def test_path_round_trip(two_segment_data):
    path = BezierPath.from_curve_data(two_segment_data)
    assert path.segment_count == 2
    assert len(path.anchors) == 3
    assert path.to_curve_data() == two_segment_data


def test_path_rejects_discontinuous_segments(two_segment_data):
    first, second = two_segment_data.segments
    broken = second.model_copy(update={"p0": ControlPoint(x=0.5, y=0.6)})
    data = BezierCurveData(segments=(first, broken), min_price=0, max_price=10)
    with pytest.raises(CurveValidationError) as exc_info:
        BezierPath.from_curve_data(data)
    assert exc_info.value.issues[0].invariant == CurveInvariant.continuity
    assert exc_info.value.issues[0].segment_index == 1


def test_path_requires_matching_anchor_count():
    handles = ((ControlPoint(x=0.2, y=0.0), ControlPoint(x=0.8, y=1.0)),)
    with pytest.raises(ValidationError):
        BezierPath(anchors=(ControlPoint(x=0.0, y=0.0),), handles=handles, min_price=0, max_price=1)


def test_moving_shared_anchor_keeps_segments_joined(two_segment_data):
    path = BezierPath.from_curve_data(two_segment_data).move_anchor(1, ControlPoint(x=0.4, y=0.55))
    data = path.to_curve_data()
    assert data.segments[0].p3 == data.segments[1].p0 == ControlPoint(x=0.4, y=0.55)
    assert validate(BondingCurveConfig(kind=CurveKind.bezier, max_supply=10, bezier=data)).valid


def test_move_handle():
    path = default_bezier_path(1, 10).move_handle(0, 2, ControlPoint(x=0.7, y=0.9))
    assert path.segment(0).p2 == ControlPoint(x=0.7, y=0.9)
    assert path.segment(0).p1 == ControlPoint(x=0.2, y=0.0)
    with pytest.raises(ValueError):
        path.move_handle(0, 3, ControlPoint(x=0.5, y=0.5))


def test_split_segment_preserves_shape():
    path = default_bezier_path(1, 10)
    split = path.split_segment(0, 0.5)
    assert split.segment_count == 2
    original = path.segment(0)
    left, right = split.segment(0), split.segment(1)
    assert split.anchors[1].x == pytest.approx(0.5)
    for t in (0.0, 0.3, 0.7, 1.0):
        # left covers t in [0, 0.5] of the original, right covers [0.5, 1]
        assert point_at(left, t) == pytest.approx(point_at(original, t / 2))
        assert point_at(right, t) == pytest.approx(point_at(original, 0.5 + t / 2))


def test_remove_anchor_merges_segments(two_segment_data):
    path = BezierPath.from_curve_data(two_segment_data).remove_anchor(1)
    assert path.segment_count == 1
    seg = path.segment(0)
    assert seg.p0 == two_segment_data.segments[0].p0
    assert seg.p1 == two_segment_data.segments[0].p1
    assert seg.p2 == two_segment_data.segments[1].p2
    assert seg.p3 == two_segment_data.segments[1].p3


def test_remove_endpoint_anchor_is_rejected(two_segment_data):
    path = BezierPath.from_curve_data(two_segment_data)
    with pytest.raises(ValueError):
        path.remove_anchor(0)
    with pytest.raises(ValueError):
        path.remove_anchor(2)


def test_with_price_range():
    path = default_bezier_path(1, 10).with_price_range(5, 50)
    assert (path.min_price, path.max_price) == (5, 50)
