from decimal import Decimal

import pytest

from mcp_solana_bonding_curve.errors import PriceOverflowError, PricingErrorKind, SupplyOutOfRangeError
from mcp_solana_bonding_curve.fixed_point import (
    MAX_LAMPORTS,
    format_lamports,
    lamports_to_sol,
    round_down,
    snap_to_grid,
    sol_to_lamports,
    to_lamports,
)
from mcp_solana_bonding_curve.pricing import (
    calculate_price,
    evaluate_bezier_curve,
    growth_factor,
    locate_segment,
    normalize_supply,
    price_at,
)
from mcp_solana_bonding_curve.presets import bezier_config, curve_kind_to_bezier
from mcp_solana_bonding_curve.schemas import BezierCurveData, BondingCurveConfig, CurveInvariant, CurveKind


def test_linear_prices(linear_config):
    assert [calculate_price(linear_config, s) for s in range(5)] == [100, 110, 120, 130, 140]


def test_linear_price_at(linear_config):
    result = price_at(linear_config, 3)
    assert result.ok
    assert result.price == 130
    assert result.supply == 3


def test_logarithmic_prices():
    config = BondingCurveConfig(kind=CurveKind.logarithmic, base_price=100, price_increment=50, max_supply=10)
    assert calculate_price(config, 0) == 100
    # 50 * ln(2) = 34.657...
    assert calculate_price(config, 1) == 134
    # 50 * ln(10) = 115.129...
    assert calculate_price(config, 9) == 215


def test_exponential_prices():
    config = BondingCurveConfig(kind=CurveKind.exponential, base_price=100, price_increment=10, max_supply=10)
    # 100 * 1.1^s rounded down; 133.1 -> 133
    assert [calculate_price(config, s) for s in range(4)] == [100, 110, 121, 133]


def test_exponential_with_zero_base_price_stays_zero():
    config = BondingCurveConfig(kind=CurveKind.exponential, base_price=0, price_increment=10, max_supply=10)
    assert [calculate_price(config, s) for s in range(10)] == [0] * 10


def test_growth_factor():
    config = BondingCurveConfig(kind=CurveKind.exponential, base_price=200, price_increment=10, max_supply=10)
    assert float(growth_factor(config)) == pytest.approx(1.05)
    zero_base = BondingCurveConfig(kind=CurveKind.exponential, base_price=0, price_increment=10, max_supply=10)
    assert float(growth_factor(zero_base)) == pytest.approx(1.05)


def test_s_curve_boundaries(s_curve_config):
    assert calculate_price(s_curve_config, 0) == 1
    assert calculate_price(s_curve_config, 100) == 10


def test_s_curve_midpoint_rounds_down(s_curve_config):
    # y(0.5) = 0.5 maps to 1 + 0.5 * 9 = 5.5
    assert calculate_price(s_curve_config, 50) == 5


def test_two_segment_boundaries(two_segment_config):
    assert calculate_price(two_segment_config, 0) == 0
    assert calculate_price(two_segment_config, 1000) == 1_000_000


def test_two_segment_continuity_at_shared_endpoint(two_segment_config):
    before, at, after = (calculate_price(two_segment_config, s) for s in (499, 500, 501))
    assert at == 500_000
    assert before < at < after
    assert after - before < 2_000


def test_evaluate_bezier_curve_is_continuous_across_segments(two_segment_data):
    left = float(evaluate_bezier_curve(two_segment_data, 0.5 - 1e-12))
    right = float(evaluate_bezier_curve(two_segment_data, 0.5 + 1e-12))
    assert left == pytest.approx(0.5, abs=1e-8)
    assert right == pytest.approx(0.5, abs=1e-8)


def test_evaluate_bezier_curve_clamps_input(two_segment_data):
    assert evaluate_bezier_curve(two_segment_data, -0.25) == 0
    assert evaluate_bezier_curve(two_segment_data, 1.5) == 1


@pytest.mark.parametrize("supply", [5, 6, -1])
def test_supply_out_of_range_raises(linear_config, supply):
    with pytest.raises(SupplyOutOfRangeError) as exc_info:
        calculate_price(linear_config, supply)
    assert exc_info.value.kind == PricingErrorKind.supply_out_of_range


@pytest.mark.parametrize("supply", [5, -1])
def test_supply_out_of_range_result(linear_config, supply):
    result = price_at(linear_config, supply)
    assert not result.ok
    assert result.price is None
    assert result.error == PricingErrorKind.supply_out_of_range
    assert "out of range" in result.message


def test_price_at_reports_invalid_configuration():
    data = BezierCurveData(segments=(), min_price=0, max_price=10)
    config = BondingCurveConfig(kind=CurveKind.bezier, max_supply=10, bezier=data)
    result = price_at(config, 0)
    assert result.error == PricingErrorKind.validation_error
    assert [issue.invariant for issue in result.issues] == [CurveInvariant.non_empty_segments]


def test_prices_are_deterministic(two_segment_config):
    first = [calculate_price(two_segment_config, s) for s in range(0, 1001, 37)]
    second = [calculate_price(two_segment_config, s) for s in range(0, 1001, 37)]
    assert first == second


def test_every_supply_of_a_valid_curve_prices(s_curve_config):
    for supply in range(s_curve_config.max_supply):
        result = price_at(s_curve_config, supply)
        assert result.ok
        assert 1 <= result.price <= 10


def test_bezier_prices_follow_monotone_y(two_segment_config):
    prices = [calculate_price(two_segment_config, s) for s in range(0, 1001, 10)]
    assert prices == sorted(prices)


def test_single_edition_bezier_uses_start_of_curve(s_curve_segment):
    data = BezierCurveData(segments=(s_curve_segment,), min_price=7, max_price=70)
    config = BondingCurveConfig(kind=CurveKind.bezier, max_supply=1, bezier=data)
    assert calculate_price(config, 0) == 7


def test_locate_segment(two_segment_data):
    segments = two_segment_data.segments
    assert locate_segment(segments, 0.0) == 0
    assert locate_segment(segments, 0.25) == 0
    assert locate_segment(segments, 0.5) == 0
    assert locate_segment(segments, 0.5000001) == 1
    assert locate_segment(segments, 1.0) == 1


def test_normalize_supply():
    assert normalize_supply(0, 101) == 0.0
    assert normalize_supply(50, 101) == 0.5
    assert normalize_supply(100, 101) == 1.0
    assert normalize_supply(0, 1) == 0.0


def test_round_down():
    assert round_down(5) == 5
    assert round_down(Decimal("5.999")) == 5
    assert round_down(Decimal("-0.5")) == -1
    assert round_down(5.5) == 5


def test_lamport_conversions():
    assert lamports_to_sol(1_500_000_000) == Decimal("1.5")
    assert sol_to_lamports("0.000000001") == 1
    assert sol_to_lamports(2.5) == 2_500_000_000
    assert format_lamports(1_500_000_000) == "1.5000"
    assert format_lamports(250_000_000, decimals=2) == "0.25"


def test_linear_bezier_prices_every_edition_exactly():
    config = bezier_config(curve_kind_to_bezier(CurveKind.linear, 0, 1_000), 1_001)
    assert [calculate_price(config, s) for s in range(1_001)] == list(range(1_001))


def test_linear_bezier_does_not_lose_a_lamport_between_samples():
    config = bezier_config(curve_kind_to_bezier(CurveKind.linear, 0, 100), 11)
    assert [calculate_price(config, s) for s in range(11)] == [0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100]


def test_exponential_integer_prices_are_exact():
    # Growth factor 4/3: 9, 12, 16 are exact, so truncation noise must not drop 16 to 15
    config = BondingCurveConfig(kind=CurveKind.exponential, base_price=9, price_increment=3, max_supply=3)
    assert [calculate_price(config, s) for s in range(3)] == [9, 12, 16]


def test_exponential_large_supply_within_u64():
    config = BondingCurveConfig(
        kind=CurveKind.exponential, base_price=1_000_000, price_increment=1, max_supply=10_000_001
    )
    # 10^6 * (1 + 10^-6)^(10^7) ~= 10^6 * e^9.999995
    assert 22_026_000_000 < calculate_price(config, 10_000_000) < 22_027_000_000


def test_exponential_overflow_raises():
    config = BondingCurveConfig(kind=CurveKind.exponential, base_price=1_000, price_increment=1, max_supply=1_000_001)
    with pytest.raises(PriceOverflowError) as exc_info:
        calculate_price(config, 1_000_000)
    assert exc_info.value.kind == PricingErrorKind.price_overflow
    assert exc_info.value.supply == 1_000_000


def test_exponential_overflow_result():
    config = BondingCurveConfig(kind=CurveKind.exponential, base_price=1_000, price_increment=1, max_supply=1_000_001)
    result = price_at(config, 1_000_000)
    assert not result.ok
    assert result.price is None
    assert result.error == PricingErrorKind.price_overflow


def test_exponential_price_past_decimal_range_is_an_overflow():
    config = BondingCurveConfig(kind=CurveKind.exponential, base_price=1, price_increment=10**18, max_supply=10**7)
    assert price_at(config, 10**7 - 1).error == PricingErrorKind.price_overflow


def test_linear_price_at_u64_limit():
    config = BondingCurveConfig(kind=CurveKind.linear, base_price=MAX_LAMPORTS - 1, price_increment=1, max_supply=3)
    assert calculate_price(config, 1) == MAX_LAMPORTS
    with pytest.raises(PriceOverflowError):
        calculate_price(config, 2)


@pytest.mark.parametrize(
    "config",
    [
        BondingCurveConfig(kind=CurveKind.linear, base_price=100, price_increment=10, max_supply=300),
        BondingCurveConfig(kind=CurveKind.linear, base_price=0, price_increment=1, max_supply=300),
        BondingCurveConfig(kind=CurveKind.exponential, base_price=100, price_increment=10, max_supply=300),
        BondingCurveConfig(kind=CurveKind.exponential, base_price=1_000, price_increment=1, max_supply=300),
        BondingCurveConfig(kind=CurveKind.logarithmic, base_price=100, price_increment=10, max_supply=1_000),
        BondingCurveConfig(kind=CurveKind.logarithmic, base_price=0, price_increment=1_000_000, max_supply=1_000),
    ],
    ids=["linear", "linear-zero-base", "exponential", "exponential-slow", "logarithmic", "logarithmic-steep"],
)
def test_analytic_prices_never_decrease(config):
    prices = [calculate_price(config, s) for s in range(config.max_supply)]
    assert all(earlier <= later for earlier, later in zip(prices, prices[1:]))
    assert prices[-1] > prices[0]


def test_snap_to_grid_absorbs_truncation_noise():
    assert snap_to_grid(Decimal("6.99999999999999999999")) == Decimal("7")
    assert snap_to_grid(Decimal("5.4999999")) == Decimal("5.4999999")


def test_to_lamports():
    assert to_lamports(Decimal("6.99999999999999999999")) == 7
    assert to_lamports(Decimal("6.9999")) == 6
    assert to_lamports(Decimal("5.5")) == 5
    assert to_lamports(12) == 12
