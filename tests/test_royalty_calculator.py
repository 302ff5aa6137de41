import math
import pathlib
import sys
from datetime import datetime, timedelta, timezone

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from core.errors import InvalidInputException
from modules.royalty.calculator import RoyaltyCalculator, format_percentage, round_half_up
from modules.royalty.schemas import RoyaltyCalculationRequest
from modules.royalty.service import build_record, calculation_report, default_payment_due_date, run_calculation
from modules.royalty_settings.schemas import DEFAULT_ROYALTY_SETTINGS, RoyaltySettings

FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


def test_default_scenario_reproduces_issued_figures():
    calculator = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS)

    result = calculator.calculate(100, 50, 0.4, calculation_date=FIXED_NOW)
    calc = result.calculations

    assert calc.total_explosive_quantity == pytest.approx(170.0)
    assert calc.basic_volume == pytest.approx(425.0)
    assert calc.blasted_rock_volume == 240.28
    assert calc.base_royalty == pytest.approx(57667.2)
    assert calc.royalty_with_sscl == pytest.approx(57667.2 * 1.0256)
    assert round(calc.royalty_with_sscl, 2) == pytest.approx(59143.48)
    assert calc.total_amount_with_vat == pytest.approx(57667.2 * 1.0256 * 1.18)
    assert round(calc.total_amount_with_vat, 2) == pytest.approx(69789.31)

    assert result.inputs.water_gel_kg == 100
    assert result.inputs.nh4no3_kg == 50
    assert result.inputs.powder_factor == 0.4
    assert result.rates_applied.royalty_rate_per_cubic_meter == 240
    assert result.rates_applied.sscl_rate == "2.56%"
    assert result.rates_applied.vat_rate == "18%"
    assert result.warning_message is None
    assert result.calculation_date == FIXED_NOW


def test_base_royalty_uses_rounded_volume():
    calculator = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS)
    raw_volume = (170 * 1.6) / (0.4 * 2.83)

    result = calculator.calculate(100, 50, 0.4)

    assert result.calculations.base_royalty == pytest.approx(round_half_up(raw_volume) * 240)
    assert result.calculations.base_royalty != pytest.approx(raw_volume * 240, abs=1e-6)


def test_zero_powder_factor_uses_default_and_warns():
    calculator = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS)

    result = calculator.calculate(100, 50, 0)

    assert result.inputs.powder_factor == 0.5
    assert result.warning_message
    assert "0.5" in result.warning_message
    assert result.warning_message == "Powder Factor cannot be zero. Using default value of 0.5 instead."
    assert result.calculations.basic_volume == pytest.approx(170 / 0.5)


def test_custom_settings_flow_through_every_step():
    settings = RoyaltySettings(
        waterGelMultiplier=2,
        expansionFactor=1,
        powderFactorMultiplier=1,
        royaltyRatePerM3=100,
        ssclPercentage=10,
        vatPercentage=0,
        defaultPowderFactor=1,
    )
    result = RoyaltyCalculator(settings=settings).calculate(10, 5, 2)

    assert result.calculations.total_explosive_quantity == pytest.approx(25)
    assert result.calculations.blasted_rock_volume == 12.5
    assert result.calculations.base_royalty == pytest.approx(1250)
    assert result.calculations.royalty_with_sscl == pytest.approx(1375)
    assert result.calculations.total_amount_with_vat == pytest.approx(1375)
    assert result.rates_applied.vat_rate == "0%"


def test_repeated_calls_are_deterministic():
    calculator = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS)

    first = calculator.calculate(123.4, 56.7, 0.45)
    second = calculator.calculate(123.4, 56.7, 0.45)

    assert first.calculations == second.calculations
    assert first.inputs == second.inputs


def test_calls_do_not_share_state():
    calculator = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS)

    first = calculator.calculate(100, 50, 0.4)
    snapshot = first.model_dump()
    second = calculator.calculate(10, 5, 0)

    assert first.model_dump() == snapshot
    assert first.warning_message is None
    assert second.warning_message is not None
    assert second.inputs.powder_factor == 0.5
    assert calculator.settings == DEFAULT_ROYALTY_SETTINGS


@pytest.mark.parametrize(
    "water_gel,nh4no3,powder_factor",
    [
        (-1, 50, 0.4),
        (100, -0.01, 0.4),
        (100, 50, -0.4),
        ("100", 50, 0.4),
        (None, 50, 0.4),
        (float("nan"), 50, 0.4),
        (100, float("inf"), 0.4),
        (True, 50, 0.4),
    ],
)
def test_invalid_inputs_are_rejected(water_gel, nh4no3, powder_factor):
    calculator = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS)
    with pytest.raises(InvalidInputException):
        calculator.calculate(water_gel, nh4no3, powder_factor)


def test_zero_quantities_are_allowed():
    result = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS).calculate(0, 0, 0.4)
    assert result.calculations.total_amount_with_vat == 0


def test_round_half_up_rounds_cents_away_from_even():
    assert round_half_up(0.125) == 0.13
    assert round_half_up(2.675) == 2.68
    assert round_half_up(240.28268) == 240.28
    assert round_half_up(1.005) == 1.01


def test_percentage_rendering():
    assert format_percentage(2.56) == "2.56%"
    assert format_percentage(18.0) == "18%"
    assert format_percentage(0) == "0%"


def test_result_omits_absent_warning_when_serialized():
    result = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS).calculate(100, 50, 0.4)
    payload = result.model_dump(mode="json", exclude_none=True)
    assert "warning_message" not in payload
    assert set(payload["calculations"]) == {
        "total_explosive_quantity",
        "basic_volume",
        "blasted_rock_volume",
        "base_royalty",
        "royalty_with_sscl",
        "total_amount_with_vat",
    }


def test_run_calculation_defaults_payment_due_date():
    request = RoyaltyCalculationRequest(water_gel=100, nh4no3=50, powder_factor=0.4)

    result = run_calculation(DEFAULT_ROYALTY_SETTINGS, request, payment_due_days=14)

    assert result.payment_due_date - result.calculation_date == timedelta(days=14)


def test_run_calculation_passes_due_date_through():
    due = datetime(2026, 12, 1, tzinfo=timezone.utc)
    request = RoyaltyCalculationRequest(water_gel=100, nh4no3=50, powder_factor=0.4, payment_due_date=due)

    result = run_calculation(DEFAULT_ROYALTY_SETTINGS, request, payment_due_days=14)

    assert result.payment_due_date == due


def test_default_payment_due_date():
    assert default_payment_due_date(FIXED_NOW, 14) == FIXED_NOW + timedelta(days=14)


def test_build_record_flattens_result():
    result = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS).calculate(
        100, 50, 0, payment_due_date=FIXED_NOW + timedelta(days=14), calculation_date=FIXED_NOW
    )

    record = build_record(7, result)

    assert record.miner_id == 7
    assert record.powder_factor == 0.5
    assert record.blasted_rock_volume == result.calculations.blasted_rock_volume
    assert record.total_amount_with_vat == result.calculations.total_amount_with_vat
    assert record.calculation_date == FIXED_NOW
    assert record.payment_due_date == FIXED_NOW + timedelta(days=14)


def test_round_half_up_handles_large_magnitudes():
    assert round_half_up(1e30) == 1e30
    assert round_half_up(123456789012345678.0) == 123456789012345678.0
    assert round_half_up(1e300) == 1e300


def test_round_half_up_rejects_non_finite_values():
    with pytest.raises(ValueError):
        round_half_up(float("inf"))
    with pytest.raises(ValueError):
        round_half_up(float("nan"))


def test_very_large_quantities_produce_finite_totals():
    result = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS).calculate(1e30, 0, 0.4)

    raw_volume = (1e30 * 1.2 * 1.6) / (0.4 * 2.83)
    assert result.calculations.blasted_rock_volume == pytest.approx(raw_volume, rel=1e-12)
    assert math.isfinite(result.calculations.total_amount_with_vat)
    assert result.calculations.total_amount_with_vat > 0


@pytest.mark.parametrize(
    "water_gel,nh4no3,powder_factor",
    [
        (100, 50, 5e-324),
        (1e308, 0, 0.4),
        (0, 1.7e308, 1e-10),
    ],
)
def test_unrepresentable_amounts_are_invalid_input(water_gel, nh4no3, powder_factor):
    calculator = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS)
    with pytest.raises(InvalidInputException):
        calculator.calculate(water_gel, nh4no3, powder_factor)


def test_vanishing_denominator_is_invalid_input():
    settings = DEFAULT_ROYALTY_SETTINGS.model_copy(update={"powder_factor_multiplier": 1e-30})
    with pytest.raises(InvalidInputException):
        RoyaltyCalculator(settings=settings).calculate(0, 1, 1e-300)


def test_calculation_report_carries_rates_and_warning():
    result = RoyaltyCalculator(settings=DEFAULT_ROYALTY_SETTINGS).calculate(10, 5, 0, calculation_date=FIXED_NOW)

    report = calculation_report(result)

    assert "miner_id" not in report
    assert report["powder_factor"] == 0.5
    assert report["total_amount_with_vat"] == result.calculations.total_amount_with_vat
    assert report["rates_applied"] == {
        "royalty_rate_per_cubic_meter": 240,
        "sscl_rate": "2.56%",
        "vat_rate": "18%",
    }
    assert "0.5" in report["warning_message"]
