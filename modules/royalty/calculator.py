"""Royalty computation from explosive usage.

The formula runs in a fixed order and the blasted rock volume is rounded to
cents *before* it is priced, so results match the figures issued to miners:

1. TEQ                  = water_gel * waterGelMultiplier + nh4no3
2. basic volume         = TEQ / powder_factor
3. blasted rock volume  = round2((TEQ * expansionFactor) / (powder_factor * powderFactorMultiplier))
4. base royalty         = blasted rock volume * royaltyRatePerM3
5. royalty with SSCL    = base royalty * (1 + ssclPercentage / 100)
6. total with VAT       = royalty with SSCL * (1 + vatPercentage / 100)

A powder factor of 0 is replaced by ``defaultPowderFactor`` and reported in
``warning_message``.
"""

import logging
import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional

from core.errors import InvalidInputException
from modules.royalty.schemas import (
    CalculationInputs,
    CalculationSteps,
    RatesApplied,
    RoyaltyCalculationResult,
)
from modules.royalty_settings.schemas import RoyaltySettings

logger = logging.getLogger(__name__)

ZERO_POWDER_FACTOR_WARNING = "Powder Factor cannot be zero. Using default value of {default} instead."


def round_half_up(value: float, places: int = 2) -> float:
    if not math.isfinite(value):
        raise ValueError(f"cannot round non-finite value {value!r}")
    exact = Decimal(repr(value))
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        # Enough digits for every integer digit plus the kept decimals.
        ctx.prec = max(ctx.prec, exact.adjusted() + places + 2)
        return float(exact.quantize(quantum, rounding=ROUND_HALF_UP))


def format_number(value: float) -> str:
    """Render 18.0 as "18" and 2.56 as "2.56"."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_percentage(value: float) -> str:
    return f"{format_number(value)}%"


def validate_inputs(water_gel, nh4no3, powder_factor) -> None:
    for name, value in (("water_gel", water_gel), ("nh4no3", nh4no3), ("powder_factor", powder_factor)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInputException(f"{name} must be a number")
        if not math.isfinite(value):
            raise InvalidInputException(f"{name} must be a finite number")
        if value < 0:
            raise InvalidInputException(f"{name} cannot be negative")


def _require_finite(*values: float) -> None:
    if not all(math.isfinite(v) for v in values):
        raise InvalidInputException("Inputs are too large to produce a representable royalty amount")


class RoyaltyCalculator:
    def __init__(self, settings: RoyaltySettings):
        self.settings = settings

    def calculate(
        self,
        water_gel: float,
        nh4no3: float,
        powder_factor: float,
        payment_due_date: Optional[datetime] = None,
        calculation_date: Optional[datetime] = None,
    ) -> RoyaltyCalculationResult:
        validate_inputs(water_gel, nh4no3, powder_factor)
        settings = self.settings

        warning_message = None
        if powder_factor == 0:
            powder_factor = settings.default_powder_factor
            warning_message = ZERO_POWDER_FACTOR_WARNING.format(default=format_number(powder_factor))
            logger.info("Zero powder factor replaced by default %s", powder_factor)

        total_explosive_quantity = water_gel * settings.water_gel_multiplier + nh4no3
        try:
            basic_volume = total_explosive_quantity / powder_factor
            raw_volume = (total_explosive_quantity * settings.expansion_factor) / (
                powder_factor * settings.powder_factor_multiplier
            )
        except (ZeroDivisionError, OverflowError) as exc:
            raise InvalidInputException("powder_factor is too small to produce a rock volume") from exc
        _require_finite(basic_volume, raw_volume)
        blasted_rock_volume = round_half_up(raw_volume)
        base_royalty = blasted_rock_volume * settings.royalty_rate_per_m3
        royalty_with_sscl = base_royalty * (1 + settings.sscl_percentage / 100)
        total_amount_with_vat = royalty_with_sscl * (1 + settings.vat_percentage / 100)
        _require_finite(base_royalty, royalty_with_sscl, total_amount_with_vat)

        return RoyaltyCalculationResult(
            calculation_date=calculation_date or datetime.now(timezone.utc),
            payment_due_date=payment_due_date,
            inputs=CalculationInputs(
                water_gel_kg=water_gel,
                nh4no3_kg=nh4no3,
                powder_factor=powder_factor,
            ),
            calculations=CalculationSteps(
                total_explosive_quantity=total_explosive_quantity,
                basic_volume=basic_volume,
                blasted_rock_volume=blasted_rock_volume,
                base_royalty=base_royalty,
                royalty_with_sscl=royalty_with_sscl,
                total_amount_with_vat=total_amount_with_vat,
            ),
            rates_applied=RatesApplied(
                royalty_rate_per_cubic_meter=settings.royalty_rate_per_m3,
                sscl_rate=format_percentage(settings.sscl_percentage),
                vat_rate=format_percentage(settings.vat_percentage),
            ),
            warning_message=warning_message,
        )
