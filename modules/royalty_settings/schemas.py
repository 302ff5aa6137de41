import math
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class RoyaltySettings(BaseModel):
    """Coefficients of the royalty formula. Serialized with the camelCase slot names."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    water_gel_multiplier: float = Field(..., strict=True, alias="waterGelMultiplier", description="Water gel to explosive equivalent")
    expansion_factor: float = Field(..., strict=True, alias="expansionFactor", description="Rock expansion coefficient")
    powder_factor_multiplier: float = Field(..., strict=True, alias="powderFactorMultiplier", description="Powder factor scaling")
    royalty_rate_per_m3: float = Field(..., strict=True, alias="royaltyRatePerM3", description="Royalty per m³ (LKR)")
    sscl_percentage: float = Field(..., strict=True, alias="ssclPercentage", description="SSCL (%)")
    vat_percentage: float = Field(..., strict=True, alias="vatPercentage", description="VAT (%)")
    default_powder_factor: float = Field(..., strict=True, alias="defaultPowderFactor", description="Used when powder factor is 0")


DEFAULT_ROYALTY_SETTINGS = RoyaltySettings(
    water_gel_multiplier=1.2,
    expansion_factor=1.6,
    powder_factor_multiplier=2.83,
    royalty_rate_per_m3=240,
    sscl_percentage=2.56,
    vat_percentage=18,
    default_powder_factor=0.5,
)

POSITIVE_FIELDS = (
    "water_gel_multiplier",
    "expansion_factor",
    "powder_factor_multiplier",
    "royalty_rate_per_m3",
    "default_powder_factor",
)
PERCENTAGE_FIELDS = ("sscl_percentage", "vat_percentage")


def _display_name(field_name: str) -> str:
    return RoyaltySettings.model_fields[field_name].alias or field_name


def _is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def check_settings(settings: RoyaltySettings, allow_zero_percentages: bool = True) -> List[str]:
    """Return one message per violated constraint; an empty list means the settings are usable."""
    problems: List[str] = []
    for name in POSITIVE_FIELDS + PERCENTAGE_FIELDS:
        value = getattr(settings, name, None)
        label = _display_name(name)
        if not _is_finite_number(value):
            problems.append(f"{label} must be a finite number")
            continue
        if name in PERCENTAGE_FIELDS and allow_zero_percentages:
            if value < 0:
                problems.append(f"{label} must be zero or positive")
        elif value <= 0:
            problems.append(f"{label} must be greater than 0")
    return problems
