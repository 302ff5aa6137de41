from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RoyaltyCalculationInput(BaseModel):
    water_gel: float = Field(..., strict=True, description="Water gel used (kg)")
    nh4no3: float = Field(..., strict=True, description="Ammonium nitrate used (kg)")
    powder_factor: float = Field(..., strict=True, description="Powder factor; 0 means unspecified")


class RoyaltyCalculationRequest(RoyaltyCalculationInput):
    payment_due_date: Optional[datetime] = Field(None, description="Defaults to today + payment_due_days")


class RoyaltyRecordSaveRequest(RoyaltyCalculationRequest):
    miner_id: int


class CalculationInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    water_gel_kg: float
    nh4no3_kg: float
    powder_factor: float


class CalculationSteps(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_explosive_quantity: float
    basic_volume: float
    blasted_rock_volume: float
    base_royalty: float
    royalty_with_sscl: float
    total_amount_with_vat: float


class RatesApplied(BaseModel):
    model_config = ConfigDict(frozen=True)

    royalty_rate_per_cubic_meter: float
    sscl_rate: str
    vat_rate: str


class RoyaltyCalculationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    calculation_date: datetime
    payment_due_date: Optional[datetime] = None
    inputs: CalculationInputs
    calculations: CalculationSteps
    rates_applied: RatesApplied
    warning_message: Optional[str] = None


class RoyaltyRecordCreate(BaseModel):
    """Flat shape handed to storage for a completed calculation."""

    miner_id: int
    water_gel: float
    nh4no3: float
    powder_factor: float
    total_explosive_quantity: float
    basic_volume: float
    blasted_rock_volume: float
    base_royalty: float
    royalty_with_sscl: float
    total_amount_with_vat: float
    calculation_date: datetime
    payment_due_date: Optional[datetime] = None


class RoyaltyRecordRead(RoyaltyRecordCreate):
    id: int
    miner_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
