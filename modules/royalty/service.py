import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.errors import NotFoundException, ValidationAppException
from modules.royalty import models, schemas
from modules.royalty.calculator import RoyaltyCalculator
from modules.royalty_settings.schemas import RoyaltySettings
from modules.users import models as user_models
from modules.users.types import UserRole

logger = logging.getLogger(__name__)


def default_payment_due_date(now: datetime, days: int) -> datetime:
    return now + timedelta(days=days)


def run_calculation(
    settings: RoyaltySettings,
    request: schemas.RoyaltyCalculationRequest,
    payment_due_days: int,
) -> schemas.RoyaltyCalculationResult:
    """Calculate with a settings snapshot; the due date is filled in here, not by the calculator."""
    now = datetime.now(timezone.utc)
    due_date = request.payment_due_date or default_payment_due_date(now, payment_due_days)
    calculator = RoyaltyCalculator(settings=settings)
    result = calculator.calculate(
        request.water_gel,
        request.nh4no3,
        request.powder_factor,
        payment_due_date=due_date,
        calculation_date=now,
    )
    if result.warning_message:
        logger.warning(result.warning_message)
    return result


def _flatten_result(result: schemas.RoyaltyCalculationResult) -> Dict[str, Any]:
    calc = result.calculations
    return dict(
        water_gel=result.inputs.water_gel_kg,
        nh4no3=result.inputs.nh4no3_kg,
        powder_factor=result.inputs.powder_factor,
        total_explosive_quantity=calc.total_explosive_quantity,
        basic_volume=calc.basic_volume,
        blasted_rock_volume=calc.blasted_rock_volume,
        base_royalty=calc.base_royalty,
        royalty_with_sscl=calc.royalty_with_sscl,
        total_amount_with_vat=calc.total_amount_with_vat,
        calculation_date=result.calculation_date,
        payment_due_date=result.payment_due_date,
    )


def build_record(miner_id: int, result: schemas.RoyaltyCalculationResult) -> schemas.RoyaltyRecordCreate:
    return schemas.RoyaltyRecordCreate(miner_id=miner_id, **_flatten_result(result))


def calculation_report(result: schemas.RoyaltyCalculationResult) -> Dict[str, Any]:
    """Report data for an unsaved calculation: the record fields plus the rates and any warning."""
    report = _flatten_result(result)
    report["rates_applied"] = result.rates_applied.model_dump()
    report["warning_message"] = result.warning_message
    return report


def _serialize_record(record: models.RoyaltyRecord) -> Dict[str, Any]:
    miner = record.miner
    return {
        "id": record.id,
        "miner_id": record.miner_id,
        "miner_name": f"{miner.first_name} {miner.last_name}" if miner else None,
        "water_gel": record.water_gel,
        "nh4no3": record.nh4no3,
        "powder_factor": record.powder_factor,
        "total_explosive_quantity": record.total_explosive_quantity,
        "basic_volume": record.basic_volume,
        "blasted_rock_volume": record.blasted_rock_volume,
        "base_royalty": record.base_royalty,
        "royalty_with_sscl": record.royalty_with_sscl,
        "total_amount_with_vat": record.total_amount_with_vat,
        "calculation_date": record.calculation_date,
        "payment_due_date": record.payment_due_date,
    }


def save_record(db: Session, record_in: schemas.RoyaltyRecordCreate) -> Dict[str, Any]:
    miner = db.query(user_models.User).filter(user_models.User.id == record_in.miner_id).first()
    if not miner:
        raise NotFoundException("Miner not found")
    if miner.role != UserRole.MINER.value:
        raise ValidationAppException("Royalty can only be recorded for users with the miner role")

    record = models.RoyaltyRecord(**record_in.model_dump())
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(
        "Saved royalty record %s for miner %s: total %.2f",
        record.id,
        record.miner_id,
        record.total_amount_with_vat,
    )
    return _serialize_record(record)


def list_records(db: Session, miner_id: Optional[int] = None) -> List[Dict[str, Any]]:
    query = db.query(models.RoyaltyRecord)
    if miner_id is not None:
        query = query.filter(models.RoyaltyRecord.miner_id == miner_id)
    records = query.order_by(models.RoyaltyRecord.calculation_date.desc(), models.RoyaltyRecord.id.desc()).all()
    return [_serialize_record(r) for r in records]


def get_record(db: Session, record_id: int) -> Dict[str, Any]:
    record = db.query(models.RoyaltyRecord).filter(models.RoyaltyRecord.id == record_id).first()
    if not record:
        raise NotFoundException("Royalty record not found")
    return _serialize_record(record)
