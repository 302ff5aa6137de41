from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from core.database import get_db
from core.settings import get_settings
from modules.reports.excel import build_royalty_excel
from modules.royalty import schemas, service
from modules.royalty_settings.store import SettingsStore, get_settings_store
from modules.users import service as user_service
from modules.users.schemas import MinerRead

router = APIRouter(prefix="/royalty", tags=["royalty"])


@router.post(
    "/calculate",
    response_model=schemas.RoyaltyCalculationResult,
    response_model_exclude_none=True,
)
def calculate_royalty_endpoint(
    request_in: schemas.RoyaltyCalculationRequest,
    store: SettingsStore = Depends(get_settings_store),
):
    return service.run_calculation(store.get(), request_in, get_settings().payment_due_days)


@router.post("/calculate/excel")
def download_calculation_excel(
    request_in: schemas.RoyaltyCalculationRequest,
    store: SettingsStore = Depends(get_settings_store),
):
    result = service.run_calculation(store.get(), request_in, get_settings().payment_due_days)
    stream = build_royalty_excel(service.calculation_report(result))
    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=royalty_calculation.xlsx"},
    )


@router.get("/miners", response_model=list[MinerRead])
def list_miners_endpoint(db: Session = Depends(get_db)):
    return user_service.list_miners(db)


@router.post("/records", response_model=schemas.RoyaltyRecordRead)
def save_royalty_record_endpoint(
    request_in: schemas.RoyaltyRecordSaveRequest,
    db: Session = Depends(get_db),
    store: SettingsStore = Depends(get_settings_store),
):
    result = service.run_calculation(store.get(), request_in, get_settings().payment_due_days)
    record_in = service.build_record(request_in.miner_id, result)
    return service.save_record(db, record_in)


@router.get("/records", response_model=list[schemas.RoyaltyRecordRead])
def list_royalty_records_endpoint(miner_id: Optional[int] = None, db: Session = Depends(get_db)):
    return service.list_records(db, miner_id=miner_id)


@router.get("/records/{record_id}", response_model=schemas.RoyaltyRecordRead)
def get_royalty_record_endpoint(record_id: int, db: Session = Depends(get_db)):
    return service.get_record(db, record_id)


@router.get("/records/{record_id}/excel")
def download_royalty_record_excel(record_id: int, db: Session = Depends(get_db)):
    record = service.get_record(db, record_id)
    stream = build_royalty_excel(record)
    filename = f"royalty_{record_id}.xlsx"
    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
