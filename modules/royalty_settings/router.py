from fastapi import APIRouter, Depends

from core.errors import SettingsPersistenceException, SettingsValidationException
from modules.royalty_settings.schemas import RoyaltySettings
from modules.royalty_settings.store import SettingsStore, get_settings_store

router = APIRouter(prefix="/royalty-settings", tags=["royalty_settings"])


@router.get("", response_model=RoyaltySettings)
def get_royalty_settings_endpoint(store: SettingsStore = Depends(get_settings_store)):
    return store.get()


@router.put("", response_model=RoyaltySettings)
def update_royalty_settings_endpoint(
    settings_in: RoyaltySettings, store: SettingsStore = Depends(get_settings_store)
):
    problems = store.violations(settings_in)
    if problems:
        raise SettingsValidationException("; ".join(problems))
    if not store.update(settings_in):
        raise SettingsPersistenceException()
    return store.get()


@router.post("/reset", response_model=RoyaltySettings)
def reset_royalty_settings_endpoint(store: SettingsStore = Depends(get_settings_store)):
    if not store.reset():
        raise SettingsPersistenceException("Royalty settings could not be reset")
    return store.get()
