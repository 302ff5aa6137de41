import logging
import threading
from functools import lru_cache
from typing import Any, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from core.settings import get_settings
from modules.royalty_settings.schemas import DEFAULT_ROYALTY_SETTINGS, RoyaltySettings, check_settings
from modules.royalty_settings.storage import JsonFileSlot

logger = logging.getLogger(__name__)

SettingsInput = Union[RoyaltySettings, Mapping[str, Any]]


class SettingsStore:
    """Single source of truth for the royalty coefficients.

    Reads never fail: a missing, unreadable or invalid slot yields the default
    snapshot. Updates are validated in full before anything is written, and all
    access goes through one lock so readers see either the old or the new value.
    """

    def __init__(self, slot, allow_zero_percentages: bool = True):
        self._slot = slot
        self.allow_zero_percentages = allow_zero_percentages
        self._lock = threading.RLock()

    def get(self) -> RoyaltySettings:
        with self._lock:
            try:
                raw = self._slot.read()
            except (OSError, ValueError) as exc:
                logger.warning("Royalty settings could not be read, using defaults: %s", exc)
                return DEFAULT_ROYALTY_SETTINGS
        if raw is None:
            return DEFAULT_ROYALTY_SETTINGS
        settings, problems = self._coerce(raw)
        if problems:
            logger.warning("Stored royalty settings are invalid, using defaults: %s", "; ".join(problems))
            return DEFAULT_ROYALTY_SETTINGS
        return settings

    def violations(self, settings: SettingsInput) -> List[str]:
        return self._coerce(settings)[1]

    def update(self, settings: SettingsInput) -> bool:
        validated, problems = self._coerce(settings)
        if problems:
            logger.warning("Rejected royalty settings update: %s", "; ".join(problems))
            return False
        return self._write(validated)

    def reset(self) -> bool:
        return self._write(DEFAULT_ROYALTY_SETTINGS)

    def _write(self, settings: RoyaltySettings) -> bool:
        with self._lock:
            try:
                self._slot.write(settings.model_dump(by_alias=True))
            except (OSError, TypeError, ValueError) as exc:
                logger.error("Royalty settings could not be saved: %s", exc)
                return False
        logger.info("Royalty settings saved: %s", settings.model_dump(by_alias=True))
        return True

    def _coerce(self, value: Any) -> Tuple[Optional[RoyaltySettings], List[str]]:
        if isinstance(value, RoyaltySettings):
            settings = value
        else:
            try:
                settings = RoyaltySettings.model_validate(value)
            except ValidationError as exc:
                return None, [
                    f"{'.'.join(str(part) for part in err['loc']) or 'settings'}: {err['msg']}"
                    for err in exc.errors()
                ]
        return settings, check_settings(settings, self.allow_zero_percentages)


@lru_cache
def get_settings_store() -> SettingsStore:
    app_settings = get_settings()
    return SettingsStore(
        JsonFileSlot(app_settings.royalty_settings_path),
        allow_zero_percentages=app_settings.allow_zero_percentages,
    )
