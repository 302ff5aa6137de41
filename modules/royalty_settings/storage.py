"""Key-value slots that hold the persisted royalty settings."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

SETTINGS_KEY = "royaltySettings"


class MemorySlot:
    """Process-local slot. Values are kept JSON-encoded so callers never share objects."""

    def __init__(self, initial: Optional[str] = None):
        self._value = initial

    def read(self) -> Any:
        if self._value is None:
            return None
        return json.loads(self._value)

    def write(self, value: Any) -> None:
        self._value = json.dumps(value)


class JsonFileSlot:
    """One named key inside a JSON document on disk, written atomically."""

    def __init__(self, path: Union[str, Path], key: str = SETTINGS_KEY):
        self.path = Path(path)
        self.key = key

    def _load_document(self) -> dict:
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def read(self) -> Any:
        if not self.path.exists():
            return None
        return self._load_document().get(self.key)

    def write(self, value: Any) -> None:
        document = {}
        if self.path.exists():
            try:
                document = self._load_document()
            except ValueError as exc:
                logger.warning("Overwriting unreadable settings file %s: %s", self.path, exc)
        document[self.key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(suffix=".json.tmp", dir=str(self.path.parent), text=True)
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, str(self.path))
        except BaseException:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise
