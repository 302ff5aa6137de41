import json
import pathlib
import sys
import threading

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from modules.royalty_settings.schemas import DEFAULT_ROYALTY_SETTINGS, RoyaltySettings
from modules.royalty_settings.storage import SETTINGS_KEY, JsonFileSlot, MemorySlot
from modules.royalty_settings.store import SettingsStore

CUSTOM = RoyaltySettings(
    water_gel_multiplier=1.5,
    expansion_factor=1.7,
    powder_factor_multiplier=3.0,
    royalty_rate_per_m3=300,
    sscl_percentage=3,
    vat_percentage=15,
    default_powder_factor=0.6,
)


class BrokenSlot:
    def read(self):
        raise OSError("disk unavailable")

    def write(self, value):
        raise OSError("disk unavailable")


def with_field(field_alias, value):
    data = DEFAULT_ROYALTY_SETTINGS.model_dump(by_alias=True)
    data[field_alias] = value
    return data


def test_empty_slot_returns_defaults():
    store = SettingsStore(MemorySlot())
    assert store.get() == DEFAULT_ROYALTY_SETTINGS


def test_default_snapshot_values():
    assert DEFAULT_ROYALTY_SETTINGS.model_dump(by_alias=True) == {
        "waterGelMultiplier": 1.2,
        "expansionFactor": 1.6,
        "powderFactorMultiplier": 2.83,
        "royaltyRatePerM3": 240,
        "ssclPercentage": 2.56,
        "vatPercentage": 18,
        "defaultPowderFactor": 0.5,
    }


def test_update_then_get_round_trips():
    store = SettingsStore(MemorySlot())

    assert store.update(CUSTOM) is True
    assert store.get() == CUSTOM


def test_update_accepts_camel_case_mapping():
    store = SettingsStore(MemorySlot())

    assert store.update(CUSTOM.model_dump(by_alias=True)) is True
    assert store.get() == CUSTOM


@pytest.mark.parametrize("value", [0, -1, float("nan"), float("inf"), "abc", None, True, "1.2"])
def test_update_rejects_invalid_multiplier_and_keeps_previous(value):
    store = SettingsStore(MemorySlot())
    store.update(CUSTOM)

    assert store.update(with_field("waterGelMultiplier", value)) is False
    assert store.get() == CUSTOM


def test_update_rejects_missing_field():
    store = SettingsStore(MemorySlot())
    data = DEFAULT_ROYALTY_SETTINGS.model_dump(by_alias=True)
    del data["vatPercentage"]

    assert store.update(data) is False
    assert store.get() == DEFAULT_ROYALTY_SETTINGS


def test_violations_name_each_constraint():
    store = SettingsStore(MemorySlot())
    data = with_field("expansionFactor", 0)
    data["royaltyRatePerM3"] = -5

    problems = store.violations(data)

    assert problems == [
        "expansionFactor must be greater than 0",
        "royaltyRatePerM3 must be greater than 0",
    ]


def test_zero_percentages_allowed_by_default():
    store = SettingsStore(MemorySlot())
    data = with_field("vatPercentage", 0)

    assert store.update(data) is True
    assert store.get().vat_percentage == 0


def test_negative_percentage_always_rejected():
    store = SettingsStore(MemorySlot())
    assert store.violations(with_field("ssclPercentage", -1)) == ["ssclPercentage must be zero or positive"]


def test_zero_percentages_rejected_when_disallowed():
    store = SettingsStore(MemorySlot(), allow_zero_percentages=False)

    assert store.update(with_field("ssclPercentage", 0)) is False
    assert store.violations(with_field("ssclPercentage", 0)) == ["ssclPercentage must be greater than 0"]
    assert store.get() == DEFAULT_ROYALTY_SETTINGS


def test_reset_restores_defaults():
    store = SettingsStore(MemorySlot())
    store.update(CUSTOM)

    assert store.reset() is True
    assert store.get() == DEFAULT_ROYALTY_SETTINGS
    assert store.reset() is True
    assert store.get() == DEFAULT_ROYALTY_SETTINGS


def test_corrupt_slot_falls_back_to_defaults():
    store = SettingsStore(MemorySlot("{not json"))
    assert store.get() == DEFAULT_ROYALTY_SETTINGS


def test_invalid_stored_values_fall_back_to_defaults():
    slot = MemorySlot(json.dumps(with_field("powderFactorMultiplier", -2)))
    assert SettingsStore(slot).get() == DEFAULT_ROYALTY_SETTINGS


def test_broken_slot_reads_defaults_and_reports_write_failure():
    store = SettingsStore(BrokenSlot())

    assert store.get() == DEFAULT_ROYALTY_SETTINGS
    assert store.update(CUSTOM) is False
    assert store.reset() is False


def test_returned_settings_are_immutable():
    store = SettingsStore(MemorySlot())
    settings = store.get()
    with pytest.raises(Exception):
        settings.vat_percentage = 99
    assert store.get().vat_percentage == 18


def test_json_file_slot_round_trip(tmp_path):
    path = tmp_path / "state" / "royalty_settings.json"
    store = SettingsStore(JsonFileSlot(path))

    assert store.update(CUSTOM) is True

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document[SETTINGS_KEY]["royaltyRatePerM3"] == 300
    assert SettingsStore(JsonFileSlot(path)).get() == CUSTOM


def test_json_file_slot_keeps_other_keys(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

    SettingsStore(JsonFileSlot(path)).update(CUSTOM)

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["theme"] == "dark"
    assert SETTINGS_KEY in document


def test_json_file_slot_corrupt_file_reads_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("]]] not json", encoding="utf-8")
    store = SettingsStore(JsonFileSlot(path))

    assert store.get() == DEFAULT_ROYALTY_SETTINGS
    assert store.update(CUSTOM) is True
    assert store.get() == CUSTOM


def test_concurrent_readers_never_see_partial_updates():
    store = SettingsStore(MemorySlot())
    seen = []
    stop = threading.Event()

    def writer():
        for i in range(200):
            store.update(CUSTOM if i % 2 else DEFAULT_ROYALTY_SETTINGS)
        stop.set()

    def reader():
        while not stop.is_set():
            seen.append(store.get())

    threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert seen
    assert all(s in (CUSTOM, DEFAULT_ROYALTY_SETTINGS) for s in seen)


def test_boolean_stored_values_fall_back_to_defaults():
    slot = MemorySlot(json.dumps(with_field("vatPercentage", True)))
    assert SettingsStore(slot).get() == DEFAULT_ROYALTY_SETTINGS
