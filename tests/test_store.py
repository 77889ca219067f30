# tests/test_store.py: Unit tests for settings persistence.

import json
import sys
from pathlib import Path

import pytest

from packages.shared.config import AppConfig
from packages.shared.store import ConfigStore, MemoryConfigStore


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    return tmp_path / "settings.json"


def test_missing_file_yields_defaults(settings_file: Path):
    store = ConfigStore(settings_file)

    assert store.load_paths() == []
    assert store.load_filter_text() == ""
    assert store.load_auto_start() is False
    assert not settings_file.exists()


def test_filter_text_round_trip_is_lossless(settings_file: Path):
    store = ConfigStore(settings_file)
    text = 'a\nb\\c\n"quoted"\n\\\\server\\share'

    assert store.save_filter_text(text) is True
    assert store.load_filter_text() == text
    # A fresh store reads the same bytes back
    assert ConfigStore(settings_file).load_filter_text() == text


def test_paths_round_trip_preserves_order(settings_file: Path):
    store = ConfigStore(settings_file)
    paths = [r"C:\Apps\foo.exe", r"D:\Tools\bar.exe", "/opt/baz"]

    store.save_paths(paths)

    assert store.load_paths() == paths


def test_duplicate_and_blank_paths_are_dropped(settings_file: Path):
    store = ConfigStore(settings_file)
    store.save_paths([r"C:\a.exe", "", r"C:\b.exe", r"C:\a.exe", "  "])
    assert store.load_paths() == [r"C:\a.exe", r"C:\b.exe"]


def test_each_save_rewrites_whole_record(settings_file: Path):
    store = ConfigStore(settings_file)
    store.save_paths([r"C:\a.exe"])
    store.save_auto_start(True)
    store.save_filter_text("usb")

    data = json.loads(settings_file.read_text(encoding="utf-8"))
    assert data == {"version": 1, "paths": [r"C:\a.exe"], "regex_filters": "usb", "auto_start": True}


def test_legacy_record_is_upgraded(settings_file: Path):
    """Files written by the first release use pipe-joined paths and camelCase keys."""
    legacy = '{"paths": "C:\\\\Apps\\\\foo.exe|C:\\\\Apps\\\\bar.exe", "autoStart": true, "regexFilters": "usb.*drive\nkingston"}'
    settings_file.write_text(legacy, encoding="utf-8")

    cfg = ConfigStore(settings_file).load()

    assert cfg.paths == [r"C:\Apps\foo.exe", r"C:\Apps\bar.exe"]
    assert cfg.auto_start is True
    assert cfg.regex_filters == "usb.*drive\nkingston"
    assert cfg.version == 1


def test_legacy_record_with_missing_keys_uses_defaults(settings_file: Path):
    settings_file.write_text('{"paths": ""}', encoding="utf-8")

    cfg = ConfigStore(settings_file).load()

    assert cfg.paths == []
    assert cfg.auto_start is False
    assert cfg.regex_filters == ""


@pytest.mark.parametrize("content", ["not json at all", '{"version": 1, "paths": 42}', ""])
def test_unreadable_file_falls_back_to_defaults(settings_file: Path, content: str):
    settings_file.write_text(content, encoding="utf-8")

    cfg = ConfigStore(settings_file).load()

    assert cfg == AppConfig()


def test_save_failure_is_reported_not_raised(tmp_path: Path):
    # A directory where the file should be makes the write fail
    target = tmp_path / "settings.json"
    target.mkdir()
    store = ConfigStore(target)

    assert store.save_paths([r"C:\a.exe"]) is False


def test_memory_store_isolates_returned_values():
    store = MemoryConfigStore(AppConfig(paths=["/a"]))

    paths = store.load_paths()
    paths.append("/b")

    assert store.load_paths() == ["/a"]
    assert store.save_paths(["/a", "/b", "/a"]) is True
    assert store.load_paths() == ["/a", "/b"]


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="XDG layout applies on Linux")
def test_default_location_follows_xdg_config_home(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    store = ConfigStore()
    store.save_auto_start(True)

    assert Path(store.path()) == tmp_path / "UsbRestartMonitor" / "settings.json"
    assert (tmp_path / "UsbRestartMonitor" / "logs").is_dir()
    assert store.load_auto_start() is True
