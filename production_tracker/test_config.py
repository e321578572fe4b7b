import json
import os

import production_tracker

from production_tracker.config import DEFAULT_CONFIG_PATH, DEFAULTS, load_config


def test_missing_file_returns_defaults(tmp_path):
    config = load_config(str(tmp_path / "nope.json"))
    assert config == DEFAULTS


def test_file_overrides_selected_keys(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"cycle_duration_seconds": 60, "notifier": "mqtt"}))

    config = load_config(str(path))

    assert config["cycle_duration_seconds"] == 60
    assert config["notifier"] == "mqtt"
    assert config["fast_tick_seconds"] == DEFAULTS["fast_tick_seconds"]


def test_env_var_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "env.json"
    path.write_text(json.dumps({"history_capacity": 9}))
    monkeypatch.setenv("PRODUCTION_TRACKER_CONFIG", str(path))

    assert load_config()["history_capacity"] == 9


def test_bundled_settings_ship_inside_the_package(monkeypatch):
    monkeypatch.delenv("PRODUCTION_TRACKER_CONFIG", raising=False)
    package_dir = os.path.dirname(production_tracker.__file__)

    assert os.path.dirname(os.path.abspath(DEFAULT_CONFIG_PATH)) == os.path.abspath(package_dir)
    assert os.path.isfile(DEFAULT_CONFIG_PATH)

    with open(DEFAULT_CONFIG_PATH) as f:
        bundled = json.load(f)
    assert load_config() == {**DEFAULTS, **bundled}
