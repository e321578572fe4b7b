import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger("Config")

CONFIG_ENV_VAR = "PRODUCTION_TRACKER_CONFIG"
DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "settings.json")

DEFAULTS: Dict[str, Any] = {
    "api_url": "http://localhost:3000/api",
    "job_status_filter": None,
    "cycle_duration_seconds": 300,
    "fast_tick_seconds": 15,
    "slow_tick_seconds": 60,
    "job_refresh_seconds": 30,
    "history_capacity": 5,
    "completing_threshold_seconds": 30,
    "request_timeout_seconds": 5,
    "created_by": 1,
    "notifier": "log",
    "mqtt_broker": "localhost",
    "mqtt_port": 1883,
    "mqtt_topic": "production/notifications",
    "api_host": "0.0.0.0",
    "api_port": 8000,
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load tracker settings.

    Lookup order: explicit path, $PRODUCTION_TRACKER_CONFIG, the bundled settings.json.
    Keys missing from the file keep their defaults; a missing file yields the
    defaults.
    """
    config_path = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    config = dict(DEFAULTS)
    try:
        with open(config_path, "r") as f:
            config.update(json.load(f))
    except FileNotFoundError:
        # Fallback Defaults
        logger.info(f"No settings file at {config_path}, using defaults")
    return config
