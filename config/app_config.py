"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).parents[1]
APP_ENV = os.getenv("APP_ENV", "local").lower()
load_dotenv(ROOT / ".env", override=False)
if APP_ENV == "local":
    load_dotenv(ROOT / ".env.local", override=True)


def _float(name: str, default: float) -> float:
    return float(os.getenv(name) or default)


class settings:                            # pylint: disable=too-few-public-methods
    APP_ENV              = APP_ENV
    LOG_LEVEL            = os.getenv("LOG_LEVEL", "INFO").upper()

    # MQTT
    MQTT_BROKER          = os.getenv("MQTT_BROKER", "tcp://localhost:1883")
    MQTT_CLIENT_ID       = os.getenv("MQTT_CLIENT_ID", "auto-irrigation")
    MQTT_USERNAME        = os.getenv("MQTT_USERNAME") or None
    MQTT_PASSWORD        = os.getenv("MQTT_PASSWORD") or None
    MQTT_CONNECT_TIMEOUT = _float("MQTT_CONNECT_TIMEOUT", 30)
    PUBLISH_ACK_TIMEOUT  = _float("PUBLISH_ACK_TIMEOUT", 5)

    # Slack
    SLACK_BOT_TOKEN      = os.getenv("SLACK_BOT_TOKEN") or None
    SLACK_CHANNEL_ID     = os.getenv("SLACK_CHANNEL_ID") or None

    # Frappe history (in-memory history when FRAPPE_URL is unset)
    FRAPPE_URL           = os.getenv("FRAPPE_URL") or None
    FRAPPE_USER          = os.getenv("FRAPPE_USER", "Administrator")
    FRAPPE_PWD           = os.getenv("FRAPPE_PWD", "")
    HISTORY_DOCTYPE      = os.getenv("HISTORY_DOCTYPE", "Irrigation History")

    # Devices and tasks
    DEVICE_CONFIG_PATH   = os.getenv("DEVICE_CONFIG_PATH", str(ROOT / "devices.json"))
    TASKS_DIR            = os.getenv("TASKS_DIR", str(ROOT / "tasks"))

    # Job timing
    SCHEDULE_TIMEZONE    = os.getenv("SCHEDULE_TIMEZONE", "Asia/Bangkok")
    CALIBRATION_TIMEOUT  = _float("CALIBRATION_TIMEOUT", 120)
    POLL_INTERVAL        = _float("POLL_INTERVAL", 2)
    TASK_SETTLE_DELAY    = _float("TASK_SETTLE_DELAY", 3)
