from __future__ import annotations

from flask import current_app

from .config import AppSettings
from .services.lifecycle import DrawLifecycleManager

MANAGER_KEY = "lottery_manager"
SETTINGS_KEY = "lottery_settings"


def get_manager() -> DrawLifecycleManager:
    return current_app.extensions[MANAGER_KEY]


def get_settings() -> AppSettings:
    return current_app.extensions[SETTINGS_KEY]
