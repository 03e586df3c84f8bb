from __future__ import annotations

import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


class Config:
    VEHICLE_ID = os.getenv("VEHICLE_ID", "MOVIL Z-41").strip()
    MONEY_LOCALE_FORMATTING = _env_flag("MONEY_LOCALE_FORMATTING", True)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
