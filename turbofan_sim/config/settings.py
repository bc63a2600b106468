"""Runtime settings read from the environment (.env supported)."""

import os

from dotenv import load_dotenv

load_dotenv()


class _SettingsMeta(type):
    """Metaclass: environment-dependent attributes are evaluated on each access."""

    @property
    def GEMINI_API_KEY(cls) -> str:
        return os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", ""))

    @property
    def GEMINI_MODEL(cls) -> str:
        return os.getenv("TURBOFAN_GEMINI_MODEL", "gemini-2.5-flash")

    @property
    def GEMINI_TIMEOUT_S(cls) -> float:
        return float(os.getenv("TURBOFAN_GEMINI_TIMEOUT", "10"))

    @property
    def SERVER_HOST(cls) -> str:
        return os.getenv("TURBOFAN_HOST", "127.0.0.1")

    @property
    def SERVER_PORT(cls) -> int:
        return int(os.getenv("TURBOFAN_PORT", "8787"))

    GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class Settings(metaclass=_SettingsMeta):
    """Access point for environment settings, e.g. ``Settings.GEMINI_MODEL``."""
