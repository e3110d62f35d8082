from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_IBGE_BASE_URL = "http://localhost:3001"
DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_FETCH_TIMEOUT = 5.0
MAX_FETCH_TIMEOUT = 9.0
USER_AGENT = "GeoSignals/1.0 (signal composition engine)"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: Optional[bool] = None) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_float(name: str, default: float, maximum: Optional[float] = None) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    if maximum is not None and value > maximum:
        logger.warning("Capping %s=%s to %s", name, value, maximum)
        return maximum
    return value


class ScanSettings:
    """Engine configuration read from environment variables."""

    def __init__(self) -> None:
        real_only = _env_flag("GEOSIGNALS_REAL_ONLY")
        if real_only is None:
            real_only = _env_flag("VITE_REAL_ONLY", False)
        self.real_only = bool(real_only)
        self.ibge_base_url = os.getenv("GEOSIGNALS_IBGE_BASE_URL", DEFAULT_IBGE_BASE_URL).rstrip("/")
        self.hotspots_url = os.getenv("GEOSIGNALS_HOTSPOTS_URL", "").strip() or None
        self.nominatim_url = os.getenv("GEOSIGNALS_NOMINATIM_URL", DEFAULT_NOMINATIM_URL)
        self.geocode_enabled = bool(_env_flag("GEOSIGNALS_GEOCODE_ENABLED", True))
        self.fetch_timeout = _env_float(
            "GEOSIGNALS_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT, maximum=MAX_FETCH_TIMEOUT
        )
        self.trace_dir = os.getenv("GEOSIGNALS_TRACE_DIR", "").strip() or None


_SETTINGS: Optional[ScanSettings] = None


def get_settings() -> ScanSettings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = ScanSettings()
        logger.info(
            "GeoSignals settings: real_only=%s ibge=%s hotspots_backend=%s",
            _SETTINGS.real_only,
            _SETTINGS.ibge_base_url,
            "set" if _SETTINGS.hotspots_url else "unset",
        )
    return _SETTINGS


def reset_settings() -> None:
    global _SETTINGS
    _SETTINGS = None


@dataclass(frozen=True)
class RealOnlyPolicy:
    """Whether derived, estimated or synthetic data may appear in the output."""

    enabled: bool = False

    @classmethod
    def from_settings(cls, settings: Optional[ScanSettings] = None) -> "RealOnlyPolicy":
        settings = settings or get_settings()
        return cls(enabled=settings.real_only)

    @property
    def allows_derived(self) -> bool:
        return not self.enabled
