"""Loading observer and reference settings from a JSON file or the environment."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from datetime import time, timedelta
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    DEFAULT_MODEL_CACHE_SIZE,
    DEFAULT_REFERENCE_OFFSET,
    DEFAULT_TARGET_NOON,
    DEFAULT_TARGET_SUNRISE,
    DEFAULT_TARGET_SUNSET,
    DEFAULT_TWILIGHT,
    TWILIGHT_ANGLES,
)
from .domain import GeoCoordinate, SolarReferenceConfig
from .errors import InvalidConfig

LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SOLAR_CLOCK_CONFIG"
CACHE_SIZE_ENV_VAR = "SOLAR_CLOCK_CACHE_SIZE"

_OFFSET_PATTERN = re.compile(r"^(?P<sign>[+-])(?P<hours>\d{2}):?(?P<minutes>\d{2})$")


def parse_offset(text: str) -> timedelta:
    """Parse ``+HH:MM`` / ``-HHMM`` (or ``Z``) into a timedelta."""

    value = text.strip()
    if value in ("Z", "z"):
        return timedelta(0)
    match = _OFFSET_PATTERN.match(value)
    if match is None:
        raise ValueError(f"offset must look like +HH:MM: {text!r}")
    minutes = int(match["minutes"])
    if minutes >= 60:
        raise ValueError(f"offset minutes must be below 60: {text!r}")
    offset = timedelta(hours=int(match["hours"]), minutes=minutes)
    return -offset if match["sign"] == "-" else offset


def format_offset(offset: timedelta) -> str:
    total_minutes = int(offset.total_seconds() // 60)
    sign = "-" if total_minutes < 0 else "+"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def parse_clock_time(text: str) -> time:
    """Parse an ``HH:MM`` time of day in ``[00:00, 24:00)``."""

    try:
        value = time.fromisoformat(text.strip())
    except ValueError as exc:
        raise ValueError(f"time of day must look like HH:MM: {text!r}") from exc
    if value.tzinfo is not None:
        raise ValueError(f"time of day must not carry an offset: {text!r}")
    return value


class ClockConfigFile(BaseModel):
    """Schema of the JSON configuration document."""

    model_config = ConfigDict(extra="forbid")

    latitude: float = Field(DEFAULT_LATITUDE, ge=-90.0, le=90.0)
    longitude: float = Field(DEFAULT_LONGITUDE, ge=-180.0, le=180.0)
    elevation_m: float = Field(0.0, ge=-500.0)
    reference_offset: str = Field(format_offset(DEFAULT_REFERENCE_OFFSET))
    target_sunrise: str = Field(DEFAULT_TARGET_SUNRISE.strftime("%H:%M"))
    target_noon: str = Field(DEFAULT_TARGET_NOON.strftime("%H:%M"))
    target_sunset: str = Field(DEFAULT_TARGET_SUNSET.strftime("%H:%M"))
    twilight: str = Field(DEFAULT_TWILIGHT)

    @field_validator("reference_offset")
    def validate_offset(cls, value: str) -> str:
        parse_offset(value)
        return value

    @field_validator("target_sunrise", "target_noon", "target_sunset")
    def validate_clock_time(cls, value: str) -> str:
        parse_clock_time(value)
        return value

    @field_validator("twilight")
    def validate_twilight(cls, value: str) -> str:
        if value not in TWILIGHT_ANGLES:
            raise ValueError(f"twilight must be one of {sorted(TWILIGHT_ANGLES)}")
        return value

    def to_settings(self) -> "ClockSettings":
        return ClockSettings(
            coordinate=GeoCoordinate(self.latitude, self.longitude, self.elevation_m),
            reference=SolarReferenceConfig(
                reference_offset=parse_offset(self.reference_offset),
                target_sunrise=parse_clock_time(self.target_sunrise),
                target_noon=parse_clock_time(self.target_noon),
                target_sunset=parse_clock_time(self.target_sunset),
                twilight=self.twilight,
            ),
        )


@dataclass(frozen=True)
class ClockSettings:
    """Observer position plus reference configuration."""

    coordinate: GeoCoordinate
    reference: SolarReferenceConfig


def default_settings() -> ClockSettings:
    return ClockConfigFile().to_settings()


def load_clock_config(path: Optional[Union[str, Path]] = None) -> ClockSettings:
    """Load settings from *path*, ``$SOLAR_CLOCK_CONFIG`` or the defaults.

    Raises
    ------
    InvalidConfig
        If the file is missing, is not valid JSON or fails validation.
    """

    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return default_settings()

    config_path = Path(path).expanduser()
    try:
        document = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise InvalidConfig(f"Configuration file not found: {config_path}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidConfig(f"Configuration file is not valid JSON: {config_path}: {exc}") from exc

    try:
        settings = ClockConfigFile.model_validate(document).to_settings()
    except ValidationError as exc:
        messages = ", ".join(error["msg"] for error in exc.errors())
        raise InvalidConfig(f"Invalid configuration in {config_path}: {messages}") from exc

    LOGGER.info(json.dumps({"event": "config_loaded", "path": str(config_path)}))
    return settings


def cache_size_from_env() -> int:
    raw = os.environ.get(CACHE_SIZE_ENV_VAR)
    if not raw:
        return DEFAULT_MODEL_CACHE_SIZE
    try:
        size = int(raw)
    except ValueError as exc:
        raise InvalidConfig(f"{CACHE_SIZE_ENV_VAR} must be an integer: {raw!r}") from exc
    if size < 1:
        raise InvalidConfig(f"{CACHE_SIZE_ENV_VAR} must be positive: {size}")
    return size
