"""Pydantic models for API requests and responses."""

from __future__ import annotations

from datetime import date as Date
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class Twilight(str, Enum):
    """Enumeration of supported twilight definitions."""

    official = "official"
    civil = "civil"
    nautical = "nautical"
    astronomical = "astronomical"


class EventsQueryParams(BaseModel):
    """Validated query parameters for the ``/events`` endpoint."""

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")
    date: Date = Field(..., description="UTC calendar date (YYYY-MM-DD)")
    elev_m: float = Field(0.0, ge=-500.0, description="Observer elevation in meters")
    offset_hours: Optional[float] = Field(
        None,
        description="Optional fixed offset in hours applied to derive local times",
    )
    twilight: Twilight = Field(Twilight.official, description="Twilight definition")

    @field_validator("offset_hours")
    def validate_offset_hours(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return value
        if not -24.0 < value < 24.0:
            raise ValueError("offset_hours must be within ±24 hours")
        return value


class EventsResponse(BaseModel):
    """Real solar events for one UTC date."""

    ok: bool = True
    status: str = Field(..., description="ok, polar_day or polar_night")
    date_utc: Date = Field(..., description="Requested UTC date")
    latitude: float = Field(..., description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")
    elevation_m: float = Field(..., description="Elevation above mean sea level")
    twilight: Twilight = Field(..., description="Applied twilight definition")
    sunrise_utc: Optional[str] = Field(None, description="Sunrise time in UTC (ISO-8601)")
    noon_utc: str = Field(..., description="Solar noon in UTC (ISO-8601)")
    sunset_utc: Optional[str] = Field(None, description="Sunset time in UTC (ISO-8601)")
    offset_hours: Optional[float] = Field(None, description="User-specified offset in hours")
    sunrise_local: Optional[str] = Field(
        None, description="Sunrise expressed in local time when offset provided"
    )
    noon_local: Optional[str] = Field(
        None, description="Solar noon expressed in local time when offset provided"
    )
    sunset_local: Optional[str] = Field(
        None, description="Sunset expressed in local time when offset provided"
    )


class ConvertQueryParams(BaseModel):
    """Validated query parameters for the ``/convert`` endpoint."""

    at: datetime = Field(..., description="Civil date-time with UTC offset (ISO-8601)")
    lat: Optional[float] = Field(
        None, ge=-90.0, le=90.0, description="Latitude in degrees (default: configured)"
    )
    lon: Optional[float] = Field(
        None, ge=-180.0, le=180.0, description="Longitude in degrees (default: configured)"
    )
    elev_m: float = Field(0.0, ge=-500.0, description="Observer elevation in meters")


class BatchConvertRequest(BaseModel):
    """Body of ``POST /convert/batch``."""

    instants: List[datetime] = Field(..., min_length=1, max_length=10_000)
    lat: Optional[float] = Field(None, ge=-90.0, le=90.0)
    lon: Optional[float] = Field(None, ge=-180.0, le=180.0)
    elev_m: float = Field(0.0, ge=-500.0)


class Conversion(BaseModel):
    """One civil instant expressed on the solar clock."""

    input_utc: str = Field(..., description="Input instant in UTC (ISO-8601)")
    solar_utc: str = Field(..., description="Solar clock instant in UTC (ISO-8601)")
    solar_local: str = Field(..., description="Solar clock instant in the reference offset")
    formatted: str = Field(..., description="Solar clock time as YYYY-MM-DD HH:MM:SS +HHMM")
    delta_seconds: float = Field(..., description="Correction applied to the input")
    extrapolated: bool = Field(
        False, description="True when the input fell outside the anchor window"
    )


class ConvertResponse(Conversion):
    """Successful single conversion payload."""

    ok: bool = True
    latitude: float
    longitude: float
    reference_offset: str


class BatchConvertResponse(BaseModel):
    """Successful batch conversion payload."""

    ok: bool = True
    latitude: float
    longitude: float
    reference_offset: str
    results: List[Conversion]


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    reference_offset: str
    cache: Dict[str, int]


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str
