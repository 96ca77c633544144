"""FastAPI application exposing solar clock conversions."""

from __future__ import annotations

import json
import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from models import (
    BatchConvertRequest,
    BatchConvertResponse,
    Conversion,
    ConvertQueryParams,
    ConvertResponse,
    ErrorResponse,
    EventsQueryParams,
    EventsResponse,
    HealthResponse,
)
from solarclock import (
    ConversionResult,
    GeoCoordinate,
    ModelCache,
    SolarClock,
    SolarClockError,
    compute_events,
)
from solarclock.config import (
    ClockSettings,
    cache_size_from_env,
    default_settings,
    format_offset,
    load_clock_config,
)

logging.basicConfig(level=logging.INFO, format="%(message)s")
LOGGER = logging.getLogger("solar-clock-api")

APP_DESCRIPTION = (
    "Solar clock conversions: civil time re-aligned so sunrise, solar noon and "
    "sunset fall on fixed hours of a DST-free reference offset"
)

SETTINGS: ClockSettings = default_settings()
CACHE: ModelCache = ModelCache()


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - exercised in integration tests
    global SETTINGS, CACHE
    try:
        SETTINGS = load_clock_config()
        CACHE = ModelCache(cache_size_from_env())
    except SolarClockError as exc:
        LOGGER.error(json.dumps({"event": "config_load_failed", "error": str(exc)}))
        raise
    LOGGER.info(
        json.dumps(
            {
                "event": "startup",
                "latitude": SETTINGS.coordinate.latitude,
                "longitude": SETTINGS.coordinate.longitude,
                "reference_offset": format_offset(SETTINGS.reference.reference_offset),
                "cache_size": CACHE.maxsize,
            }
        )
    )
    yield


app = FastAPI(
    title="Solar Clock API",
    description=APP_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get("SOLAR_CLOCK_CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _format_utc(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _format_local(dt: Optional[datetime], offset_hours: Optional[float]) -> Optional[str]:
    if dt is None or offset_hours is None:
        return None
    offset = timezone(timedelta(hours=offset_hours))
    return dt.astimezone(offset).isoformat()


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("error") or detail.get("message") or str(detail)
    elif isinstance(detail, list):
        message = ", ".join(str(item) for item in detail)
    else:
        message = str(detail)
    return _error_response(exc.status_code, f"http_{exc.status_code}", message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


def _clock_for(lat: Optional[float], lon: Optional[float], elev_m: float) -> SolarClock:
    if lat is None and lon is None:
        coordinate = SETTINGS.coordinate
    elif lat is None or lon is None:
        raise HTTPException(status_code=400, detail="lat and lon must be given together")
    else:
        coordinate = GeoCoordinate(lat, lon, elev_m)
    return SolarClock(coordinate, SETTINGS.reference, cache=CACHE)


def _conversion(result: ConversionResult) -> Conversion:
    return Conversion(
        input_utc=_format_utc(result.input_utc),
        solar_utc=_format_utc(result.solar_instant),
        solar_local=result.solar_local.isoformat(),
        formatted=result.formatted,
        delta_seconds=round(result.delta_seconds, 6),
        extrapolated=result.extrapolated,
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(
        ok=True,
        reference_offset=format_offset(SETTINGS.reference.reference_offset),
        cache=CACHE.stats(),
    )


@app.get(
    "/events",
    response_model=EventsResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def events_endpoint(params: Annotated[EventsQueryParams, Query()]) -> EventsResponse:
    start_time = time.perf_counter()
    try:
        coordinate = GeoCoordinate(params.lat, params.lon, params.elev_m)
        result = compute_events(params.date, coordinate, params.twilight.value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    duration_ms = (time.perf_counter() - start_time) * 1000.0

    response = EventsResponse(
        status=result.status,
        date_utc=params.date,
        latitude=params.lat,
        longitude=params.lon,
        elevation_m=params.elev_m,
        twilight=params.twilight,
        sunrise_utc=_format_utc(result.sunrise),
        noon_utc=_format_utc(result.noon),
        sunset_utc=_format_utc(result.sunset),
        offset_hours=params.offset_hours,
        sunrise_local=_format_local(result.sunrise, params.offset_hours),
        noon_local=_format_local(result.noon, params.offset_hours),
        sunset_local=_format_local(result.sunset, params.offset_hours),
    )

    LOGGER.info(
        json.dumps(
            {
                "event": "events",
                "lat": params.lat,
                "lon": params.lon,
                "date": params.date.isoformat(),
                "twilight": params.twilight.value,
                "status": response.status,
                "duration_ms": round(duration_ms, 3),
            }
        )
    )
    return response


@app.get(
    "/convert",
    response_model=ConvertResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def convert_endpoint(params: Annotated[ConvertQueryParams, Query()]) -> ConvertResponse:
    start_time = time.perf_counter()
    try:
        clock = _clock_for(params.lat, params.lon, params.elev_m)
        result = clock.convert(params.at)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SolarClockError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    duration_ms = (time.perf_counter() - start_time) * 1000.0

    response = ConvertResponse(
        **_conversion(result).model_dump(),
        latitude=clock.coordinate.latitude,
        longitude=clock.coordinate.longitude,
        reference_offset=format_offset(clock.config.reference_offset),
    )

    LOGGER.info(
        json.dumps(
            {
                "event": "convert",
                "lat": clock.coordinate.latitude,
                "lon": clock.coordinate.longitude,
                "input": response.input_utc,
                "delta_seconds": response.delta_seconds,
                "extrapolated": response.extrapolated,
                "duration_ms": round(duration_ms, 3),
            }
        )
    )
    return response


@app.post(
    "/convert/batch",
    response_model=BatchConvertResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def convert_batch_endpoint(request: BatchConvertRequest) -> BatchConvertResponse:
    start_time = time.perf_counter()
    try:
        clock = _clock_for(request.lat, request.lon, request.elev_m)
        results = clock.convert_many(request.instants)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SolarClockError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    duration_ms = (time.perf_counter() - start_time) * 1000.0

    LOGGER.info(
        json.dumps(
            {
                "event": "convert_batch",
                "lat": clock.coordinate.latitude,
                "lon": clock.coordinate.longitude,
                "count": len(results),
                "duration_ms": round(duration_ms, 3),
            }
        )
    )
    return BatchConvertResponse(
        latitude=clock.coordinate.latitude,
        longitude=clock.coordinate.longitude,
        reference_offset=format_offset(clock.config.reference_offset),
        results=[_conversion(result) for result in results],
    )


if __name__ == "__main__":  # pragma: no cover - manual entry point
    import uvicorn

    uvicorn.run(
        app,
        host=os.environ.get("SOLAR_CLOCK_HOST", "127.0.0.1"),
        port=int(os.environ.get("SOLAR_CLOCK_PORT", "8000")),
    )
