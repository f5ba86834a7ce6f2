"""
Weather readings: fetch, record and amend.

Manifesto:
    Handlers only orchestrate. Storage, the external weather API and the
    alert sink are collaborators resolved from the container, so each
    one can be swapped (or mocked) without touching a pipeline.

Tags:
    fnpipe, services, weather, example

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import threading
import uuid
from datetime import datetime
from typing import Any, Protocol

import httpx
import pydantic
from pydantic import BaseModel

from fnpipe.api.middleware import (
    BearerAuthMiddleware,
    BodyParserMiddleware,
    BodyValidationMiddleware,
    DateHeaderMiddleware,
    DependencyInjectionMiddleware,
    ErrorHandlerMiddleware,
    PathParametersMiddleware,
    ResponseWrapperMiddleware,
)
from fnpipe.auth.tokens import TokenVerifier
from fnpipe.core.container import Container
from fnpipe.core.errors import NotFoundError, UpstreamError, ValidationError
from fnpipe.core.logging import get_logger
from fnpipe.core.timestamps import to_iso8601
from fnpipe.framework.context import Context
from fnpipe.framework.handler import Handler, Pipeline

logger = get_logger(__name__)

HIGH_TEMPERATURE_THRESHOLD = 100
TEMPERATURE_TOLERANCE = 5


# ── Schemas ──────────────────────────────────────────────────────────────


class WeatherCreate(BaseModel):
    temperature: float
    humidity: float
    date: datetime
    location: str


class WeatherUpdate(BaseModel):
    temperature: float | None = None
    humidity: float | None = None
    date: datetime | None = None
    location: str | None = None


class WeatherRecord(WeatherCreate):
    id: str


class WeatherReading(BaseModel):
    """Reading reported by the external weather API."""

    temperature: float | None = None
    humidity: float | None = None


# ── Collaborators ────────────────────────────────────────────────────────


class WeatherService:
    """In-memory weather store."""

    def __init__(self) -> None:
        self._records: dict[str, WeatherRecord] = {}
        self._lock = threading.Lock()

    async def save(self, data: WeatherCreate) -> str:
        weather_id = uuid.uuid4().hex
        with self._lock:
            self._records[weather_id] = WeatherRecord(id=weather_id, **data.model_dump())
        return weather_id

    async def get(self, weather_id: str) -> WeatherRecord:
        with self._lock:
            record = self._records.get(weather_id)
        if record is None:
            raise NotFoundError("Weather data not found").with_context(weather_id=weather_id)
        return record

    async def update(self, weather_id: str, data: WeatherUpdate) -> WeatherRecord:
        with self._lock:
            record = self._records.get(weather_id)
            if record is None:
                raise NotFoundError("Weather data not found").with_context(weather_id=weather_id)
            updated = record.model_copy(update=data.model_dump(exclude_none=True))
            self._records[weather_id] = updated
        return updated

    async def by_date(self, date: datetime) -> list[WeatherRecord]:
        with self._lock:
            return [r for r in self._records.values() if r.date.date() == date.date()]


class WeatherApiPort(Protocol):
    async def fetch(self, date: datetime) -> WeatherReading: ...


class StaticWeatherApi:
    """Weather API stand-in returning a fixed reading (no reading by default)."""

    def __init__(self, reading: WeatherReading | None = None) -> None:
        self._reading = reading or WeatherReading()

    async def fetch(self, date: datetime) -> WeatherReading:
        return self._reading


class HttpWeatherApi:
    """Weather API client over httpx.

    ``GET {base_url}/weather?date=...&apiKey=...`` returning
    ``{"temperature": ..., "humidity": ...}``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, date: datetime) -> WeatherReading:
        params = {"date": to_iso8601(date), "apiKey": self._api_key}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(f"{self._base_url}/weather", params=params)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("weather_api_failed", error=str(exc))
            raise UpstreamError("Weather API request failed") from exc

        try:
            payload = resp.json()
            return WeatherReading(
                temperature=payload.get("temperature"),
                humidity=payload.get("humidity"),
            )
        except (ValueError, AttributeError, pydantic.ValidationError) as exc:
            logger.warning("weather_api_bad_payload", error=str(exc), status_code=resp.status_code)
            raise UpstreamError("Weather API returned an invalid payload") from exc


class WeatherValidation:
    """Cross-check a new reading's date against stored and external data."""

    def __init__(self, service: WeatherService, api: WeatherApiPort) -> None:
        self._service = service
        self._api = api

    async def check_by_date(self, date: datetime) -> bool:
        stored, reading = await asyncio.gather(self._service.by_date(date), self._api.fetch(date))
        stored_temp = stored[0].temperature if stored else None
        api_temp = reading.temperature
        if stored_temp is None or api_temp is None:
            return True
        return abs(stored_temp - api_temp) <= TEMPERATURE_TOLERANCE


class AlertPublisher:
    """Records high-temperature alerts (in-memory topic)."""

    def __init__(self, topic: str = "high-temperature-topic") -> None:
        self.topic = topic
        self.published: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    async def publish_high_temperature(self, record: WeatherRecord) -> None:
        message = record.model_dump(mode="json")
        with self._lock:
            self.published.append(message)
        logger.info("high_temperature_alert", topic=self.topic, weather_id=record.id)


# ── Handlers ─────────────────────────────────────────────────────────────


async def get_weather(context: Context) -> None:
    service = context.container.get(WeatherService)
    record = await service.get(context.request.path_params["id"])
    context.business_data["weather_data"] = record
    context.response.stage(record)


async def create_weather(context: Context) -> None:
    container = context.container
    data: WeatherCreate = context.request.validated_body

    if not await container.get(WeatherValidation).check_by_date(data.date):
        raise ValidationError("Invalid weather data")

    service = container.get(WeatherService)
    weather_id = await service.save(data)
    context.business_data["weather_id"] = weather_id

    if data.temperature > HIGH_TEMPERATURE_THRESHOLD:
        await container.get(AlertPublisher).publish_high_temperature(await service.get(weather_id))
        context.business_data["high_temperature_alert"] = True

    context.response.stage({"weatherId": weather_id}, status_code=201)


async def update_weather(context: Context) -> None:
    container = context.container
    weather_id = context.request.path_params["id"]
    data: WeatherUpdate = context.request.validated_body

    record = await container.get(WeatherService).update(weather_id, data)
    context.business_data["updated_weather_id"] = weather_id

    if data.temperature is not None and data.temperature > HIGH_TEMPERATURE_THRESHOLD:
        await container.get(AlertPublisher).publish_high_temperature(record)
        context.business_data["high_temperature_alert"] = True

    context.response.stage(None, status_code=204)


def build_weather_pipelines(container: Container, verifier: TokenVerifier) -> dict[str, Pipeline]:
    """Build the get, create and update weather pipelines."""
    base = (
        Handler()
        .use(DependencyInjectionMiddleware(container))
        .use(ErrorHandlerMiddleware())
        .use(ResponseWrapperMiddleware())
        .use(BearerAuthMiddleware(verifier))
        .use(DateHeaderMiddleware())
    )
    by_id = base.use(PathParametersMiddleware(["id"]))
    # Branch the update chain off by_id before handle() finalizes it.
    update = (
        by_id.use(BodyParserMiddleware())
        .use(BodyValidationMiddleware(WeatherUpdate))
        .handle(update_weather)
    )
    create = (
        base.use(BodyParserMiddleware())
        .use(BodyValidationMiddleware(WeatherCreate))
        .handle(create_weather)
    )
    return {
        "get_weather": by_id.handle(get_weather),
        "create_weather": create,
        "update_weather": update,
    }
