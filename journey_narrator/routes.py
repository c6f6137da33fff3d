"""Route resolution and validation."""

import asyncio
import logging
import os

import requests

from journey_narrator.constants import (
    DEFAULT_STYLE,
    DEFAULT_TRAVEL_MODE,
    DEFAULT_VOICE,
    MAX_ROUTE_SECONDS,
    TRAVEL_MODES,
)
from journey_narrator.errors import ValidationError
from journey_narrator.models import RouteDetails
from journey_narrator.voices import STORY_STYLES, VOICES

logger = logging.getLogger(__name__)

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
TOO_LONG_MESSAGE = "Sorry, this journey is too long. Please select a route under 4 hours."


def validate_route(route: RouteDetails) -> None:
    """Raise ValidationError if the route can't be narrated."""
    if route.travel_mode not in TRAVEL_MODES:
        raise ValidationError(f"Unsupported travel mode: {route.travel_mode}")
    if route.duration_seconds > MAX_ROUTE_SECONDS:
        raise ValidationError(TOO_LONG_MESSAGE)
    if route.duration_seconds <= 0:
        raise ValidationError("Route duration must be positive.")
    if route.voice not in VOICES:
        raise ValidationError(f"Unknown voice: {route.voice}")
    if route.style not in STORY_STYLES:
        raise ValidationError(f"Unknown story style: {route.style}")


def _format_minutes(seconds: int) -> str:
    hours, minutes = divmod(round(seconds / 60), 60)
    if hours:
        return f"{hours} hour{'s' if hours != 1 else ''} {minutes} min"
    return f"{minutes} min"


def manual_route(
    start: str,
    end: str,
    minutes: float,
    travel_mode: str = DEFAULT_TRAVEL_MODE,
    voice: str = DEFAULT_VOICE,
    style: str = DEFAULT_STYLE,
) -> RouteDetails:
    """Build a route without a directions lookup, from a known travel time."""
    if not start.strip() or not end.strip():
        raise ValidationError("Please provide both a start and end location.")
    seconds = int(round(minutes * 60))
    route = RouteDetails(
        start_address=start.strip(),
        end_address=end.strip(),
        travel_mode=travel_mode.upper(),
        duration_seconds=seconds,
        voice=voice,
        style=style.upper(),
        duration_text=_format_minutes(seconds),
    )
    validate_route(route)
    return route


class GoogleDirectionsResolver:
    """Resolves addresses into a route with the Directions web service."""

    def __init__(self, api_key: str, url: str = DIRECTIONS_URL, timeout: float = 30):
        self._api_key = api_key
        self._url = url
        self._timeout = timeout

    @classmethod
    def from_env(cls) -> "GoogleDirectionsResolver":
        api_key = os.environ.get("GOOGLE_MAPS_API_KEY", "").strip().strip("\"'")
        if not api_key or api_key in ("undefined", "null"):
            raise ValidationError("GOOGLE_MAPS_API_KEY is not set. Use --minutes to plan offline.")
        return cls(api_key)

    def resolve(
        self,
        start: str,
        end: str,
        travel_mode: str = DEFAULT_TRAVEL_MODE,
        voice: str = DEFAULT_VOICE,
        style: str = DEFAULT_STYLE,
    ) -> RouteDetails:
        if not start.strip() or not end.strip():
            raise ValidationError("Please provide both a start and end location.")
        mode = travel_mode.upper()
        params = {
            "origin": start,
            "destination": end,
            "mode": mode.lower(),
            "key": self._api_key,
        }
        try:
            response = requests.get(self._url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise ValidationError(f"Could not calculate route: {exc}") from exc
        if response.status_code != 200:
            raise ValidationError(f"Could not calculate route (HTTP {response.status_code}).")
        try:
            data = response.json()
        except ValueError as exc:
            raise ValidationError("Directions response is not valid JSON.") from exc

        status = data.get("status")
        if status in ("ZERO_RESULTS", "NOT_FOUND"):
            raise ValidationError(
                f'Sorry, we could not calculate {mode.lower()} directions from "{start}" to "{end}"'
            )
        if status != "OK" or not data.get("routes"):
            logger.error("Directions error: %s %s", status, data.get("error_message", ""))
            raise ValidationError("Could not calculate route. Please check the locations and try again.")

        try:
            leg = data["routes"][0]["legs"][0]
            seconds = int(leg["duration"]["value"])
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise ValidationError("Directions response is missing route details.") from exc
        if seconds > MAX_ROUTE_SECONDS:
            raise ValidationError(TOO_LONG_MESSAGE)

        route = RouteDetails(
            start_address=leg.get("start_address", start),
            end_address=leg.get("end_address", end),
            travel_mode=mode,
            duration_seconds=seconds,
            voice=voice,
            style=style.upper(),
            distance_text=leg.get("distance", {}).get("text", ""),
            duration_text=leg["duration"].get("text", ""),
        )
        validate_route(route)
        return route

    async def resolve_async(self, *args, **kwargs) -> RouteDetails:
        return await asyncio.to_thread(self.resolve, *args, **kwargs)
