import logging
import time
from dataclasses import dataclass

import httpx

from directory_admin.config import Settings


@dataclass
class Coordinates:
    latitude: float
    longitude: float


class RateLimiter:
    """Enforce a minimum spacing between calls.

    The last-request time lives on the instance, so every geocoder (and every
    test) gets its own pacing state.
    """

    def __init__(self, min_interval: float = 1.1, clock=time.monotonic, sleep=time.sleep):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request: float | None = None

    def wait(self) -> float:
        """Block until ``min_interval`` has passed since the previous call. Returns seconds slept."""
        waited = 0.0
        if self._last_request is not None:
            elapsed = self._clock() - self._last_request
            if elapsed < self.min_interval:
                waited = self.min_interval - elapsed
                self._sleep(waited)
        self._last_request = self._clock()
        return waited


class NominatimGeocoder:
    """OpenStreetMap Nominatim search client paced by a RateLimiter.

    Nominatim allows one request per second and requires a User-Agent.
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.Client | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        self._settings = settings
        self._client = client or httpx.Client(
            headers={"User-Agent": settings.geocode_user_agent},
        )
        self.rate_limiter = rate_limiter or RateLimiter(settings.geocode_min_interval_seconds)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def build_query(
        self,
        address: str | None,
        city: str | None,
        postal_code: str | None,
        country: str | None = None,
    ) -> str | None:
        if not (address or city or postal_code):
            return None
        country = self._settings.geocode_country if country is None else country
        return ", ".join(p for p in (address, city, postal_code, country) if p)

    def geocode(
        self,
        address: str | None,
        city: str | None = None,
        postal_code: str | None = None,
        country: str | None = None,
    ) -> Coordinates | None:
        query = self.build_query(address, city, postal_code, country)
        if query is None:
            return None

        self.rate_limiter.wait()
        try:
            resp = self._client.get(
                self._settings.nominatim_url,
                params={
                    "q": query,
                    "format": "json",
                    "limit": "1",
                    "addressdetails": "1",
                    "countrycodes": self._settings.geocode_country_codes,
                },
                headers={"User-Agent": self._settings.geocode_user_agent},
            )
            resp.raise_for_status()
            results = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logging.warning("Geocoding failed for %r: %s", query, e)
            return None

        if not results:
            return None
        return Coordinates(
            latitude=float(results[0]["lat"]),
            longitude=float(results[0]["lon"]),
        )
