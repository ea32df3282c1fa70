"""Geocoding service for resolving addresses and coordinates.

This module wraps the Google Maps Geocoding API through geopy and provides:
- Forward geocoding (address -> coordinates)
- Reverse geocoding (coordinates -> formatted address)
- Bounded retries with a fixed wait between attempts
- Optional Redis caching to reduce API calls
"""

import hashlib
import json
import logging
from typing import Optional
from urllib.parse import urlsplit

from geopy.exc import ConfigurationError, GeopyError
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import GoogleV3
from redis import Redis
from redis.exceptions import RedisError

from app.core.config import Settings, settings as app_settings
from app.core.exceptions import ResolutionError
from app.core.metrics import GEOCODING_REQUESTS
from app.models.geographic import Coordinates

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "Geocoding is not configured"


class GeocodingService:
    """Google Maps geocoding with retries and caching."""

    def __init__(self, config: Settings | None = None):
        """Initialize the geocoding service from application settings."""
        config = config or app_settings

        self.api_key = config.GEOCODING_API_KEY
        self.scheme, self.domain = self._split_api_url(config.GEOCODING_API_URL)
        self.timeout = config.GEOCODING_TIMEOUT
        self.max_retries = config.GEOCODING_MAX_RETRIES
        self.error_wait_seconds = config.GEOCODING_ERROR_WAIT_SECONDS
        self.min_delay_seconds = config.GEOCODING_MIN_DELAY

        # Caching configuration
        self.cache_ttl = config.GEOCODING_CACHE_TTL
        self.redis_client: Redis | None = None
        if config.REDIS_URL:
            try:
                self.redis_client = Redis.from_url(
                    config.REDIS_URL, decode_responses=True
                )
                self.redis_client.ping()
                logger.info("Redis caching enabled for geocoding")
            except RedisError as e:
                logger.warning(f"Redis connection failed, caching disabled: {e}")
                self.redis_client = None

        self.geocoder: GoogleV3 | None = None
        self._geocode: RateLimiter | None = None
        self._reverse: RateLimiter | None = None

        try:
            self.geocoder = GoogleV3(
                api_key=self.api_key,
                domain=self.domain,
                scheme=self.scheme,
                timeout=self.timeout,
            )
        except ConfigurationError as e:
            # Reads keep working; only lookups fail until a key is configured
            logger.warning(f"Geocoder not configured, lookups will fail: {e}")
            return

        # Provider errors are retried, then re-raised for translation
        self._geocode = RateLimiter(
            self.geocoder.geocode,
            min_delay_seconds=self.min_delay_seconds,
            max_retries=self.max_retries,
            error_wait_seconds=self.error_wait_seconds,
            swallow_exceptions=False,
        )
        self._reverse = RateLimiter(
            self.geocoder.reverse,
            min_delay_seconds=self.min_delay_seconds,
            max_retries=self.max_retries,
            error_wait_seconds=self.error_wait_seconds,
            swallow_exceptions=False,
        )

        logger.info(
            f"Geocoder initialized for {self.scheme}://{self.domain} "
            f"(timeout={self.timeout}s, retries={self.max_retries})"
        )

    @property
    def configured(self) -> bool:
        """Whether provider lookups can be made."""
        return self.geocoder is not None

    @staticmethod
    def _split_api_url(api_url: str) -> tuple[str, str]:
        """Split the configured API URL into scheme and host.

        Accepts a full URL (``https://maps.googleapis.com/maps/api/geocode/json``)
        or a bare host (``maps.googleapis.com``).
        """
        parsed = urlsplit(api_url.strip())
        if parsed.netloc:
            return parsed.scheme or "https", parsed.netloc
        host = parsed.path.split("/", 1)[0]
        if not host:
            raise ValueError(f"Invalid GEOCODING_API_URL: {api_url!r}")
        return "https", host

    def _get_cache_key(self, direction: str, value: str) -> str:
        """Generate cache key for a lookup.

        Args:
            direction: 'forward' or 'reverse'
            value: Address or "lat,lng" string

        Returns:
            Cache key string
        """
        if direction == "forward":
            value = hashlib.sha256(value.lower().encode()).hexdigest()
        return f"geocode:{direction}:{value}"

    def _get_cached(self, key: str) -> Optional[dict]:
        if not self.redis_client:
            return None

        try:
            cached = self.redis_client.get(key)
            if cached:
                logger.debug(f"Cache hit for {key}")
                return json.loads(cached)
        except (RedisError, ValueError) as e:
            logger.warning(f"Cache retrieval error: {e}")

        return None

    def _cache(self, key: str, value: dict) -> None:
        if not self.redis_client:
            return

        try:
            self.redis_client.setex(key, self.cache_ttl, json.dumps(value))
            logger.debug(f"Cached result for {key}")
        except RedisError as e:
            logger.warning(f"Cache storage error: {e}")

    def forward(self, address: str) -> Optional[Coordinates]:
        """Geocode an address to coordinates.

        Args:
            address: Address string to geocode

        Returns:
            Coordinates of the first result, or None when there is no result

        Raises:
            ResolutionError: If the provider fails after all retries
        """
        if not address or not address.strip():
            logger.warning("Empty address provided for geocoding")
            return None

        address = address.strip()
        cache_key = self._get_cache_key("forward", address)
        cached = self._get_cached(cache_key)
        if cached:
            GEOCODING_REQUESTS.labels(direction="forward", outcome="cache").inc()
            return Coordinates(latitude=cached["lat"], longitude=cached["lon"])

        if self._geocode is None:
            GEOCODING_REQUESTS.labels(direction="forward", outcome="error").inc()
            raise ResolutionError(NOT_CONFIGURED_MESSAGE)

        try:
            location = self._geocode(address, exactly_one=True)
        except GeopyError as e:
            GEOCODING_REQUESTS.labels(direction="forward", outcome="error").inc()
            logger.warning(f"Geocoding failed for '{address[:50]}': {e}")
            raise ResolutionError(
                f"Geocoding provider failed for address '{address}': {e}"
            ) from e

        if location is None:
            GEOCODING_REQUESTS.labels(direction="forward", outcome="empty").inc()
            logger.info(f"No geocoding result for '{address[:50]}'")
            return None

        GEOCODING_REQUESTS.labels(direction="forward", outcome="ok").inc()
        coordinates = Coordinates(
            latitude=location.latitude, longitude=location.longitude
        )
        self._cache(
            cache_key, {"lat": coordinates.latitude, "lon": coordinates.longitude}
        )
        return coordinates

    def reverse(self, coordinates: Coordinates) -> Optional[str]:
        """Reverse geocode coordinates to a formatted address.

        Args:
            coordinates: Point to look up

        Returns:
            Formatted address of the first result, or None when there is none

        Raises:
            ResolutionError: If the provider fails after all retries
        """
        point = f"{coordinates.latitude:.6f},{coordinates.longitude:.6f}"
        cache_key = self._get_cache_key("reverse", point)
        cached = self._get_cached(cache_key)
        if cached and cached.get("address"):
            GEOCODING_REQUESTS.labels(direction="reverse", outcome="cache").inc()
            return cached["address"]

        if self._reverse is None:
            GEOCODING_REQUESTS.labels(direction="reverse", outcome="error").inc()
            raise ResolutionError(NOT_CONFIGURED_MESSAGE)

        try:
            location = self._reverse(
                f"{coordinates.latitude}, {coordinates.longitude}", exactly_one=True
            )
        except GeopyError as e:
            GEOCODING_REQUESTS.labels(direction="reverse", outcome="error").inc()
            logger.warning(f"Reverse geocoding failed for {point}: {e}")
            raise ResolutionError(
                f"Geocoding provider failed for coordinates {point}: {e}"
            ) from e

        if location is None or not location.address:
            GEOCODING_REQUESTS.labels(direction="reverse", outcome="empty").inc()
            logger.info(f"No reverse geocoding result for {point}")
            return None

        GEOCODING_REQUESTS.labels(direction="reverse", outcome="ok").inc()
        self._cache(cache_key, {"address": location.address})
        return location.address


# Singleton instance
_geocoding_service: GeocodingService | None = None


def get_geocoding_service() -> GeocodingService:
    """Get or create the singleton geocoding service instance.

    Returns:
        GeocodingService instance
    """
    global _geocoding_service
    if _geocoding_service is None:
        _geocoding_service = GeocodingService()
    return _geocoding_service
