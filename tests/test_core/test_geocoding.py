"""Tests for the geocoding service."""

import json
from unittest.mock import MagicMock, Mock, patch

import pytest
from geopy.exc import GeocoderQuotaExceeded, GeocoderTimedOut
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.config import Settings
from app.core.exceptions import ResolutionError
from app.core.geocoding import GeocodingService
from app.models.geographic import Coordinates


@pytest.fixture
def mock_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("GEOCODING_API_KEY", "test_api_key_123")
    monkeypatch.setenv("GEOCODING_MAX_RETRIES", "2")
    monkeypatch.setenv("GEOCODING_ERROR_WAIT_SECONDS", "0")
    monkeypatch.setenv("GEOCODING_TIMEOUT", "5")
    monkeypatch.setenv("GEOCODING_CACHE_TTL", "3600")
    monkeypatch.setenv("TEST_REDIS_URL", "redis://localhost:6379/0")


@pytest.fixture
def mock_redis():
    """Mock Redis client."""
    with patch("app.core.geocoding.service.Redis") as mock:
        redis_instance = MagicMock()
        redis_instance.ping.return_value = True
        redis_instance.get.return_value = None
        redis_instance.setex.return_value = True
        mock.from_url.return_value = redis_instance
        yield redis_instance


@pytest.fixture
def mock_google():
    """Mock the GoogleV3 geocoder class."""
    with patch("app.core.geocoding.service.GoogleV3") as mock:
        yield mock


@pytest.fixture
def service(mock_env, mock_redis, mock_google) -> GeocodingService:
    return GeocodingService(Settings())


class TestInitialization:
    """Configuration of the provider client."""

    def test_initialization_with_settings(self, service, mock_google, mock_redis):
        """Test service initialization reads settings."""
        mock_google.assert_called_once_with(
            api_key="test_api_key_123",
            domain="maps.googleapis.com",
            scheme="https",
            timeout=5,
        )
        assert service.max_retries == 2
        assert service.cache_ttl == 3600
        assert service.redis_client is mock_redis

    def test_custom_api_url(self, mock_env, mock_redis, mock_google, monkeypatch):
        """Test GEOCODING_API_URL selects the provider host."""
        monkeypatch.setenv("GEOCODING_API_URL", "http://localhost:8080/maps")

        service = GeocodingService(Settings())

        assert (service.scheme, service.domain) == ("http", "localhost:8080")

    def test_bare_host_api_url(self, mock_env, mock_redis, mock_google, monkeypatch):
        """Test a bare host defaults to https."""
        monkeypatch.setenv("GEOCODING_API_URL", "maps.example.org")

        service = GeocodingService(Settings())

        assert (service.scheme, service.domain) == ("https", "maps.example.org")

    def test_initialization_without_redis(self, mock_env, mock_google, monkeypatch):
        """Test caching is disabled without a Redis URL."""
        monkeypatch.delenv("TEST_REDIS_URL", raising=False)

        service = GeocodingService(Settings())

        assert service.redis_client is None

    def test_initialization_with_unreachable_redis(
        self, mock_env, mock_redis, mock_google
    ):
        """Test caching is disabled when Redis does not answer."""
        mock_redis.ping.side_effect = RedisConnectionError("refused")

        service = GeocodingService(Settings())

        assert service.redis_client is None


class TestForward:
    """Address to coordinates."""

    def test_forward_returns_coordinates(self, service, mock_redis):
        """Test a provider hit is returned and cached."""
        service.geocoder.geocode.return_value = Mock(
            latitude=37.4224, longitude=-122.0842
        )

        result = service.forward("1600 Amphitheatre Parkway")

        assert result == Coordinates(latitude=37.4224, longitude=-122.0842)
        service.geocoder.geocode.assert_called_once_with(
            "1600 Amphitheatre Parkway", exactly_one=True
        )
        key, ttl, value = mock_redis.setex.call_args.args
        assert key.startswith("geocode:forward:")
        assert ttl == 3600
        assert json.loads(value) == {"lat": 37.4224, "lon": -122.0842}

    def test_forward_uses_cache(self, service, mock_redis):
        """Test cached results skip the provider."""
        mock_redis.get.return_value = json.dumps({"lat": 1.5, "lon": 2.5})

        result = service.forward("Somewhere")

        assert result == Coordinates(latitude=1.5, longitude=2.5)
        service.geocoder.geocode.assert_not_called()

    def test_cache_key_is_case_insensitive(self, service):
        """Test addresses differing only in case share a cache entry."""
        assert service._get_cache_key("forward", "1 Main St") == (
            service._get_cache_key("forward", "1 MAIN ST")
        )
        assert service._get_cache_key("reverse", "1.000000,2.000000") == (
            "geocode:reverse:1.000000,2.000000"
        )

    def test_forward_no_result(self, service, mock_redis):
        """Test an empty provider answer gives None and is not cached."""
        service.geocoder.geocode.return_value = None

        assert service.forward("Nowhere") is None
        mock_redis.setex.assert_not_called()

    def test_forward_blank_address(self, service):
        """Test blank input never reaches the provider."""
        assert service.forward("   ") is None
        service.geocoder.geocode.assert_not_called()

    def test_forward_retries_then_succeeds(self, service):
        """Test transient provider errors are retried."""
        service.geocoder.geocode.side_effect = [
            GeocoderTimedOut("timeout"),
            Mock(latitude=1.0, longitude=2.0),
        ]

        assert service.forward("Flaky") == Coordinates(latitude=1.0, longitude=2.0)
        assert service.geocoder.geocode.call_count == 2

    def test_forward_raises_resolution_error_after_retries(self, service):
        """Test exhausted retries surface as ResolutionError."""
        service.geocoder.geocode.side_effect = GeocoderQuotaExceeded("quota")

        with pytest.raises(ResolutionError, match="quota"):
            service.forward("Busy")

        # One attempt plus two retries
        assert service.geocoder.geocode.call_count == 3


class TestReverse:
    """Coordinates to address."""

    def test_reverse_returns_address(self, service, mock_redis):
        """Test the formatted address of the first result is returned."""
        service.geocoder.reverse.return_value = Mock(address="1 Main St, Springfield")

        result = service.reverse(Coordinates(latitude=39.78, longitude=-89.65))

        assert result == "1 Main St, Springfield"
        service.geocoder.reverse.assert_called_once_with(
            "39.78, -89.65", exactly_one=True
        )
        assert mock_redis.setex.call_args.args[0] == (
            "geocode:reverse:39.780000,-89.650000"
        )

    def test_reverse_uses_cache(self, service, mock_redis):
        """Test cached addresses skip the provider."""
        mock_redis.get.return_value = json.dumps({"address": "Cached St"})

        assert service.reverse(Coordinates(latitude=1, longitude=2)) == "Cached St"
        service.geocoder.reverse.assert_not_called()

    def test_reverse_no_result(self, service):
        """Test an empty provider answer gives None."""
        service.geocoder.reverse.return_value = None

        assert service.reverse(Coordinates(latitude=0, longitude=0)) is None

    def test_reverse_provider_failure(self, service):
        """Test provider failures surface as ResolutionError."""
        service.geocoder.reverse.side_effect = GeocoderTimedOut("timeout")

        with pytest.raises(ResolutionError):
            service.reverse(Coordinates(latitude=0, longitude=0))


class TestWithoutApiKey:
    """Behaviour when no provider key is configured."""

    @pytest.fixture
    def unconfigured(self, monkeypatch) -> GeocodingService:
        monkeypatch.delenv("GEOCODING_API_KEY", raising=False)
        monkeypatch.delenv("TEST_REDIS_URL", raising=False)
        return GeocodingService(Settings())

    def test_construction_succeeds(self, unconfigured):
        """Test the service builds without a key, with the provider disabled."""
        assert unconfigured.configured is False
        assert unconfigured.geocoder is None

    def test_forward_raises_resolution_error(self, unconfigured):
        """Test lookups fail as resolution errors instead of at startup."""
        with pytest.raises(ResolutionError, match="not configured"):
            unconfigured.forward("1 Main St, Springfield")

    def test_reverse_raises_resolution_error(self, unconfigured):
        """Test reverse lookups fail the same way."""
        with pytest.raises(ResolutionError, match="not configured"):
            unconfigured.reverse(Coordinates(latitude=1.0, longitude=2.0))

    def test_configured_with_key(self, service):
        """Test a key enables the provider."""
        assert service.configured is True
