"""
Tests for settings validation.
"""
import pytest
from pydantic import ValidationError

from wrytix.config import Settings


def test_defaults():
    config = Settings(STORAGE_BACKEND="json")

    assert config.PORT == 3000
    assert config.SESSION_COOKIE_SECURE is False
    assert config.AD_EXPIRY_SWEEP_INTERVAL_SECONDS == 600


def test_storage_backend_is_normalized():
    assert Settings(STORAGE_BACKEND=" JSON ").STORAGE_BACKEND == "json"


def test_unknown_storage_backend_is_rejected():
    with pytest.raises(ValidationError):
        Settings(STORAGE_BACKEND="sqlite")


def test_mongodb_backend_requires_url():
    with pytest.raises(ValidationError):
        Settings(STORAGE_BACKEND="mongodb", MONGODB_URL="")

    config = Settings(STORAGE_BACKEND="mongodb", MONGODB_URL="mongodb://localhost:27017")
    assert config.MONGODB_DATABASE == "wrytix"


@pytest.mark.parametrize(
    "field", ["SESSION_TTL_HOURS", "SESSION_CLEANUP_INTERVAL_SECONDS", "AD_EXPIRY_SWEEP_INTERVAL_SECONDS"]
)
def test_intervals_must_be_positive(field):
    with pytest.raises(ValidationError):
        Settings(STORAGE_BACKEND="json", **{field: 0})


def test_cors_origins_split():
    config = Settings(STORAGE_BACKEND="json", CORS_ORIGINS="https://a.example, ,http://localhost:5500")

    assert config.cors_origins == ["https://a.example", "http://localhost:5500"]
