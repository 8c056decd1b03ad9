"""Unit tests for settings parsing."""

import pytest
from libs.common.config import Settings


@pytest.mark.unit
def test_postgres_url_uses_psycopg_driver():
    settings = Settings(DATABASE_URL="postgresql://tutor:pw@db:5432/tutor")

    assert settings.DATABASE_URL == "postgresql+psycopg://tutor:pw@db:5432/tutor"


@pytest.mark.unit
def test_async_sqlite_url_is_untouched():
    settings = Settings(DATABASE_URL="sqlite+aiosqlite:///./local.db")

    assert settings.DATABASE_URL == "sqlite+aiosqlite:///./local.db"


@pytest.mark.unit
def test_blank_gateway_secrets_count_as_unset():
    settings = Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        FAWATERAK_API_KEY="   ",
        FAWATERAK_PROVIDER_KEY="",
    )

    assert settings.FAWATERAK_API_KEY is None
    assert settings.FAWATERAK_PROVIDER_KEY is None


@pytest.mark.unit
def test_gateway_defaults():
    settings = Settings(DATABASE_URL="sqlite+aiosqlite://")

    assert settings.FAWATERAK_TIMEOUT_SECONDS == 30.0
    assert settings.PAYMENT_CURRENCY == "EGP"
