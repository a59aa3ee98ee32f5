"""Pytest configuration and fixtures."""

import os
import time
from collections import defaultdict
from collections.abc import Callable, Generator
from contextlib import ExitStack
from typing import Any
from unittest.mock import MagicMock, patch

import jwt
import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("MIDTRANS_SERVER_KEY", "SB-Mid-server-test-key")
os.environ.setdefault("MIDTRANS_CLIENT_KEY", "SB-Mid-client-test-key")
os.environ.setdefault("MIDTRANS_IS_PRODUCTION", "false")

TEST_USER_ID = "550e8400-e29b-41d4-a716-446655440000"
OTHER_USER_ID = "660e8400-e29b-41d4-a716-446655440001"

# Every module that looks up the Supabase client by name
SUPABASE_CLIENT_TARGETS = (
    "src.core.supabase.get_supabase_client",
    "src.services.cart_service.get_supabase_client",
    "src.services.menu_service.get_supabase_client",
    "src.services.order_service.get_supabase_client",
    "src.services.payment_service.get_supabase_client",
    "src.services.profile_service.get_supabase_client",
    "src.services.recipient_service.get_supabase_client",
    "src.services.report_service.get_supabase_client",
)


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def tables() -> dict[str, MagicMock]:
    """One query-builder mock per table name, created on first use."""
    return defaultdict(MagicMock)


@pytest.fixture
def mock_supabase_client(tables: dict[str, MagicMock]) -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client patched into every service.

    ``client.table(name)`` returns ``tables[name]`` so tests can configure
    each table's query chain separately.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()
    mock_client.table.side_effect = lambda name: tables[name]

    with ExitStack() as stack:
        for target in SUPABASE_CLIENT_TARGETS:
            stack.enter_context(patch(target, return_value=mock_client))
        yield mock_client


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Factory for Supabase-style HS256 access tokens."""

    def _make_token(
        sub: str = TEST_USER_ID,
        email: str | None = "parent@example.com",
        name: str | None = "Ibu Sari",
        exp_offset: int = 3600,
        secret: str | None = None,
    ) -> str:
        now = int(time.time())
        payload = {
            "sub": sub,
            "email": email,
            "role": "authenticated",
            "aud": "authenticated",
            "exp": now + exp_offset,
            "iat": now,
            "user_metadata": {"name": name} if name else {},
        }
        return jwt.encode(payload, secret or os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")

    return _make_token


@pytest.fixture
def auth_headers(make_token: Callable[..., str]) -> dict[str, str]:
    """Authorization header for the default test user."""
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def client(mock_supabase_client: MagicMock) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client
