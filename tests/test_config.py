# tests/test_config.py

"""
Tests for start-up configuration checks and the health endpoints.
"""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from core.config_validator import validate_backend_config, validate_config_on_startup, validate_required_config
from core.payment_providers import PlaceholderProvider
from main import create_app


def make_settings(**overrides) -> Settings:
    base = {
        "SUPABASE_URL": "https://project.supabase.co",
        "SUPABASE_SERVICE_ROLE_KEY": "service-key",
    }
    return Settings(_env_file=None, **{**base, **overrides})


def test_complete_config_passes():
    settings = make_settings()
    assert validate_required_config(settings) == []
    assert validate_backend_config(settings) == []


def test_missing_supabase_credentials_reported():
    settings = make_settings(SUPABASE_URL=None, SUPABASE_SERVICE_ROLE_KEY=None)
    assert validate_required_config(settings) == ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"]
    # Logged, not fatal: health checks report not_configured instead
    validate_config_on_startup(settings)


def test_stripe_without_key_is_fatal():
    settings = make_settings(PAYMENT_PROVIDER="stripe", STRIPE_SECRET_KEY=None)

    with pytest.raises(RuntimeError) as exc:
        validate_config_on_startup(settings)
    assert "STRIPE_SECRET_KEY" in str(exc.value)


def test_s3_backend_requires_credentials():
    problems = validate_backend_config(make_settings(STORAGE_BACKEND="s3"))
    assert "S3_ENDPOINT_URL is required when STORAGE_BACKEND=s3" in problems


def test_unknown_backends_rejected():
    problems = validate_backend_config(make_settings(STORAGE_BACKEND="ftp", PAYMENT_PROVIDER="cash"))
    assert len(problems) == 2


def test_health_app(client: TestClient):
    response = client.get("/health/app")
    assert response.status_code == 200


def test_health_db_reports_tables(client: TestClient):
    response = client.get("/health/db")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "requests" in body["details"]["tables"]


def test_startup_tolerates_route_entries_without_path(fake_db, storage):
    app = create_app(supabase_client=fake_db, storage=storage, payment_provider=PlaceholderProvider())
    # mounted sub-applications and included routers need not expose .path
    app.router.routes.append(SimpleNamespace(name="included-router"))

    with TestClient(app):
        assert app.state.supabase is fake_db
