import pytest
from fastapi import HTTPException

from leadhub.core.config import Settings
from leadhub.core.security import (
    can,
    create_access_token,
    decode_access_token,
    hash_password,
    require_capability,
    verify_password,
)
from leadhub.services.catalog import generate_slug, validate_slug


class TestSettings:
    def test_missing_backend_configuration_is_fatal(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("JWT_SECRET", "x")
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            Settings().check()

    def test_complete_configuration_passes(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/db")
        monkeypatch.setenv("JWT_SECRET", "x")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        settings = Settings()
        settings.check()
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_business_timezone(self, monkeypatch):
        monkeypatch.setenv("APP_TIMEZONE", "Asia/Makassar")
        assert Settings().business_timezone.zone == "Asia/Makassar"
        monkeypatch.delenv("APP_TIMEZONE")
        assert Settings().business_timezone.zone == "Asia/Jakarta"


class TestSecurity:
    def test_password_hash_roundtrip(self):
        hashed = hash_password("rahasia123")
        assert hashed != "rahasia123"
        assert verify_password("rahasia123", hashed)
        assert not verify_password("salah", hashed)

    def test_token_carries_subject(self):
        token = create_access_token({"sub": "7", "role": "super_admin"})
        payload = decode_access_token(token)
        assert payload["sub"] == "7"
        assert payload["role"] == "super_admin"

    def test_tampered_token_is_rejected(self):
        token = create_access_token({"sub": "7"})
        with pytest.raises(HTTPException) as exc:
            decode_access_token(token + "x")
        assert exc.value.status_code == 401

    def test_capability_table(self):
        agent = {"role": "admin"}
        hc = {"role": "handle_customer"}
        boss = {"role": "super_admin"}
        assert can(agent, "leads") and not can(agent, "handle_customers") and not can(agent, "settings")
        assert can(hc, "handle_customers") and not can(hc, "settings")
        assert can(boss, "settings") and can(boss, "handle_customers")

    def test_unknown_capability(self):
        with pytest.raises(ValueError):
            require_capability("billing")


class TestSlugs:
    def test_generate(self):
        assert generate_slug("Course A") == "course-a"
        assert generate_slug("  Kelas   Bisnis Online!! ") == "kelas-bisnis-online"

    def test_validate(self):
        assert validate_slug("course-a") is None
        assert validate_slug("") is not None
        assert validate_slug("Course A") is not None
        assert validate_slug("double--hyphen") is not None
        assert "reserved" in validate_slug("dashboard")
