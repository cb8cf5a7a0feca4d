"""
Unit tests for configuration loading.

Settings are built with explicit values and _env_file=None so the
developer's own .env never leaks into the tests.
"""

import pytest

from src.config.settings import Settings, load_storage_config
from src.core.storage.errors import ConfigurationError


def make_settings(**overrides) -> Settings:
    values = {
        "r2_account_id": "acct123",
        "r2_access_key_id": "AKIDEXAMPLE",
        "r2_secret_access_key": "secret",
        "r2_public_url": None,
        "r2_endpoint_host": None,
        "legacy_store_url": "https://happy-otter-123.convex.cloud",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestLoadStorageConfig:
    """Credentials are all-or-nothing."""

    def test_builds_config_from_settings(self):
        """Settings map onto the frozen config."""
        config = load_storage_config(make_settings(r2_public_url="https://cdn.example.com/"))

        assert config.account_id == "acct123"
        assert config.access_key_id == "AKIDEXAMPLE"
        assert config.bucket_name == "negosyo-digital"
        assert config.endpoint_host == "acct123.r2.cloudflarestorage.com"
        assert config.public_url_base == "https://cdn.example.com"

    def test_endpoint_host_override(self):
        """A custom endpoint replaces the derived R2 host."""
        config = load_storage_config(make_settings(r2_endpoint_host="minio.local:9000"))
        assert config.endpoint_host == "minio.local:9000"

    @pytest.mark.parametrize(
        "field,env_name",
        [
            ("r2_account_id", "R2_ACCOUNT_ID"),
            ("r2_access_key_id", "R2_ACCESS_KEY_ID"),
            ("r2_secret_access_key", "R2_SECRET_ACCESS_KEY"),
        ],
    )
    def test_missing_credential_is_named(self, field, env_name):
        """Errors name the environment variable to set."""
        with pytest.raises(ConfigurationError) as excinfo:
            load_storage_config(make_settings(**{field: ""}))

        assert excinfo.value.missing_fields == [env_name]
        assert env_name in str(excinfo.value)

    def test_all_missing_fields_are_reported_together(self):
        """Operators fix everything in one pass."""
        settings = make_settings(r2_account_id="", r2_access_key_id="", r2_secret_access_key="")

        with pytest.raises(ConfigurationError) as excinfo:
            load_storage_config(settings)

        assert excinfo.value.missing_fields == [
            "R2_ACCOUNT_ID",
            "R2_ACCESS_KEY_ID",
            "R2_SECRET_ACCESS_KEY",
        ]

    def test_error_never_contains_secret_values(self):
        """Configuration errors are safe to log."""
        settings = make_settings(r2_account_id="", r2_secret_access_key="top-secret-value")

        with pytest.raises(ConfigurationError) as excinfo:
            load_storage_config(settings)

        assert "top-secret-value" not in str(excinfo.value)


class TestValidateRequiredFields:
    """Requirements depend on mock modes."""

    def test_complete_settings_have_nothing_missing(self):
        """A full config passes the startup check."""
        assert make_settings().validate_required_fields() == []

    def test_mock_modes_skip_credentials(self):
        """Local development runs without real credentials."""
        settings = make_settings(
            r2_account_id="",
            r2_access_key_id="",
            r2_secret_access_key="",
            legacy_store_url="",
            r2_mock_mode=True,
            legacy_mock_mode=True,
        )
        assert settings.validate_required_fields() == []

    def test_legacy_store_url_required_outside_mock_mode(self):
        """The legacy store is part of the startup check."""
        assert make_settings(legacy_store_url="").validate_required_fields() == ["LEGACY_STORE_URL"]

    def test_presign_expiry_is_bounded(self):
        """Expiry settings outside the SigV4 range are rejected."""
        with pytest.raises(ValueError):
            make_settings(presign_expires_seconds=604801)
