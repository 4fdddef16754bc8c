"""Tests for settings and startup validation."""

import pytest

from snapshot_relay.config import Settings
from snapshot_relay.errors import ConfigError
from snapshot_relay.services import build_reader, build_services

REMOTE_VARS = ("QLIK_TENANT_URL", "QLIK_M2M_CLIENT_ID", "QLIK_M2M_CLIENT_SECRET")


@pytest.fixture
def clean_env(monkeypatch):
    for name in REMOTE_VARS + ("PORT", "API_PORT", "MAX_CONCURRENT_FETCHES"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.api_port == 3000
        assert settings.snapshot_store_uri == "file://./public/snapshots"
        assert settings.execution_id == "latest"
        assert settings.max_concurrent_fetches == 1
        assert settings.oauth_scope == "user_default"

    def test_reads_remote_variables(self, clean_env):
        clean_env.setenv("QLIK_TENANT_URL", "https://tenant.example.com")
        clean_env.setenv("QLIK_M2M_CLIENT_ID", "client-id")
        clean_env.setenv("QLIK_M2M_CLIENT_SECRET", "client-secret")

        settings = Settings(_env_file=None)

        assert settings.tenant_url == "https://tenant.example.com"
        assert settings.m2m_client_id == "client-id"
        assert settings.missing_remote_credentials() == []
        settings.require_remote_credentials()

    def test_port_variable(self, clean_env):
        clean_env.setenv("PORT", "8123")

        assert Settings(_env_file=None).api_port == 8123

    def test_missing_credentials_raise_config_error(self, clean_env):
        clean_env.setenv("QLIK_TENANT_URL", "https://tenant.example.com")
        clean_env.setenv("QLIK_M2M_CLIENT_SECRET", "   ")
        settings = Settings(_env_file=None)

        with pytest.raises(ConfigError) as exc_info:
            settings.require_remote_credentials()

        assert exc_info.value.code == "CONFIG_MISSING"
        assert "QLIK_M2M_CLIENT_ID" in exc_info.value.message
        assert "QLIK_M2M_CLIENT_SECRET" in exc_info.value.message
        assert "QLIK_TENANT_URL" not in exc_info.value.message


class TestBuildServices:
    """Components are wired once from explicit settings."""

    def test_refuses_to_build_without_credentials(self, clean_env):
        with pytest.raises(ConfigError):
            build_services(Settings(_env_file=None))

    @pytest.mark.asyncio
    async def test_builds_components(self, clean_env, tmp_path):
        settings = Settings(
            _env_file=None,
            tenant_url="tenant.example.com",
            m2m_client_id="client-id",
            m2m_client_secret="client-secret",
            snapshot_store_uri=f"file://{tmp_path}/snapshots",
            max_concurrent_fetches=4,
        )

        services = build_services(settings)
        try:
            assert services.reconciler.max_concurrency == 4
            assert services.fetcher.store is services.store
            assert services.fetcher.files is services.catalog
            assert services.catalog.base_url == "https://tenant.example.com"
            assert services.reader.list_local() == []
        finally:
            await services.aclose()

    def test_reader_needs_no_credentials(self, clean_env, tmp_path):
        settings = Settings(_env_file=None, snapshot_store_uri=str(tmp_path / "snapshots"))

        assert build_reader(settings).list_local() == []
