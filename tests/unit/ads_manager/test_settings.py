from projects.ads_manager.config import AdsManagerSettings
from shared.infrastructure.config.settings import Settings


def test_ads_settings_read_environment_case_insensitively(monkeypatch):
    monkeypatch.setenv("FACEBOOK_API_VERSION", "v24.0")
    monkeypatch.setenv("ads_credential_ttl_seconds", "120")
    monkeypatch.setenv("ADS_SOMETHING_UNKNOWN", "x")

    config = AdsManagerSettings(_env_file=None)

    assert config.facebook_api_version == "v24.0"
    assert config.ads_credential_ttl_seconds == 120
    assert not hasattr(config, "ads_something_unknown")


def test_infrastructure_settings_defaults(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/2")

    config = Settings(_env_file=None)

    assert config.redis_url == "redis://cache:6379/2"
    assert config.log_level == "INFO"
