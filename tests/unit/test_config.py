from __future__ import annotations

import pytest

from splitbills.config import DEFAULT_API_URL, DEFAULT_CORS_ORIGINS, load_settings

_VARIABLES = (
    "SPLITBILLS_DATABASE_URL",
    "SPLITBILLS_API_URL",
    "SPLITBILLS_HOST",
    "PORT",
    "SPLITBILLS_CORS_ORIGINS",
    "SPLITBILLS_PRIMARY",
    "SPLITBILLS_SECONDARY",
    "SPLITBILLS_STRICT_PAYERS",
    "SPLITBILLS_HTTP_TIMEOUT",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> pytest.MonkeyPatch:
    for name in _VARIABLES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SPLITBILLS_ENV_FILE", str(tmp_path / "missing.env"))
    return monkeypatch


def test_defaults(clean_env):
    settings = load_settings()
    assert settings.api_url == DEFAULT_API_URL
    assert settings.port == 3001
    assert settings.cors_origins == DEFAULT_CORS_ORIGINS
    assert settings.participants == ("Primary", "Secondary")
    assert settings.strict_payers is False


def test_environment_overrides(clean_env):
    clean_env.setenv("SPLITBILLS_API_URL", "https://bills.example/api/")
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("SPLITBILLS_CORS_ORIGINS", "https://a.example, https://b.example")
    clean_env.setenv("SPLITBILLS_PRIMARY", "Yasmin")
    clean_env.setenv("SPLITBILLS_SECONDARY", "Ladya")
    clean_env.setenv("SPLITBILLS_STRICT_PAYERS", "yes")
    clean_env.setenv("SPLITBILLS_HTTP_TIMEOUT", "2.5")
    settings = load_settings()
    assert settings.api_url == "https://bills.example/api"
    assert settings.port == 8080
    assert settings.cors_origins == ("https://a.example", "https://b.example")
    assert settings.participants == ("Yasmin", "Ladya")
    assert settings.strict_payers is True
    assert settings.http_timeout == 2.5


def test_dotenv_file_is_loaded_without_overriding(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("SPLITBILLS_DATABASE_URL=sqlite:///from-file.db\nSPLITBILLS_PRIMARY=FromFile\n")
    clean_env.setenv("SPLITBILLS_ENV_FILE", str(env_file))
    clean_env.setenv("SPLITBILLS_PRIMARY", "Exported")
    settings = load_settings()
    assert settings.database_url == "sqlite:///from-file.db"
    assert settings.primary == "Exported"


def test_invalid_port_is_reported(clean_env):
    clean_env.setenv("PORT", "eighty")
    with pytest.raises(ValueError, match="PORT must be a number"):
        load_settings()


def test_participants_must_differ(clean_env):
    clean_env.setenv("SPLITBILLS_PRIMARY", "Sam")
    clean_env.setenv("SPLITBILLS_SECONDARY", "Sam")
    with pytest.raises(ValueError):
        load_settings()
