import pytest

from llm_diagrams.config import get_settings, validate_settings_for_env


def _base_prod_env() -> dict[str, str]:
    return {
        "APP_ENV": "prod",
        "ANTHROPIC_API_KEY": "sk-ant-prod",
        "ANTHROPIC_BASE_URL": "https://api.anthropic.com/v1",
        "DIAGRAM_MODEL": "claude-3-5-sonnet-20241022",
        "RENDER_WORK_DIR": "/var/lib/llm-diagrams/temp",
        "RENDER_COMMAND": "plantuml",
        "RENDER_FORMAT": "png",
    }


def test_defaults_match_original_policy() -> None:
    settings = get_settings()
    assert settings.anthropic_base_url == "https://api.anthropic.com/v1"
    assert settings.anthropic_version == "2023-06-01"
    assert settings.diagram_max_tokens == 1000
    assert settings.render_format == "png"
    assert settings.render_url_prefix == "/temp"


def test_validate_settings_prod_missing_required(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(_base_prod_env()):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")

    get_settings.cache_clear()
    try:
        settings = get_settings()
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            validate_settings_for_env(settings)
    finally:
        get_settings.cache_clear()


def test_validate_settings_prod_accepts_full_required_set(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    for key, value in _base_prod_env().items():
        monkeypatch.setenv(key, value)

    get_settings.cache_clear()
    try:
        settings = get_settings()
        validate_settings_for_env(settings)
    finally:
        get_settings.cache_clear()


def test_validate_settings_prod_rejects_non_positive_limits(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    for key, value in _base_prod_env().items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("DIAGRAM_MAX_TOKENS", "0")
    monkeypatch.setenv("RENDER_TIMEOUT_SECONDS", "-5")

    get_settings.cache_clear()
    try:
        settings = get_settings()
        with pytest.raises(ValueError) as exc:
            validate_settings_for_env(settings)
    finally:
        get_settings.cache_clear()
    assert "DIAGRAM_MAX_TOKENS" in str(exc.value)
    assert "RENDER_TIMEOUT_SECONDS" in str(exc.value)


def test_validate_settings_dev_skips_strict_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")

    get_settings.cache_clear()
    try:
        settings = get_settings()
        validate_settings_for_env(settings)
    finally:
        get_settings.cache_clear()


def test_validate_settings_warns_on_public_bind_in_prod(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    for key, value in _base_prod_env().items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("BIND_HOST", "0.0.0.0")

    get_settings.cache_clear()
    try:
        settings = get_settings()
        with pytest.warns(UserWarning, match="BIND_HOST"):
            validate_settings_for_env(settings)
    finally:
        get_settings.cache_clear()
