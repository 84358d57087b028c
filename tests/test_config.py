from app.core.config import (
    AppSettings,
    OpenRouterSettings,
    PostgresSettings,
    RateLimitSettings,
)


def test_openrouter_defaults(monkeypatch):
    for var in ("OPENROUTER_API_KEY", "OPENROUTER_MODEL", "OPENROUTER_TIMEOUT_MS"):
        monkeypatch.delenv(var, raising=False)

    cfg = OpenRouterSettings(_env_file=None)

    assert cfg.api_key is None
    assert cfg.base_url == "https://openrouter.ai/api/v1"
    assert cfg.model == "meta-llama/llama-3.3-70b-instruct:free"
    assert cfg.timeout_ms == 60_000


def test_openrouter_env_override(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-test")
    monkeypatch.setenv("OPENROUTER_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("OPENROUTER_TIMEOUT_MS", "5000")

    cfg = OpenRouterSettings(_env_file=None)

    assert cfg.api_key == "sk-or-test"
    assert cfg.model == "openai/gpt-4o-mini"
    assert cfg.timeout_ms == 5000


def test_rate_limit_env_override(monkeypatch):
    monkeypatch.setenv("GENERATION_RATE_LIMIT_MAX_REQUESTS", "3")
    monkeypatch.setenv("GENERATION_RATE_LIMIT_WINDOW_MS", "1000")

    cfg = RateLimitSettings(_env_file=None)

    assert cfg.max_requests == 3
    assert cfg.window_ms == 1000


def test_postgres_connection_string(monkeypatch):
    monkeypatch.setenv("POSTGRES_HOST", "db")
    monkeypatch.setenv("POSTGRES_DB_NAME", "cards")

    cfg = PostgresSettings(_env_file=None)

    assert str(cfg.connection_string).startswith("postgresql+asyncpg://")
    assert "@db:5432/cards" in str(cfg.connection_string)


def test_app_modes(monkeypatch):
    monkeypatch.setenv("MODE", "test")

    cfg = AppSettings(_env_file=None)

    assert cfg.is_testing is True
    assert cfg.is_production is True
