import pytest

from unstats_explorer.config import DEFAULT_BASE_URL, SDGConfig


def test_defaults():
    cfg = SDGConfig()
    assert cfg.base_url == DEFAULT_BASE_URL
    assert (cfg.timeout, cfg.rate_limit_ms, cfg.max_retries, cfg.page_size) == (30, 500, 3, 1000)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_url": ""},
        {"timeout": 0},
        {"rate_limit_ms": -1},
        {"max_retries": 0},
        {"page_size": 0},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        SDGConfig(**kwargs)


def test_from_env_reads_first_token(monkeypatch):
    monkeypatch.setenv("UNSTATS_BASE_URL", "https://mirror.test/sdgapi  # staging")
    monkeypatch.setenv("UNSTATS_PAGE_SIZE", "250")
    monkeypatch.setenv("UNSTATS_TIMEOUT", "   ")
    monkeypatch.delenv("UNSTATS_MAX_RETRIES", raising=False)

    cfg = SDGConfig.from_env()

    assert cfg.base_url == "https://mirror.test/sdgapi"
    assert cfg.page_size == 250
    assert cfg.timeout == 30
    assert cfg.max_retries == 3


def test_from_env_overrides_win_and_none_is_ignored(monkeypatch):
    monkeypatch.setenv("UNSTATS_TIMEOUT", "10")
    cfg = SDGConfig.from_env(timeout=None, page_size=50)
    assert cfg.timeout == 10
    assert cfg.page_size == 50
