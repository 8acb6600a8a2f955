"""Client configuration for the UN SDG API.

`SDGConfig` is constructed programmatically with named overrides. The CLI
additionally offers `SDGConfig.from_env()` so that `.env` files can carry
the same values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_BASE_URL = "https://unstats.un.org/sdgapi"


def _first_token(env_name: str, default: str = "") -> str:
    """環境変数値の先頭トークンを返す。

    - 値が空、未設定、または空白のみの場合は *default* を返す。
    - 行末コメント " # xxxx" を除去するために空白区切りの 1 つ目だけ取得。
    """

    val = os.getenv(env_name)
    if not val or not val.strip():
        val = default
    tokens = val.strip().split()
    return tokens[0] if tokens else default


@dataclass(frozen=True)
class SDGConfig:
    """Immutable settings shared by every request a client issues.

    Parameters
    ----------
    base_url
        API root, e.g. ``https://unstats.un.org/sdgapi``.
    timeout
        Per-request read timeout in seconds.
    rate_limit_ms
        Minimum spacing between two requests of the same client.
    max_retries
        Total number of attempts per request (>= 1).
    page_size
        ``pageSize`` sent with paginated data queries.
    """

    base_url: str = DEFAULT_BASE_URL
    timeout: int = 30
    rate_limit_ms: int = 500
    max_retries: int = 3
    page_size: int = 1000

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        if self.rate_limit_ms < 0:
            raise ValueError(f"rate_limit_ms must be >= 0, got {self.rate_limit_ms}")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {self.page_size}")

    @classmethod
    def from_env(cls, **overrides: object) -> "SDGConfig":
        """Build a config from ``UNSTATS_*`` environment variables.

        Explicit *overrides* win over the environment; ``None`` overrides are
        ignored so that unset CLI flags fall through.
        """
        values: dict[str, object] = {
            "base_url": _first_token("UNSTATS_BASE_URL", DEFAULT_BASE_URL),
            "timeout": int(_first_token("UNSTATS_TIMEOUT", "30")),
            "rate_limit_ms": int(_first_token("UNSTATS_RATE_LIMIT_MS", "500")),
            "max_retries": int(_first_token("UNSTATS_MAX_RETRIES", "3")),
            "page_size": int(_first_token("UNSTATS_PAGE_SIZE", "1000")),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]
