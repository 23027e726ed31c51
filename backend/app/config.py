import os
from dataclasses import dataclass
from typing import Optional

def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _positive_float(raw: Optional[str], default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _positive_int(raw: Optional[str], default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

DEFAULT_RANKING_POLICY = "participation"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_BALANCING_TIMEOUT = 30.0
DEFAULT_MAX_MATCH_SCORE = 99


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment."""

    ai_api_key: Optional[str]
    ai_model: str
    balancing_timeout: float
    ranking_policy: str
    max_match_score: int

    @property
    def balancing_configured(self) -> bool:
        return bool(self.ai_api_key)


def get_settings() -> Settings:
    # API_KEY is the variable name older deployments used for the same credential.
    api_key = (os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or "").strip()
    return Settings(
        ai_api_key=api_key or None,
        ai_model=(os.getenv("GEMINI_MODEL") or "").strip() or DEFAULT_GEMINI_MODEL,
        balancing_timeout=_positive_float(
            os.getenv("BALANCING_TIMEOUT_SECONDS"), DEFAULT_BALANCING_TIMEOUT
        ),
        ranking_policy=(os.getenv("RANKING_POLICY") or "").strip().lower()
        or DEFAULT_RANKING_POLICY,
        max_match_score=_positive_int(
            os.getenv("MAX_MATCH_SCORE"), DEFAULT_MAX_MATCH_SCORE
        ),
    )
