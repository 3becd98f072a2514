"""Application configuration — environment variables and defaults.

Every tunable of a collection run lives HERE: credentials, data paths,
the resolution window, and upstream pacing/timeouts.
"""

import os
import sys
from pathlib import Path


class ConfigurationError(RuntimeError):
    """A required setting (usually a credential) is missing."""


class Settings:
    """Central configuration pulled from environment with safe defaults."""

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    DATA_DIR: Path = Path(os.getenv("HONEYBOT_DATA_DIR", str(BASE_DIR / "data")))
    LOGS_DIR: Path = Path(os.getenv("HONEYBOT_LOGS_DIR", str(BASE_DIR / "logs")))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Database
    DB_PATH: Path = Path(
        os.getenv("HONEYBOT_DB_PATH", str(DATA_DIR / "honeybot.duckdb"))
    )

    # ── Video source ───────────────────────────────────────────────
    YOUTUBE_API_KEY: str = os.getenv("YOUTUBE_API_KEY", "")
    YOUTUBE_CHANNEL_ID: str = os.getenv(
        "YOUTUBE_CHANNEL_ID", "UCznImSIaxZR7fdLCICLdgaQ"
    )
    YOUTUBE_API_URL: str = os.getenv(
        "YOUTUBE_API_URL", "https://www.googleapis.com/youtube/v3"
    )
    COLLECT_DAYS: int = int(os.getenv("COLLECT_DAYS", "30"))

    # ── Resolution ─────────────────────────────────────────────────
    RESOLUTION_WINDOW_HOURS: int = int(os.getenv("RESOLUTION_WINDOW_HOURS", "24"))
    # "record" keeps unmapped assets as unresolved/unknown_asset, "drop" discards
    UNKNOWN_ASSET_POLICY: str = os.getenv("UNKNOWN_ASSET_POLICY", "record")

    # ── Classifier ─────────────────────────────────────────────────
    # Which strategy classifies titles: "pattern" | "llm"
    CLASSIFIER: str = os.getenv("CLASSIFIER", "pattern")

    # ── LLM Provider ───────────────────────────────────────────────
    # Which provider to use: "openai" | "ollama" | "lmstudio"
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai")
    OPENAI_URL: str = os.getenv("OPENAI_URL", "https://api.openai.com")
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://localhost:11434")
    LMSTUDIO_URL: str = os.getenv("LMSTUDIO_URL", "http://localhost:1234")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.1"))
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")

    @property
    def LLM_BASE_URL(self) -> str:
        """Computed: returns the active provider URL based on LLM_PROVIDER."""
        if self.LLM_PROVIDER == "lmstudio":
            return self.LMSTUDIO_URL.rstrip("/")
        if self.LLM_PROVIDER == "ollama":
            return self.OLLAMA_URL.rstrip("/")
        return self.OPENAI_URL.rstrip("/")

    # ── Market data ────────────────────────────────────────────────
    BINANCE_URL: str = os.getenv("BINANCE_URL", "https://api.binance.com")
    CRYPTO_REQUEST_DELAY: float = float(os.getenv("CRYPTO_REQUEST_DELAY", "0.05"))
    EQUITY_LOOKUP_TIMEOUT: float = float(os.getenv("EQUITY_LOOKUP_TIMEOUT", "30"))
    EQUITY_PYTHON: str = os.getenv("EQUITY_PYTHON", sys.executable)

    # Read API
    RECENT_PREDICTIONS_LIMIT: int = int(os.getenv("RECENT_PREDICTIONS_LIMIT", "20"))

    @property
    def LEDGER_DIR(self) -> Path:
        return self.DATA_DIR / "ledger"

    @property
    def STATS_PATH(self) -> Path:
        return self.DATA_DIR / "stats" / "honey-index.json"

    def __init__(self) -> None:
        """Ensure runtime directories exist."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.LOGS_DIR.mkdir(parents=True, exist_ok=True)

    def require(self, *names: str) -> None:
        """Raise ConfigurationError if any named setting is empty.

        Called by the run entry points before any network I/O so that a
        missing credential aborts the whole run up front.
        """
        missing = [n for n in names if not getattr(self, n, "")]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )

    def required_for_run(self) -> list[str]:
        """Names of the settings a collection run cannot start without."""
        names = ["YOUTUBE_API_KEY"]
        if self.CLASSIFIER == "llm" and self.LLM_PROVIDER == "openai":
            names.append("OPENAI_API_KEY")
        return names


settings = Settings()
