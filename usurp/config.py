"""
Configuration - Environment-driven settings.

    USURP_ENV               development | production | test
    USURP_DATA_DIR          Where sessions and the leaderboard are stored
                            (unset: keep everything in memory)
    USURP_DECISION_TIMEOUT  Seconds an automated seat may think
    USURP_LOG_LEVEL         Root log level
    USURP_HISTORY_WINDOW    Log lines shown to decision providers
    ALLOWED_ORIGINS         Comma-separated CORS origins
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import logging
import os


DEFAULT_DECISION_TIMEOUT = 30.0
DEFAULT_HISTORY_WINDOW = 6

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    env: str = "development"
    data_dir: Path | None = None
    decision_timeout: float = DEFAULT_DECISION_TIMEOUT
    log_level: str = "INFO"
    history_window: int = DEFAULT_HISTORY_WINDOW
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings from the environment, falling back to defaults."""
        data_dir = os.getenv("USURP_DATA_DIR")
        return cls(
            env=os.getenv("USURP_ENV", "development"),
            data_dir=Path(data_dir).expanduser() if data_dir else None,
            decision_timeout=float(os.getenv("USURP_DECISION_TIMEOUT", DEFAULT_DECISION_TIMEOUT)),
            log_level=os.getenv("USURP_LOG_LEVEL", "INFO").upper(),
            history_window=int(os.getenv("USURP_HISTORY_WINDOW", DEFAULT_HISTORY_WINDOW)),
            allowed_origins=[o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()],
        )

    @property
    def is_production(self) -> bool:
        return self.env == "production"


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging for the CLI and the server."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
