import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False
    LOG_LEVEL: str = "INFO"

    # Access decision cache
    ACCESS_CACHE_ENABLED: bool = True
    ACCESS_CACHE_TTL_SECONDS: float = 300.0  # 5 minutes
    ACCESS_CACHE_MAX_ENTRIES: int = 1000

    # Calculations
    CALCULATION_BASE_SCORE: float = 50.0

    # Upgrade prompts
    UPGRADE_CTA_TEXT: str = "Upgrade Now"
    UPGRADE_CTA_URL: str = "/pricing"

    # CORS (comma-separated)
    CORS_ALLOWED_ORIGINS: str = "http://localhost:3000"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate access and calculation configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("prompt_machine")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    if getattr(cfg, "ACCESS_CACHE_TTL_SECONDS", 0) <= 0:
        problems.append("ACCESS_CACHE_TTL_SECONDS must be positive")
    if getattr(cfg, "ACCESS_CACHE_MAX_ENTRIES", 0) < 1:
        problems.append("ACCESS_CACHE_MAX_ENTRIES must be at least 1")
    base_score = getattr(cfg, "CALCULATION_BASE_SCORE", 50.0)
    if not 0 <= base_score <= 100:
        problems.append("CALCULATION_BASE_SCORE must be within 0..100")

    if problems:
        message = f"Invalid configuration: {'; '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
