"""Application settings using Pydantic BaseSettings."""

from pydantic_settings import BaseSettings
from typing import Optional


# ========================================
# SIMULATOR BOUNDS (values outside are clamped, never rejected)
# ========================================
MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 50_000
MIN_TICK_INTERVAL_MS = 1
MAX_TICK_INTERVAL_MS = 10_000
MIN_LIMIT_TOTAL = 1
MAX_LIMIT_TOTAL = 100_000_000

# Mega-Sena format: 6 distinct numbers out of 1..60
NUMBERS_PER_DRAW = 6
NUMBER_RANGE_MIN = 1
NUMBER_RANGE_MAX = 60


class Settings(BaseSettings):
    """Mega-Sena analytics settings."""

    # ========================================
    # DATA SOURCES
    # ========================================
    data_url: str = "https://raw.githubusercontent.com/guilhermeasn/loteria.json/master/data/megasena.json"
    analytic_url: str = "https://raw.githubusercontent.com/guilhermeasn/loteria.json/master/data/megasena.analytic.json"
    alt_api_base: str = "https://loteriascaixa-api.herokuapp.com/api"

    scraping_user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    scraping_timeout: int = 30
    scraping_retry_attempts: int = 3
    scraping_backoff_factor: float = 0.5
    alt_fetch_chunk_size: int = 6  # contests fetched per round when filling gaps

    # ========================================
    # SIMULATOR DEFAULTS
    # ========================================
    sim_batch_size: int = 5000
    sim_tick_interval_ms: int = 50
    sim_limit_enabled: bool = False
    sim_limit_total: int = 100_000
    sim_random_seed: Optional[int] = None

    # ========================================
    # ANALYSIS
    # ========================================
    combo_pool_cap: int = 16  # enumeration guard for co-occurrence analysis
    default_top_n: int = 6
    combo_rows_per_k: int = 12

    # ========================================
    # API CONFIGURATION
    # ========================================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False
    cors_origins: Optional[str] = "*"
    rate_limit_enabled: bool = True
    rate_limit_query: str = "60/minute"
    rate_limit_refresh: str = "5/minute"

    # ========================================
    # SCHEDULER CONFIGURATION
    # ========================================
    enable_scheduler: bool = True
    scheduler_timezone: str = "America/Sao_Paulo"
    history_refresh_schedule: str = "30 22 * * *"  # Daily at 22:30, after the draw
    load_history_on_startup: bool = True

    # ========================================
    # LOGGING CONFIGURATION
    # ========================================
    log_level: str = "INFO"
    log_format: str = "json"

    # ========================================
    # DEVELOPMENT/DEBUG SETTINGS
    # ========================================
    debug: bool = False

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
        "validate_assignment": False,
    }


# Global settings instance
settings = Settings()
