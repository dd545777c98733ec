from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Redis (cache ricerche + rate limiter)
    redis_url: str = "redis://localhost:6379/0"
    redis_connect_timeout_seconds: float = 2.0

    # Amadeus — provider primario
    amadeus_client_id: str = ""
    amadeus_client_secret: str = ""
    amadeus_base_url: str = "https://test.api.amadeus.com"
    # Serializza il refresh del token OAuth2 dietro un asyncio.Lock (opt-in)
    amadeus_token_single_flight: bool = False
    # Codici errore Amadeus che attivano il fallback oltre ai 5xx
    amadeus_fallback_error_codes: set[int] = {141}

    # Duffel — provider di fallback
    duffel_access_token: str = ""
    duffel_base_url: str = "https://api.duffel.com"
    duffel_version: str = "v2"
    duffel_poll_attempts: int = 10
    duffel_poll_interval_seconds: float = 1.0

    # Search
    search_currency: str = "USD"
    search_max_results: int = 50
    cache_ttl_minutes: int = 15
    cache_max_entries: int = 10
    rate_limit_max_searches: int = 10
    rate_limit_window_seconds: int = 60

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173"]

    class Config:
        env_file = ".env"


# Istanza globale usata in tutto il progetto
settings = Settings()
