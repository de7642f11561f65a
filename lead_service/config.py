from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Runtime ---
    ENV: str = "dev"  # dev|prod
    LEAD_DB_URL: str = "sqlite+aiosqlite:///./leads.db"

    # --- Minimal service auth (API key) ---
    # Send: X-API-Key: <key>
    API_KEY: str | None = None

    # --- Dedup ---
    # "brand": a contact is served at most once per brand (across campaigns)
    # "namespace": at most once per campaign
    DEDUP_SCOPE: str = "brand"
    DELIVERY_CHECK_ENABLED: bool = False

    # --- Pull loop bounds ---
    PULL_MAX_ITERATIONS: int = 100
    PULL_MAX_EMPTY_PAGES: int = 10

    # --- Idempotency janitor ---
    IDEMPOTENCY_TTL_HOURS: int = 24
    IDEMPOTENCY_PRUNE_PROBABILITY: float = 0.05

    # --- Outbound HTTP ---
    HTTP_TIMEOUT_S: float = 30.0
    HTTP_MAX_RETRIES: int = 2
    HTTP_BACKOFF_BASE_S: float = 0.5
    HTTP_CIRCUIT_FAIL_THRESHOLD: int = 5
    HTTP_CIRCUIT_RESET_S: float = 30.0

    # --- Search / enrichment provider ---
    SEARCH_SERVICE_URL: str = "http://localhost:3003"
    SEARCH_SERVICE_API_KEY: str | None = None
    SEARCH_DEFAULT_PER_PAGE: int = 25
    REFERENCE_CACHE_TTL_S: int = 24 * 60 * 60

    # --- Context services (campaign / brand metadata) ---
    CAMPAIGN_SERVICE_URL: str = "http://localhost:3004"
    CAMPAIGN_SERVICE_API_KEY: str | None = None
    BRAND_SERVICE_URL: str = "http://localhost:3005"
    BRAND_SERVICE_API_KEY: str | None = None

    # --- Delivery status (email gateway) ---
    EMAIL_GATEWAY_SERVICE_URL: str = "http://localhost:3009"
    EMAIL_GATEWAY_SERVICE_API_KEY: str | None = None

    # --- Run / cost tracking ---
    RUNS_SERVICE_URL: str | None = None
    RUNS_SERVICE_API_KEY: str | None = None
    RUNS_SERVICE_NAME: str = "lead-service"

    # --- Filter translation (LLM) ---
    # Leave LLM_API_KEY unset to send caller filters to the provider untouched.
    LLM_API_KEY: str | None = None
    LLM_BASE_URL: str | None = None
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_MAX_ATTEMPTS: int = 3
    LLM_MAX_TOKENS: int = 1024
    TRANSLATION_CACHE_TTL_DAYS: int = 180


settings = Settings()
