from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Runtime ---
    ENV: str = "dev"  # dev|prod
    HAVEN_DB_URL: str = "sqlite+aiosqlite:///./hayvn.db"

    # --- Bearer auth (session JWT issued by the identity provider) ---
    # Send: Authorization: Bearer <jwt>
    AUTH_JWT_SECRET: str | None = None
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: str | None = None

    CORS_ALLOW_ORIGINS: str = "*"  # comma-separated

    # --- IDX sync (RESO OData listing-query protocol) ---
    IDX_PAGE_SIZE: int = 300
    IDX_PAGE_SIZE_MAX: int = 300  # MLSListings rejects $top > 300
    IDX_MAX_PAGES: int = 20  # up to 6000 rows per connection
    IDX_MEDIA_MAX_PAGES: int = 40
    IDX_ORDER_BY: str = "ModificationTimestamp desc"

    # --- Outbound HTTP ---
    HTTP_TIMEOUT_S: float = 45.0
    HTTP_MAX_RETRIES: int = 2
    HTTP_BACKOFF_BASE_S: float = 0.5
    HTTP_RATE_LIMIT_RPS: float = 0.0  # 0 disables pacing

    # --- Matching ---
    MATCH_DEFAULT_LIMIT: int = 50
    MATCH_DEFAULT_TARGET_NEW: int = 5
    MATCH_CANDIDATE_FETCH_CAP: int = 2000


settings = Settings()
