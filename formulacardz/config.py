from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Formula Cardz"
    debug: bool = False

    api_base_url: str = "https://formula-cardz-api.onrender.com"

    # Seconds before a remote call is abandoned and surfaced as a NetworkError
    request_timeout: float = 30.0

    # Durable storage for the persisted session entries
    storage_url: str = "sqlite+aiosqlite:///formula_cardz.db"

    token_expiry_hours: int = 24
    remember_me_expiry_hours: int = 24 * 60


settings = Settings()


# =============================================================================
# PERSISTED SESSION KEYS
# =============================================================================

# These four entries are written and cleared together, never individually.
TOKEN_KEY = "formula_cardz_token"
USER_KEY = "formula_cardz_user"
TOKEN_TIMESTAMP_KEY = "formula_cardz_token_timestamp"
REMEMBER_ME_KEY = "formula_cardz_remember_me"

SESSION_KEYS = (TOKEN_KEY, USER_KEY, TOKEN_TIMESTAMP_KEY, REMEMBER_ME_KEY)
