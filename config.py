from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./giftcards.db"

    # Brand logo search (Brandfetch). Lookup is disabled when no key is set.
    BRAND_LOGO_API_KEY: str = ""
    BRAND_LOGO_API_URL: str = "https://api.brandfetch.io/v2"
    LOGO_LOOKUP_TIMEOUT: float = 10.0

    LOG_LEVEL: str = "INFO"


settings = Settings()
