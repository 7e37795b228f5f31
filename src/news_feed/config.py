from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    news_api_key: str | None = None
    news_api_base_url: str = "https://newsapi.org/v2/"
    news_country: str = "us"
    news_category: str = "business"

    connect_timeout_seconds: float = 30.0
    read_timeout_seconds: float = 30.0

    cache_path: str = ".news_cache/articles.json"

    connectivity_check_host: str = "newsapi.org"
    connectivity_check_port: int = 443
    offline: bool = False

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def is_api_key_configured(self) -> bool:
        return bool(self.news_api_key and self.news_api_key.strip())


settings = Settings()
