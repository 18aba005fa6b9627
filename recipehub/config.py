from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RECIPEHUB_")

    database_url: str = "sqlite:///./recipehub.db"
    echo_sql: bool = False
    log_level: str = "INFO"
    # upper bound the HTTP layer accepts for ?size=
    max_page_size: int = 200


settings = Settings()
