from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    SQLSERVER_CONN_STRING: str = ""
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"

    RENTCAST_API_KEY: str = ""
    RENTCAST_BASE_URL: str = "https://api.rentcast.io/v1"

    EMAIL_DISPATCH_URL: str = ""
    EMAIL_DISPATCH_TOKEN: str = ""
    APP_URL: str = ""

    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Lender thresholds
    MAX_LTV_PERCENT: float = 80.0
    MAX_DTI_PERCENT: float = 43.0
    MIN_CREDIT_SCORE: int = 620

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
