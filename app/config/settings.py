from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_exchanges() -> dict[str, str]:
    return {
        "exchange1": "exchange1:40101",
        "exchange2": "exchange2:40102",
        "exchange3": "exchange3:40103",
    }


class Settings(BaseSettings):
    app_name: str = "Market Price Gateway"
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    data_service_url: str = "http://localhost:8081"
    request_timeout_seconds: int = 8

    # short exchange id -> canonical address used by the data service
    exchanges: dict[str, str] = Field(default_factory=_default_exchanges)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


settings = Settings()
