from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    api_base_url: str = "http://localhost:8080/api/outbound/v2"
    api_token: Optional[str] = None
    org_id: Optional[str] = None
    request_timeout: float = 30.0
    batch_size: int = 50

    # Above this many lots/serials the trace is refused with an advisory
    max_traced_items: int = 50

    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_prefix="INGREDIENT_TRACE_", case_sensitive=False)


settings = Settings()
