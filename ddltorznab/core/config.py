from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "DDL Torznab"
    VERSION: str = "1.0.0"

    HOST: str = "0.0.0.0"
    PORT: int = 9117
    LOG_LEVEL: str = "INFO"

    # AllDebrid (unset key = debrid disabled, links go through the fallback resolver)
    ALLDEBRID_API_KEY: Optional[str] = None
    ALLDEBRID_API_URL: str = "https://api.alldebrid.com/v4"
    ALLDEBRID_TIMEOUT: float = 8.0

    # Circuit breaker for hosts AllDebrid reports as down/full
    HOST_UNAVAILABLE_TTL: int = 15 * 60
    MAX_REDIRECT_HOPS: int = 5

    # Browser-automation dl-protect resolver (empty URL = disabled)
    DLPROTECT_SERVICE_URL: str = "http://localhost:5000"
    DLPROTECT_TIMEOUT: float = 60.0
    DLPROTECT_MAX_CONCURRENCY: int = 4
    DISABLE_REMOTE_DL_PROTECT_CACHE: bool = False

    class Config:
        env_file = ".env"

settings = Settings()
