import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Backend API Configuration
    api_base_url: str = Field(
        default="http://localhost:3000", alias="REVIEWQUEST_API_BASE_URL"
    )
    request_timeout: float = Field(default=30.0, alias="REVIEWQUEST_REQUEST_TIMEOUT")
    session_cookie_name: str = Field(
        default="session", alias="REVIEWQUEST_SESSION_COOKIE"
    )

    # Cache Configuration
    cache_ttl_seconds: float | None = Field(
        default=300.0, alias="REVIEWQUEST_CACHE_TTL_SECONDS"
    )
    cache_max_size: int = Field(default=100, alias="REVIEWQUEST_CACHE_MAX_SIZE")

    # Quest Retry Configuration
    quest_max_retries: int = Field(default=3, alias="QUEST_MAX_RETRIES")
    quest_retry_delay: float = Field(default=1.0, alias="QUEST_RETRY_DELAY")
    quest_retry_max_delay: float = Field(default=5.0, alias="QUEST_RETRY_MAX_DELAY")
    quest_update_method: str = Field(default="PATCH", alias="QUEST_UPDATE_METHOD")

    debug: bool = Field(default=False, alias="REVIEWQUEST_DEBUG")


# Environment variables are matched against the field aliases
global_settings = Settings.model_validate(dict(os.environ))
