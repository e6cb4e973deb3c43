import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


@dataclass(frozen=True)
class Settings:

    mongo_url: str
    mongo_db_name: str
    redis_url: Optional[str]
    jwt_secret: str
    jwt_algorithm: str
    log_level: str
    api_prefix: str


@lru_cache
def get_settings() -> Settings:
    return Settings(
        mongo_url=os.getenv("MONGO_URL", "mongodb://localhost:27017"),
        mongo_db_name=os.getenv("MONGO_DB_NAME", "eventchat"),
        redis_url=os.getenv("REDIS_URL") or None,
        jwt_secret=os.getenv("JWT_SECRET", "eventchat-dev-secret-change-me-in-production"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        api_prefix=os.getenv("API_PREFIX", "/api/v1"),
    )
