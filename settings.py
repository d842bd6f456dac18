import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

# Pull variables from a local .env file, if there is one
load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str
    access_token_secret: Optional[str] = None
    access_token_ttl_minutes: int = 60
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        database_url = os.environ.get("DATABASE_URL")

        # Fail fast instead of limping along without a database
        if not database_url:
            raise ValueError("DATABASE_URL is not set. Please check your .env file.")

        return cls(
            database_url=database_url,
            access_token_secret=os.environ.get("ACCESS_TOKEN_SECRET") or None,
            access_token_ttl_minutes=int(os.environ.get("ACCESS_TOKEN_TTL_MINUTES", "60")),
            cors_origins=cls.cors_origins_from_env(),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            port=int(os.environ.get("PORT", "3000")),
        )

    @staticmethod
    def cors_origins_from_env() -> List[str]:
        origins = os.environ.get("CORS_ORIGINS", "*")
        return [o.strip() for o in origins.split(",") if o.strip()]
