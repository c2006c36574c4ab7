# catalog/config.py
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from .errors import ConfigError


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Config:
    """Process settings, read from the environment (and a local .env file)."""

    mongo_uri: str
    mongo_db: str = "catalog"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_file: Optional[str] = "app.log"
    # empty means any origin
    cors_allowed_origins: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, environ=None, dotenv: bool = True) -> "Config":
        if dotenv:
            load_dotenv()
        env = os.environ if environ is None else environ

        mongo_uri = env.get("MONGO_URI")
        if not mongo_uri:
            raise ConfigError("MONGO_URI is not defined in the environment or .env file")

        raw_port = env.get("PORT", "8000")
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got {raw_port!r}")

        return cls(
            mongo_uri=mongo_uri,
            mongo_db=env.get("MONGO_DB", "catalog"),
            host=env.get("HOST", "0.0.0.0"),
            port=port,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_file=env.get("LOG_FILE", "app.log") or None,
            cors_allowed_origins=_split_origins(env.get("CORS_ALLOWED_ORIGINS", "")),
        )
