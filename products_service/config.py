import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Chargement des variables d'environnement
load_dotenv()


@dataclass
class Settings:
    """Service settings, read from the environment (or a local .env file)."""

    port: int = 3000
    host: str = "0.0.0.0"
    # Unset means every /api/ request is rejected
    api_key: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = "logs.json"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            port=int(os.getenv("PORT", 3000)),
            host=os.getenv("HOST", "0.0.0.0"),
            api_key=os.getenv("API_KEY"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs.json") or None,
        )
