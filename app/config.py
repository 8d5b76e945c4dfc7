import os
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ORDER_STORE_BACKENDS = {"memory", "database"}


class Settings:
    @staticmethod
    def _get_int(name: str, default: int) -> int:
        return int(os.getenv(name, str(default)))

    @staticmethod
    def _get_float(name: str, default: float) -> float:
        return float(os.getenv(name, str(default)))

    @property
    def STORE_CONFIG_PATH(self) -> Path:
        return Path(os.getenv("STORE_CONFIG_PATH", str(Path.cwd() / "config.json")))

    @property
    def ATLANTIC_API_URL(self) -> str:
        return os.getenv("ATLANTIC_API_URL", "https://atlantich2h.com")

    @property
    def ATLANTIC_API_KEY(self) -> str:
        return os.getenv("ATLANTIC_API_KEY", "")

    @property
    def ATLANTIC_WEBHOOK_SECRET(self) -> str:
        return os.getenv("ATLANTIC_WEBHOOK_SECRET", "")

    @property
    def PTERODACTYL_API_KEY(self) -> str:
        return os.getenv("PTERODACTYL_API_KEY", "")

    @property
    def ORDER_STORE(self) -> str:
        return os.getenv("ORDER_STORE", "memory").strip().lower()

    @property
    def DATABASE_URL(self) -> str:
        database_url = os.getenv("DATABASE_URL", "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL is required")
        return database_url

    @property
    def DB_CONNECT_RETRIES(self) -> int:
        return self._get_int("DB_CONNECT_RETRIES", 5)

    @property
    def DB_CONNECT_RETRY_DELAY_SECONDS(self) -> int:
        return self._get_int("DB_CONNECT_RETRY_DELAY_SECONDS", 2)

    @property
    def HTTP_TIMEOUT_SECONDS(self) -> float:
        return self._get_float("HTTP_TIMEOUT_SECONDS", 30.0)

    @property
    def ORDER_REFERENCE_PREFIX(self) -> str:
        return os.getenv("ORDER_REFERENCE_PREFIX", "WEB_SYAFA")

    @property
    def FALLBACK_EMAIL_DOMAIN(self) -> str:
        return os.getenv("FALLBACK_EMAIL_DOMAIN", "web-syafa-store.com")

    @property
    def CORS_ORIGINS(self) -> str:
        return os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")


settings = Settings()
