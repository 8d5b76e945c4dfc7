import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.config import Settings
from app.errors import ConfigReadError
from app.schemas.packages import Package

logger = logging.getLogger(__name__)

DEFAULT_PANEL_URL = "https://panel.yourdomain.com"
DEFAULT_CALLBACK_URL = "https://yourdomain.com/api/webhook"
DEFAULT_LOCATION_ID = 1
DEFAULT_EGG_ID = 15
DEFAULT_PACKAGES = [
    {"id": 1, "name": "1GB Starter", "ram": 1024, "price": 15000},
    {"id": 2, "name": "2GB Basic", "ram": 2048, "price": 25000},
    {"id": 3, "name": "4GB Pro", "ram": 4096, "price": 45000},
    {"id": 4, "name": "8GB Advanced", "ram": 8192, "price": 85000},
    {"id": 5, "name": "16GB Premium", "ram": 16384, "price": 165000},
]


class StoreConfig(BaseModel):
    """Parsed contents of the store configuration file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    atlantic_api_key: str = Field(default="", alias="atlanticApiKey")
    pterodactyl_api_key: str = Field(default="", alias="pterodactylApiKey")
    pterodactyl_panel_url: str = Field(default=DEFAULT_PANEL_URL, alias="pterodactylPanelUrl")
    qris_callback_url: str = Field(default=DEFAULT_CALLBACK_URL, alias="qrisCallbackUrl")
    location_id: int = Field(default=DEFAULT_LOCATION_ID, alias="locationId")
    egg_id: int = Field(default=DEFAULT_EGG_ID, alias="eggId")
    packages: tuple[Package, ...] = ()

    def find_package(self, package_id: int) -> Package | None:
        for package in self.packages:
            if package.id == package_id:
                return package
        return None


def default_config_document(settings: Settings) -> dict:
    return {
        "atlanticApiKey": settings.ATLANTIC_API_KEY,
        "pterodactylApiKey": settings.PTERODACTYL_API_KEY,
        "pterodactylPanelUrl": DEFAULT_PANEL_URL,
        "qrisCallbackUrl": DEFAULT_CALLBACK_URL,
        "locationId": DEFAULT_LOCATION_ID,
        "eggId": DEFAULT_EGG_ID,
        "packages": DEFAULT_PACKAGES,
    }


def ensure_config_file(path: Path, settings: Settings) -> bool:
    """Write the default configuration to ``path`` unless a file is already there.

    Returns True when a new file was created. An existing file is never
    inspected or rewritten, even if it is corrupt.
    """
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(default_config_document(settings), indent=2), encoding="utf-8")
    logger.info("Default store configuration written to %s", path)
    return True


def load_store_config(path: Path) -> StoreConfig:
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigReadError(f"Cannot read store configuration at {path}: {exc}") from exc

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigReadError(f"Store configuration at {path} is not valid JSON: {exc}") from exc

    try:
        config = StoreConfig.model_validate(document)
    except ValidationError as exc:
        raise ConfigReadError(f"Store configuration at {path} is invalid: {exc}") from exc

    package_ids = [package.id for package in config.packages]
    if len(package_ids) != len(set(package_ids)):
        raise ConfigReadError(f"Store configuration at {path} has duplicate package ids")
    return config
