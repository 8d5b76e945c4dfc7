import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.errors import ProvisioningError

logger = logging.getLogger(__name__)

PROVISIONING_FAILED_MESSAGE = "Failed to create server"

DOCKER_IMAGE = "ghcr.io/pterodactyl/yolks:nodejs_18"
STARTUP_COMMAND = (
    'if [[ -d .git ]] && [[ {{AUTO_UPDATE}} != "0" ]]; then git pull; fi; '
    "if [[ ! -z {{NODE_PACKAGES}} ]]; then /usr/local/bin/npm install {{NODE_PACKAGES}}; fi; "
    "if [[ ! -z {{NODE_PACKAGES}} ]]; then /usr/local/bin/npm install {{NODE_PACKAGES}}; fi; "
    "/usr/local/bin/node {{NODE_JS_FILE}}"
)
ENVIRONMENT = {
    "AUTO_UPDATE": "0",
    "NODE_PACKAGES": "",
    "NODE_JS_FILE": "index.js",
}
IO_WEIGHT = 500
FEATURE_LIMITS = {
    "databases": 5,
    "backups": 2,
    "allocations": 1,
}


@dataclass(frozen=True)
class ServerSpec:
    name: str
    user_id: int
    egg_id: int
    location_id: int
    memory_mb: int
    disk_mb: int
    cpu_cores: int


def build_server_payload(spec: ServerSpec) -> dict[str, Any]:
    return {
        "name": spec.name,
        "user": spec.user_id,
        "egg": spec.egg_id,
        "docker_image": DOCKER_IMAGE,
        "startup": STARTUP_COMMAND,
        "environment": dict(ENVIRONMENT),
        "limits": {
            "memory": spec.memory_mb,
            "swap": 0,
            "disk": spec.disk_mb,
            "io": IO_WEIGHT,
            # panel expresses CPU as a percentage of one core
            "cpu": spec.cpu_cores * 100,
        },
        "feature_limits": dict(FEATURE_LIMITS),
        "allocation": {"default": spec.location_id},
        "deploy": {
            "locations": [spec.location_id],
            "dedicated_ip": False,
            "port_range": [],
        },
    }


def extract_error_detail(response: httpx.Response | None) -> str:
    """Pull ``errors[0].detail`` out of a panel error body."""
    if response is None:
        return PROVISIONING_FAILED_MESSAGE
    try:
        payload = response.json()
    except ValueError:
        return PROVISIONING_FAILED_MESSAGE
    try:
        detail = payload["errors"][0]["detail"]
    except (KeyError, IndexError, TypeError):
        return PROVISIONING_FAILED_MESSAGE
    return str(detail) if detail else PROVISIONING_FAILED_MESSAGE


class PanelClient:
    """Pterodactyl application API client."""

    def __init__(
        self,
        panel_url: str,
        api_key: str,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.panel_url = panel_url.rstrip("/")
        self.base_url = f"{self.panel_url}/api/application"
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._client = client or httpx.Client(timeout=timeout)
        if not api_key:
            logger.warning("Pterodactyl API key is not set; provisioning calls will fail")

    def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.post(f"{self.base_url}/{path}", json=body, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = extract_error_detail(exc.response)
            logger.error("Panel POST /%s returned HTTP %s: %s", path, exc.response.status_code, detail)
            raise ProvisioningError(detail) from exc
        except httpx.HTTPError as exc:
            logger.error("Panel POST /%s failed: %s", path, exc, exc_info=True)
            raise ProvisioningError(PROVISIONING_FAILED_MESSAGE) from exc

        try:
            attributes = response.json()["attributes"]
            attributes["id"] = int(attributes["id"])
            return attributes
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("Panel POST /%s returned an unexpected body", path)
            raise ProvisioningError(PROVISIONING_FAILED_MESSAGE) from exc

    def create_user(
        self,
        username: str,
        email: str,
        first_name: str,
        last_name: str,
        password: str,
    ) -> int:
        attributes = self._post(
            "users",
            {
                "username": username,
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "password": password,
            },
        )
        user_id = attributes["id"]
        logger.info("Panel user %s created for %s", user_id, username)
        return user_id

    def create_server(self, spec: ServerSpec) -> int:
        attributes = self._post("servers", build_server_payload(spec))
        server_id = attributes["id"]
        logger.info("Panel server %s created for user %s", server_id, spec.user_id)
        return server_id

    def close(self) -> None:
        self._client.close()
