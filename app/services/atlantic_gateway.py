import logging
from dataclasses import dataclass

import httpx

from app.errors import PaymentGatewayError

logger = logging.getLogger(__name__)

DEPOSIT_FAILED_MESSAGE = "Failed to create Atlantic deposit"


@dataclass(frozen=True)
class QrisDeposit:
    transaction_id: str
    qr_image: str | None
    qr_string: str | None


def _json_or_none(response: httpx.Response) -> dict | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


class AtlanticGateway:
    """Atlantic H2H client for QRIS deposits."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)
        if not api_key:
            logger.warning("Atlantic API key is not set; deposit requests will be rejected by the gateway")

    def create_qris_deposit(self, reff_id: str, amount: int) -> QrisDeposit:
        """Request a QRIS deposit of ``amount`` tagged with ``reff_id``."""
        try:
            response = self._client.post(
                f"{self.base_url}/deposit/create",
                data={
                    "api_key": self.api_key,
                    "reff_id": reff_id,
                    "nominal": str(amount),
                    "type": "ewallet",
                    "method": "qris",
                },
            )
        except httpx.HTTPError as exc:
            logger.error("Atlantic deposit request for %s failed: %s", reff_id, exc, exc_info=True)
            raise PaymentGatewayError(str(exc) or DEPOSIT_FAILED_MESSAGE) from exc

        payload = _json_or_none(response)
        if response.is_error or payload is None or payload.get("status") is not True:
            message = (payload or {}).get("message") or DEPOSIT_FAILED_MESSAGE
            logger.error(
                "Atlantic rejected deposit for %s (HTTP %s): %s",
                reff_id,
                response.status_code,
                message,
            )
            raise PaymentGatewayError(str(message))

        data = payload.get("data") or {}
        if data.get("id") is None:
            logger.error("Atlantic deposit response for %s has no transaction id: %s", reff_id, payload)
            raise PaymentGatewayError(DEPOSIT_FAILED_MESSAGE)

        logger.info("Atlantic deposit %s created for %s", data["id"], reff_id)
        return QrisDeposit(
            transaction_id=str(data["id"]),
            qr_image=data.get("qr_image"),
            qr_string=data.get("qr_string"),
        )

    def close(self) -> None:
        self._client.close()
