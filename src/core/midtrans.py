"""Midtrans Snap API client and notification signature helpers."""

import hashlib
import hmac
import logging
from typing import Any
from urllib.parse import quote

import httpx

from src.core.config import get_settings

logger = logging.getLogger(__name__)


class MidtransError(Exception):
    """Base exception for Midtrans integration failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MidtransConfigurationError(MidtransError):
    """Raised when Midtrans credentials are missing."""


class MidtransAPIError(MidtransError):
    """Raised when the Snap API rejects a request or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class SnapClient:
    """Thin HTTP client for the Snap and Core API endpoints the backend uses.

    Instances are created per settings and passed to the services that need
    them, so tests can hand in a client backed by ``httpx.MockTransport``.
    """

    def __init__(
        self,
        server_key: str,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
        api_base_url: str = "https://api.sandbox.midtrans.com/v2",
    ) -> None:
        if not server_key:
            raise MidtransConfigurationError("MIDTRANS_SERVER_KEY is not configured")
        self.server_key = server_key
        self.base_url = base_url.rstrip("/")
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _send(self, method: str, url: str, order_id: str | None, **kwargs: Any) -> tuple[httpx.Response, dict[str, Any]]:
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.request(
                    method,
                    url,
                    auth=(self.server_key, ""),
                    headers={"Accept": "application/json"},
                    **kwargs,
                )
        except httpx.HTTPError as e:
            logger.error("Midtrans API unreachable for %s: %s", order_id, str(e))
            raise MidtransAPIError(f"Payment gateway unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        return response, data if isinstance(data, dict) else {}

    def create_transaction(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a Snap transaction and return the gateway response.

        Args:
            payload: Snap request body (transaction_details, customer_details,
                item_details).

        Returns:
            dict: Gateway response containing ``token`` and ``redirect_url``.

        Raises:
            MidtransAPIError: If the gateway is unreachable or rejects the request.
        """
        url = f"{self.base_url}/transactions"
        order_id = payload.get("transaction_details", {}).get("order_id")
        logger.info("Creating Snap transaction for %s", order_id)

        response, data = self._send("POST", url, order_id, json=payload)

        if response.is_error:
            messages = data.get("error_messages") or []
            message = messages[0] if messages else "Failed to create transaction"
            logger.error("Snap API rejected %s (%d): %s", order_id, response.status_code, data)
            raise MidtransAPIError(message, status_code=response.status_code, payload=data)

        if not data.get("token"):
            raise MidtransAPIError("Payment gateway returned no token", payload=data)

        return data

    def get_transaction_status(self, order_id: str) -> dict[str, Any] | None:
        """Fetch the gateway's current view of a transaction.

        Midtrans answers unknown transactions with HTTP 200 and a body
        ``status_code`` of ``"404"``; both forms are reported as None.

        Args:
            order_id: Gateway order_id (an order ID or a batch ID).

        Returns:
            dict | None: Status body with ``transaction_status``, ``fraud_status``
            and ``gross_amount``, or None if the gateway has no such transaction.

        Raises:
            MidtransAPIError: If the gateway is unreachable or answers with an error.
        """
        url = f"{self.api_base_url}/{quote(order_id, safe='')}/status"
        response, data = self._send("GET", url, order_id)

        if response.status_code == 404 or data.get("status_code") == "404":
            logger.info("Midtrans has no transaction for %s", order_id)
            return None

        if response.is_error or not data.get("transaction_status"):
            message = data.get("status_message") or "Failed to fetch transaction status"
            logger.error("Status lookup for %s failed (%d): %s", order_id, response.status_code, data)
            raise MidtransAPIError(message, status_code=response.status_code, payload=data)

        return data


def get_snap_client(transport: httpx.BaseTransport | None = None) -> SnapClient:
    """Build a Snap client from application settings.

    Raises:
        MidtransConfigurationError: If the server key is not configured.
    """
    settings = get_settings()
    return SnapClient(
        server_key=settings.midtrans_server_key,
        base_url=settings.midtrans_snap_base_url,
        timeout=settings.midtrans_timeout_seconds,
        transport=transport,
        api_base_url=settings.midtrans_api_base_url,
    )


def compute_signature(order_id: str, status_code: str, gross_amount: str, server_key: str) -> str:
    """Compute the notification signature Midtrans sends as ``signature_key``.

    SHA-512 over ``order_id + status_code + gross_amount + server_key``.
    """
    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def verify_signature(
    signature_key: str,
    order_id: str,
    status_code: str,
    gross_amount: str,
    server_key: str,
) -> bool:
    """Check a notification's ``signature_key`` in constant time."""
    expected = compute_signature(order_id, status_code, gross_amount, server_key)
    return hmac.compare_digest(expected, signature_key.lower())
