"""
Device webhook notifications.

A persisted toggle is forwarded to the device's stored address with an HTTP POST.
Addresses that are missing or not http(s) URLs are skipped without any network
call; unusable addresses, transport errors and non-2xx answers are reported as
failed results, never raised.
"""

import logging
import re
from types import TracebackType
from typing import Any, Dict, Optional, Type

import httpx

from casa_sync.common.utility import LoggerMixin
from casa_sync.core.domain.entities.device_entity import DeviceState
from casa_sync.core.domain.entities.webhook_entity import WebhookResult
from casa_sync.core.domain.services.device_webhook import DeviceWebhookNotifier

_WEBHOOK_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

_logger = logging.getLogger("CasaControlSync.webhook")


def is_webhook_url(url: Optional[str]) -> bool:
    """Return True if url is a non-empty http or https URL."""
    if not url:
        return False
    return _WEBHOOK_URL_PATTERN.match(url) is not None


def build_webhook_payload(
    state: DeviceState, device_name: Optional[str] = None
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"state": state}
    if device_name is not None:
        payload["device"] = device_name
    return payload


async def trigger_device_webhook(
    url: Optional[str],
    state: DeviceState,
    *,
    device_name: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> WebhookResult:
    """
    POST the state to the device webhook.

    Args:
        url (Optional[str]): Device endpoint. Must start with http:// or https://.
        state (DeviceState): The state to send.
        device_name (Optional[str]): Included in the body as "device" when given.
        client (Optional[httpx.AsyncClient]): Client to reuse. A temporary one is created otherwise.
        timeout (Optional[float]): Timeout for the temporary client, None disables it.

    Returns:
        WebhookResult: ``skipped`` when no request was made, ``ok`` on a 2xx answer.
    """
    if url is None or not is_webhook_url(url):
        _logger.debug(f"Webhook skipped, no valid URL configured: {url!r}")
        return WebhookResult.skipped_result()

    payload = build_webhook_payload(state, device_name)
    headers = {"Content-Type": "application/json"}

    try:
        if client is not None:
            response = await client.post(url, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=timeout) as temporary_client:
                response = await temporary_client.post(url, json=payload, headers=headers)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        _logger.warning(f"Webhook request to {url!r} failed: {e}")
        return WebhookResult(ok=False, skipped=False)

    if not response.is_success:
        _logger.warning(f"Webhook {url} answered with status {response.status_code}")

    return WebhookResult(ok=response.is_success, skipped=False)


class DeviceWebhookClient(DeviceWebhookNotifier, LoggerMixin):
    """
    Webhook notifier sharing one HTTPX AsyncClient across notifications.
    """

    _client: Optional[httpx.AsyncClient]

    def __init__(
        self,
        *,
        logger: logging.Logger,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._build_logger(logger=logger)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._logger.error("Client is not initialized")
            raise RuntimeError("Client is not initialized")
        return self._client

    async def notify(
        self,
        url: Optional[str],
        state: DeviceState,
        *,
        device_name: Optional[str] = None,
    ) -> WebhookResult:
        result = await trigger_device_webhook(
            url, state, device_name=device_name, client=self.client
        )
        self._logger.debug(
            f"Webhook for {device_name or url}: ok={result.ok} skipped={result.skipped}"
        )
        return result

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._logger.debug("Webhook client closed.")

    async def __aenter__(self) -> "DeviceWebhookClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
