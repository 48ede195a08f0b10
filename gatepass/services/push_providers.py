# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Push providers — the last hop to the device.

Each provider validates its own token format, declares its batch size and
turns one batch of messages into one ticket per message. Transport failures
raise DeliveryError; the dispatcher decides what to do with them.
"""

import re
from typing import Any, Dict, List

import httpx

from gatepass.core.config import settings
from gatepass.core.errors import DeliveryError
from gatepass.core.logging import get_logger

logger = get_logger(__name__)

EXPO_TOKEN_RE = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[.+\]$")
DEVICE_ID_RE = re.compile(r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE)


class PushProvider:
    name = "base"
    max_chunk_size = 100

    def is_valid_token(self, token: str) -> bool:
        raise NotImplementedError

    def build_message(self, token: str, title: str, body: str,
                      data: Dict[str, Any]) -> Dict[str, Any]:
        return {"to": token, "title": title, "body": body, "data": data}

    def send(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        raise NotImplementedError


class LogPushProvider(PushProvider):
    """Local/dev provider — logs instead of delivering."""

    name = "log"

    def is_valid_token(self, token: str) -> bool:
        return bool(token and token.strip())

    def send(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        for msg in messages:
            logger.info("[LOG PUSH] To: %s | %s | %s", msg["to"], msg["title"], msg["body"])
        return [{"status": "ok"} for _ in messages]


class ExpoPushProvider(PushProvider):
    """Expo push API over HTTPS."""

    name = "expo"

    def __init__(self, url: str = None, access_token: str = None,
                 timeout: float = None, chunk_size: int = None):
        self.url = url or settings.EXPO_PUSH_URL
        self.access_token = access_token if access_token is not None else settings.EXPO_ACCESS_TOKEN
        self.timeout = timeout or settings.PUSH_TIMEOUT
        # Expo rejects requests carrying more than 100 messages
        self.max_chunk_size = min(chunk_size or settings.PUSH_CHUNK_SIZE, 100)

    def is_valid_token(self, token: str) -> bool:
        if not isinstance(token, str):
            return False
        return bool(EXPO_TOKEN_RE.match(token) or DEVICE_ID_RE.match(token))

    def build_message(self, token: str, title: str, body: str,
                      data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "to": token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data,
            "channelId": "default",
            "priority": "high",
        }

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def send(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(self.url, json=messages, headers=self._headers())
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Expo push request failed: {exc}") from exc

        if resp.status_code >= 300:
            raise DeliveryError(f"Expo push returned HTTP {resp.status_code}: {resp.text[:200]}")

        payload = resp.json()
        if payload.get("errors"):
            raise DeliveryError(f"Expo push rejected the request: {payload['errors']}")
        tickets = payload.get("data") or []
        if len(tickets) != len(messages):
            raise DeliveryError(
                f"Expo push returned {len(tickets)} tickets for {len(messages)} messages"
            )
        return tickets


PROVIDERS = {
    "expo": ExpoPushProvider,
    "log": LogPushProvider,
}


def build_provider(name: str) -> PushProvider:
    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        logger.warning("Unknown push provider '%s' — falling back to log provider", name)
        provider_cls = LogPushProvider
    return provider_cls()
