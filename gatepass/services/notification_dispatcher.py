# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Notification dispatcher — best-effort push fan-out.

Callers hand over a title/body plus the recipients' tokens and get a Future
back immediately. Delivery runs on a small worker pool; its outcome is only
logged and counted. Nothing in here raises into the caller.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Optional

from gatepass.core.errors import DeliveryError
from gatepass.core.logging import get_logger
from gatepass.metrics import PUSH_DISPATCH, PUSH_MESSAGES
from gatepass.services.push_providers import PushProvider

logger = get_logger(__name__)


class NotificationDispatcher:
    """Validates tokens, batches messages and delivers them off the request path."""

    def __init__(self, provider: PushProvider, max_workers: int = 4,
                 on_invalid_token: Optional[Callable[[str], Any]] = None):
        self._provider = provider
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="push")
        self._on_invalid_token = on_invalid_token

    @property
    def provider(self) -> PushProvider:
        return self._provider

    # ── Message preparation ────────────────────────────────────────────

    def build_messages(self, tokens: Iterable[Optional[str]], title: str, body: str,
                       data: Optional[Dict[str, Any]] = None) -> tuple[List[Dict[str, Any]], int]:
        """Return (messages, skipped). Users without a token are skipped silently."""
        messages: List[Dict[str, Any]] = []
        skipped = 0
        seen: set[str] = set()
        for token in tokens:
            if not token:
                skipped += 1
                continue
            if not self._provider.is_valid_token(token):
                logger.warning("Push token %s is not a valid %s token — skipped",
                               token, self._provider.name)
                skipped += 1
                continue
            if token in seen:
                continue
            seen.add(token)
            messages.append(self._provider.build_message(token, title, body, data or {}))
        return messages, skipped

    def chunk(self, messages: List[Dict[str, Any]]) -> List[List[Dict[str, Any]]]:
        size = max(1, self._provider.max_chunk_size)
        return [messages[i:i + size] for i in range(0, len(messages), size)]

    # ── Delivery ───────────────────────────────────────────────────────

    def send(self, tokens: Iterable[Optional[str]], title: str, body: str,
             data: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
        """Deliver synchronously, batch by batch. Returns sent/failed/skipped counts."""
        messages, skipped = self.build_messages(tokens, title, body, data)
        report = {"sent": 0, "failed": 0, "skipped": skipped}
        provider = self._provider.name

        with PUSH_DISPATCH.time():
            for batch in self.chunk(messages):
                try:
                    tickets = self._provider.send(batch)
                except DeliveryError as exc:
                    logger.error("Push batch of %d failed: %s", len(batch), exc)
                    report["failed"] += len(batch)
                    PUSH_MESSAGES.labels(provider=provider, status="failed").inc(len(batch))
                    continue
                except Exception as exc:
                    logger.exception("Unexpected error delivering push batch of %d: %s", len(batch), exc)
                    report["failed"] += len(batch)
                    PUSH_MESSAGES.labels(provider=provider, status="failed").inc(len(batch))
                    continue

                for msg, ticket in zip(batch, tickets):
                    if ticket.get("status") == "ok":
                        report["sent"] += 1
                        PUSH_MESSAGES.labels(provider=provider, status="sent").inc()
                        continue
                    report["failed"] += 1
                    PUSH_MESSAGES.labels(provider=provider, status="failed").inc()
                    error_code = (ticket.get("details") or {}).get("error")
                    logger.warning("Push ticket error for %s: %s (%s)",
                                   msg["to"], ticket.get("message"), error_code)
                    if error_code == "DeviceNotRegistered":
                        self._forget_token(msg["to"])
        return report

    def dispatch(self, tokens: Iterable[Optional[str]], title: str, body: str,
                 data: Optional[Dict[str, Any]] = None) -> Future:
        """Fire-and-forget: schedule delivery and return without waiting on it."""
        tokens = list(tokens)
        future = self._executor.submit(self.send, tokens, title, body, data)
        future.add_done_callback(lambda f: self._log_outcome(f, title, self._provider.name))
        return future

    def notify(self, token: Optional[str], title: str, body: str,
               data: Optional[Dict[str, Any]] = None) -> Future:
        return self.dispatch([token], title, body, data)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # ── Internals ──────────────────────────────────────────────────────

    def _forget_token(self, token: str) -> None:
        if self._on_invalid_token is None:
            return
        try:
            self._on_invalid_token(token)
            logger.info("Cleared unregistered push token %s", token)
        except Exception as exc:
            logger.warning("Could not clear unregistered push token %s: %s", token, exc)

    @staticmethod
    def _log_outcome(future: Future, title: str, provider: str) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Push dispatch '%s' crashed: %s", title, exc, extra={"provider": provider})
            return
        report = future.result()
        logger.info("Push dispatch '%s' finished sent=%d failed=%d skipped=%d",
                    title, report["sent"], report["failed"], report["skipped"],
                    extra={"provider": provider})
