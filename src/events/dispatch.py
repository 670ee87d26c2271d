"""Best-effort dispatch of audited integration events.

The audit append is a confirmed write; dispatch only tries. A failed dispatch
leaves the event unprocessed in the log with its error recorded, where it
can be replayed.
"""

from dataclasses import dataclass

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.events.bus import EventBus
from src.events.store import AuditRecord, IntegrationEventStore

logger = structlog.get_logger()


class DispatchError(Exception):
    """An event could not be delivered to a dispatch sink."""


def _is_retriable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500 or exc.response.status_code == 429
    return False


class WebhookSink:
    """Delivers events to an HTTP endpoint as JSON.

    Transient failures (connection errors, timeouts, 5xx, 429) are retried
    with exponential backoff up to max_attempts.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 10.0,
        max_attempts: int = 3,
        client: httpx.AsyncClient | None = None,
        wait_min: float = 1.0,
        wait_max: float = 10.0,
    ):
        self.url = url
        self.max_attempts = max_attempts
        self._timeout = timeout_seconds
        self._client = client
        self._wait = wait_exponential(multiplier=1, min=wait_min, max=wait_max)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def send(self, record: AuditRecord) -> int:
        """POST one event, retrying transient failures.

        Returns:
            Number of attempts made

        Raises:
            DispatchError: If delivery failed for good
        """
        body = {
            "id": str(record.id),
            "name": record.event_type,
            "data": record.payload,
        }
        attempts = 0
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=self._wait,
                retry=retry_if_exception(_is_retriable),
                before_sleep=before_sleep_log(logger, log_level=20),  # INFO level
                reraise=False,
            ):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    response = await self._get_client().post(self.url, json=body)
                    response.raise_for_status()
        except RetryError as e:
            last_err = e.last_attempt.exception() if e.last_attempt else None
            raise DispatchError(
                f"Webhook delivery failed after {attempts} attempts: {last_err}"
            ) from last_err
        except httpx.HTTPError as e:
            raise DispatchError(f"Webhook delivery failed: {e}") from e
        return attempts

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@dataclass
class DispatchResult:
    """Outcome of dispatching one event."""

    record_id: str
    success: bool
    attempts: int = 1
    error: str | None = None


class EventDispatcher:
    """Fans an audited event out to the in-process bus and the webhook sink.

    dispatch() never raises: every failure is logged and written back to the
    audit record so undelivered events stay visible.
    """

    def __init__(
        self,
        store: IntegrationEventStore,
        bus: EventBus | None = None,
        webhook: WebhookSink | None = None,
    ):
        self._store = store
        self.bus = bus or EventBus()
        self.webhook = webhook

    async def dispatch(self, record: AuditRecord) -> DispatchResult:
        """Deliver one audited event to every sink.

        Args:
            record: Event as stored in the audit log

        Returns:
            DispatchResult describing the delivery
        """
        errors: list[str] = []
        attempts = 1
        try:
            handler_errors = await self.bus.publish(record)
            errors.extend(f"handler: {error}" for error in handler_errors)
            if self.webhook is not None:
                attempts = await self.webhook.send(record)
        except Exception as e:
            errors.append(str(e))

        result = DispatchResult(
            record_id=str(record.id),
            success=not errors,
            attempts=attempts,
            error="; ".join(errors) or None,
        )
        await self._record_outcome(record, result)
        return result

    async def _record_outcome(self, record: AuditRecord, result: DispatchResult) -> None:
        try:
            if result.success:
                await self._store.mark_processed(record.id, attempts=result.attempts)
            else:
                logger.warning(
                    "event dispatch failed",
                    event_type=record.event_type,
                    event_id=str(record.id),
                    error=result.error,
                )
                await self._store.mark_failed(
                    record.id, result.error or "unknown error", attempts=result.attempts
                )
        except Exception as e:
            logger.error(
                "could not record dispatch outcome",
                event_id=str(record.id),
                error=str(e),
            )

    async def replay_undispatched(self, limit: int = 100) -> list[DispatchResult]:
        """Retry dispatch for events still unprocessed in the audit log."""
        records = await self._store.list_undispatched(limit=limit)
        results = [await self.dispatch(record) for record in records]
        logger.info(
            "replayed undispatched events",
            count=len(results),
            succeeded=sum(1 for r in results if r.success),
        )
        return results

    async def close(self) -> None:
        if self.webhook is not None:
            await self.webhook.close()
