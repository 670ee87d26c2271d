"""Tests for WebhookSink and EventDispatcher."""

import json
from uuid import uuid4

import httpx
import pytest

from src.events.bus import ALL_EVENTS, EventBus
from src.events.dispatch import DispatchError, EventDispatcher, WebhookSink
from src.events.store import IntegrationEventStore

WEBHOOK_URL = "https://hooks.example.com/l10"


def sink_for(handler, max_attempts: int = 3) -> WebhookSink:
    """WebhookSink backed by a mock transport, without backoff delays."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookSink(
        WEBHOOK_URL,
        max_attempts=max_attempts,
        client=client,
        wait_min=0,
        wait_max=0,
    )


@pytest.fixture
async def store(db_client) -> IntegrationEventStore:
    store = IntegrationEventStore(db_client)
    await store.init_schema()
    return store


@pytest.fixture
async def stored(store):
    return await store.append(
        "l10/agenda_item.started",
        {"organization_id": str(uuid4()), "section": "rocks"},
    )


class TestWebhookSink:
    async def test_posts_event_envelope(self, stored) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        attempts = await sink_for(handler).send(stored)

        assert attempts == 1
        assert str(requests[0].url) == WEBHOOK_URL
        body = json.loads(requests[0].content)
        assert body == {
            "id": str(stored.id),
            "name": "l10/agenda_item.started",
            "data": stored.payload,
        }

    async def test_retries_server_errors(self, stored) -> None:
        statuses = iter([503, 500, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(next(statuses))

        assert await sink_for(handler).send(stored) == 3

    async def test_retries_connection_errors(self, stored) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(202)

        assert await sink_for(handler).send(stored) == 2

    async def test_gives_up_after_max_attempts(self, stored) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(502)

        with pytest.raises(DispatchError, match="after 2 attempts"):
            await sink_for(handler, max_attempts=2).send(stored)
        assert calls == 2

    async def test_client_errors_are_not_retried(self, stored) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(400)

        with pytest.raises(DispatchError):
            await sink_for(handler).send(stored)
        assert calls == 1


class TestEventDispatcher:
    async def test_success_marks_event_processed(self, store, stored) -> None:
        sink = sink_for(lambda request: httpx.Response(200))
        dispatcher = EventDispatcher(store, webhook=sink)

        result = await dispatcher.dispatch(stored)

        assert result.success
        row = await store.get(stored.id)
        assert row.dispatched
        assert row.attempts == 1

    async def test_webhook_failure_is_dead_lettered(self, store, stored) -> None:
        sink = sink_for(lambda request: httpx.Response(500), max_attempts=2)
        dispatcher = EventDispatcher(store, webhook=sink)

        result = await dispatcher.dispatch(stored)

        assert not result.success
        row = await store.get(stored.id)
        assert not row.dispatched
        assert "Webhook delivery failed" in row.error
        assert [r.id for r in await store.list_undispatched()] == [stored.id]

    async def test_handler_failure_is_recorded(self, store, stored) -> None:
        bus = EventBus()

        async def broken(record) -> None:
            raise RuntimeError("notification service down")

        bus.subscribe(ALL_EVENTS, broken)
        result = await EventDispatcher(store, bus=bus).dispatch(stored)

        assert not result.success
        assert "notification service down" in (await store.get(stored.id)).error

    async def test_bus_only_dispatch(self, store, stored) -> None:
        received = []
        bus = EventBus()
        bus.subscribe("l10/agenda_item.started", received.append)

        result = await EventDispatcher(store, bus=bus).dispatch(stored)

        assert result.success
        assert [r.id for r in received] == [stored.id]

    async def test_replay_undispatched(self, store, stored) -> None:
        statuses = iter([500, 200])
        sink = sink_for(lambda request: httpx.Response(next(statuses)), max_attempts=1)
        dispatcher = EventDispatcher(store, webhook=sink)
        await dispatcher.dispatch(stored)

        results = await dispatcher.replay_undispatched()

        assert [r.success for r in results] == [True]
        assert await store.list_undispatched() == []
        assert (await store.get(stored.id)).attempts == 2
        await dispatcher.close()
