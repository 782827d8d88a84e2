"""Tests for auth-change notifications."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from product_editor.core.auth_events import AuthChangeNotifier


class TestAuthChangeNotifier:
    """Tests for AuthChangeNotifier."""

    @pytest.fixture
    def events(self) -> AuthChangeNotifier:
        return AuthChangeNotifier()

    @pytest.mark.asyncio
    async def test_publish_calls_sync_and_async_listeners(self, events: AuthChangeNotifier):
        sync_listener = MagicMock(return_value=None)
        async_listener = AsyncMock()
        events.subscribe(sync_listener)
        events.subscribe(async_listener)

        await events.publish("login")

        sync_listener.assert_called_once_with("login")
        async_listener.assert_awaited_once_with("login")

    @pytest.mark.asyncio
    async def test_unsubscribe_callable(self, events: AuthChangeNotifier):
        listener = MagicMock(return_value=None)
        unsubscribe = events.subscribe(listener)
        assert events.listener_count == 1

        unsubscribe()
        unsubscribe()
        await events.publish()

        assert events.listener_count == 0
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_listener_may_unsubscribe_during_publish(self, events: AuthChangeNotifier):
        calls = []

        def once(reason: str) -> None:
            calls.append(reason)
            events.unsubscribe(once)

        second = MagicMock(return_value=None)
        events.subscribe(once)
        events.subscribe(second)

        await events.publish("a")
        await events.publish("b")

        assert calls == ["a"]
        assert second.call_count == 2
