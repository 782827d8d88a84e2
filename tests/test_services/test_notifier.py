"""Tests for the user notifier."""

from unittest.mock import MagicMock

from product_editor.services.notifier import Notification, Notifier


class TestNotifier:
    """Tests for Notifier."""

    def test_history_and_levels(self):
        notifier = Notifier()

        notifier.success("Saved")
        notifier.warning("Careful")
        notifier.error("Broken")

        assert notifier.messages() == ["Saved", "Careful", "Broken"]
        assert notifier.messages("error") == ["Broken"]

    def test_sink_receives_notifications(self):
        sink = MagicMock()
        notifier = Notifier(sink=sink)

        notifier.info("Hello")

        sink.assert_called_once_with(Notification(level="info", message="Hello"))

    def test_clear(self):
        notifier = Notifier()
        notifier.error("x")
        notifier.clear()
        assert notifier.history == []
