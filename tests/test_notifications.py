"""Tests for the notification side channel."""

import logging

from studioflow.core.notifications import NotificationLevel, Notifier


class TestNotifier:
    """Test emission, listeners and the bounded log."""

    def test_emit_and_latest(self):
        notifier = Notifier()
        notifier.info("Project loaded")
        notifier.warning("Overlap detected")
        notifier.success("Connected")

        assert [n.level for n in notifier.messages] == [
            NotificationLevel.INFO, NotificationLevel.WARNING, NotificationLevel.SUCCESS,
        ]
        assert notifier.latest().message == "Connected"
        assert notifier.latest(NotificationLevel.WARNING).message == "Overlap detected"

    def test_listeners(self):
        notifier = Notifier()
        received = []
        listener = received.append

        notifier.subscribe(listener)
        notifier.info("one")
        notifier.unsubscribe(listener)
        notifier.info("two")

        assert [n.message for n in received] == ["one"]

    def test_bounded(self):
        notifier = Notifier(max_messages=3)
        for i in range(5):
            notifier.info(f"message {i}")
        assert [n.message for n in notifier.messages] == ["message 2", "message 3", "message 4"]

    def test_dismiss_and_clear(self):
        notifier = Notifier()
        first = notifier.info("first")
        notifier.info("second")

        notifier.dismiss(first.id)
        assert [n.message for n in notifier.messages] == ["second"]

        notifier.clear()
        assert notifier.latest() is None

    def test_warnings_are_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="studioflow.core.notifications"):
            Notifier().warning("Overlap detected")
        assert "Overlap detected" in caplog.text
