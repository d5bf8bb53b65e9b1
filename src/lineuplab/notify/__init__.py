"""Change detection and delivery of lineup notifications."""

from .change import lineup_hash, should_notify, stored_hash
from .notifier import LoggingNotifier, Notifier
from .render import render_lineup_text

__all__ = [
    "LoggingNotifier",
    "Notifier",
    "lineup_hash",
    "render_lineup_text",
    "should_notify",
    "stored_hash",
]
