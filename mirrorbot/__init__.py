"""Discord channel mirror: relays messages between channels through per-author webhooks."""

__version__ = "1.0.0"
