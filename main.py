#!/usr/bin/env python3
"""
Main entry point for the Discord channel mirror.

Mirrors messages from source channels into target channels through
per-author webhooks and keeps the copies in sync on edit and delete.
"""
from mirrorbot.main import run


if __name__ == "__main__":
    run()
