"""Subscriber-wide identifiers shared by logging helpers."""
SERVICE_NAME = "subscriber"
