"""Shared helpers: logging setup and user-facing console output."""
