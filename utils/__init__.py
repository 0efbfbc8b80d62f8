"""Shared console and logging helpers."""
