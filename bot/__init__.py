"""Telegram bot handlers and keyboards."""

from .handlers import register_handlers

__all__ = ["register_handlers"]
