"""Shared FastAPI dependencies (overridden in tests)."""
from app.services.amadeus_client import AmadeusPricingClient
from app.services.notification import NtfyNotifier, get_global_notifier


def get_pricing_client() -> AmadeusPricingClient:
    return AmadeusPricingClient.from_settings()


def get_notifier() -> NtfyNotifier:
    return get_global_notifier()
