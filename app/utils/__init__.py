"""Utility modules for Fare Watch."""

from app.utils.booking_links import build_google_flights_url

__all__ = ["build_google_flights_url"]
