"""Booking search links for tracked flights."""

from datetime import date
from typing import Optional
from urllib.parse import quote

GOOGLE_FLIGHTS_URL = "https://www.google.com/travel/flights"


def build_google_flights_url(
    origin: str,
    destination: str,
    departure_date: date,
    return_date: Optional[date] = None,
    currency: str = "USD",
) -> str:
    """
    Build a Google Flights search link for a route and date(s).

    Amadeus doesn't return deep links, so every booking link is derived from
    the search itself. Round trips add the return leg to the same query.
    """
    query = f"Flights from {origin} to {destination} on {departure_date.strftime('%Y-%m-%d')}"

    if return_date:
        query += f" returning {return_date.strftime('%Y-%m-%d')}"

    query_parts = [f"q={quote(query)}", f"curr={currency}", "hl=en"]

    return f"{GOOGLE_FLIGHTS_URL}?{'&'.join(query_parts)}"
