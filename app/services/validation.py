"""
Input validation for tracked flights.

Pure functions with no I/O. Each check returns a ValidationResult; a result can
be valid and still carry an advisory message (e.g. an airline we don't know).
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

# Airports the dashboard accepts. Extend as users ask for new routes.
KNOWN_AIRPORTS = frozenset({
    # United States
    "SFO", "LAX", "JFK", "ORD", "ATL", "DFW", "DEN", "SEA", "LAS", "PHX",
    "IAH", "MIA", "BOS", "MSP", "DTW", "PHL", "LGA", "EWR", "MCO", "CLT",
    "SAN", "PDX", "TPA", "STL", "BWI", "AUS", "BNA", "OAK", "SJC", "SAT",
    # International
    "LHR", "CDG", "FRA", "AMS", "MAD", "BCN", "FCO", "MXP", "DUB", "ZRH",
    "VIE", "CPH", "ARN", "HEL", "IST", "ATH", "LIS", "BRU", "PRG", "BUD",
    "YYZ", "YVR", "YUL", "MEX", "GDL", "CUN", "GRU", "EZE", "SCL", "BOG",
    "LIM", "NRT", "HND", "ICN", "PVG", "PEK", "HKG", "SIN", "BKK", "KUL",
    "DEL", "BOM", "SYD", "MEL", "AKL", "DXB", "DOH", "AUH", "JNB", "CPT",
})

KNOWN_AIRLINES = (
    "United", "United Airlines", "Delta", "Delta Air Lines", "American", "American Airlines",
    "Southwest", "Southwest Airlines", "JetBlue", "Alaska", "Alaska Airlines", "Spirit",
    "Frontier", "Hawaiian", "Allegiant", "Sun Country",
    "British Airways", "Air France", "Lufthansa", "KLM", "Emirates", "Qatar Airways",
    "Singapore Airlines", "Cathay Pacific", "Qantas", "Air Canada", "Aeromexico",
    "LATAM", "Avianca", "Copa Airlines", "ANA", "JAL", "Korean Air", "China Eastern",
    "Air China", "Turkish Airlines", "Etihad", "Virgin Atlantic", "Norwegian",
)
_KNOWN_AIRLINES_LOWER = frozenset(a.lower() for a in KNOWN_AIRLINES)

_IATA_RE = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: Optional[str] = None


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """
    Parse an ISO date. Datetime strings are accepted and truncated to the date.

    Returns None when the value can't be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def validate_airport_code(code: Optional[str]) -> ValidationResult:
    upper_code = (code or "").strip().upper()

    if not upper_code:
        return ValidationResult(False, "Airport code is required")

    if len(upper_code) != 3:
        return ValidationResult(False, "Airport code must be 3 letters")

    if not _IATA_RE.match(upper_code):
        return ValidationResult(False, "Airport code must contain only letters")

    if upper_code not in KNOWN_AIRPORTS:
        return ValidationResult(
            False,
            f'Airport code "{upper_code}" not recognized. Please verify it\'s a valid IATA code.',
        )

    return ValidationResult(True)


def validate_airline(airline: Optional[str]) -> ValidationResult:
    trimmed = (airline or "").strip()

    if not trimmed:
        return ValidationResult(False, "Airline name is required")

    if len(trimmed) < 2:
        return ValidationResult(False, "Airline name is too short")

    if trimmed.lower() not in _KNOWN_AIRLINES_LOWER:
        # Accepted, just flagged
        return ValidationResult(
            True,
            f'Airline "{trimmed}" will be tracked, but it\'s not in our common airlines list.',
        )

    return ValidationResult(True)


def validate_travel_date(
    value: Union[str, date, None],
    today: Optional[date] = None,
) -> ValidationResult:
    """Travel date must parse and fall on or after today (time of day ignored)."""
    travel_date = parse_date(value)
    if travel_date is None:
        return ValidationResult(False, "Invalid date format")

    if travel_date < (today or date.today()):
        return ValidationResult(False, "Travel date must be in the future")

    return ValidationResult(True)


def validate_return_date(
    departure: Union[str, date, None],
    return_value: Union[str, date, None],
) -> ValidationResult:
    """Return date, when present, must be strictly after departure."""
    if return_value is None or (isinstance(return_value, str) and not return_value.strip()):
        return ValidationResult(True)  # one-way

    return_date = parse_date(return_value)
    if return_date is None:
        return ValidationResult(False, "Invalid return date format")

    departure_date = parse_date(departure)
    if departure_date is None:
        return ValidationResult(False, "Invalid date format")

    if return_date <= departure_date:
        return ValidationResult(False, "Return date must be after departure date")

    return ValidationResult(True)
