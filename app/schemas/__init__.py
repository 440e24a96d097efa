from app.schemas.flight import (
    TrackedFlightCreate,
    TrackedFlightResponse,
    TrackedFlightSummary,
    TrackedFlightDetail,
    TrackedFlightCreated,
    PriceObservationResponse,
    NotificationResponse,
)
from app.schemas.price_check import PriceCheckResponse, FlightCheckResultResponse

__all__ = [
    "TrackedFlightCreate",
    "TrackedFlightResponse",
    "TrackedFlightSummary",
    "TrackedFlightDetail",
    "TrackedFlightCreated",
    "PriceObservationResponse",
    "NotificationResponse",
    "PriceCheckResponse",
    "FlightCheckResultResponse",
]
