# SQLAlchemy models
from app.models.tracked_flight import TrackedFlight, TripType, CabinClass
from app.models.price_observation import PriceObservation
from app.models.price_notification import PriceChangeNotification

__all__ = [
    "TrackedFlight",
    "PriceObservation",
    "PriceChangeNotification",
    # Enums
    "TripType",
    "CabinClass",
]
