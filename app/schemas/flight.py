from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from app.models.tracked_flight import TripType, CabinClass


class TrackedFlightCreate(BaseModel):
    origin: str
    destination: str
    airline: str
    # Kept as strings so validation can report a readable message
    travel_date: str
    return_date: Optional[str] = None
    trip_type: TripType = TripType.ONE_WAY
    cabin_class: CabinClass = CabinClass.ECONOMY
    num_passengers: int = Field(default=1, ge=1, le=9)


class PriceObservationResponse(BaseModel):
    id: int
    flight_id: int
    price: Decimal
    currency: str
    base_fare: Optional[Decimal] = None
    taxes: Optional[Decimal] = None
    fees: Optional[Decimal] = None
    booking_link: Optional[str] = None
    offer_id: Optional[str] = None
    observed_at: datetime

    class Config:
        from_attributes = True


class NotificationResponse(BaseModel):
    id: int
    flight_id: int
    message: str
    old_price: Decimal
    new_price: Decimal
    created_at: datetime
    is_read: bool

    class Config:
        from_attributes = True


class TrackedFlightResponse(BaseModel):
    id: int
    origin: str
    destination: str
    airline: str
    travel_date: date
    return_date: Optional[date] = None
    trip_type: TripType
    cabin_class: CabinClass
    num_passengers: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TrackedFlightSummary(TrackedFlightResponse):
    """Dashboard row: flight plus current price and unread notifications."""
    current_price: Optional[PriceObservationResponse] = None
    unread_notifications: List[NotificationResponse] = []


class TrackedFlightDetail(TrackedFlightResponse):
    price_history: List[PriceObservationResponse] = []
    notifications: List[NotificationResponse] = []


class TrackedFlightCreated(TrackedFlightResponse):
    current_price: Optional[PriceObservationResponse] = None
    warnings: List[str] = []
