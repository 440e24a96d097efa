from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
import enum


class TripType(str, enum.Enum):
    ONE_WAY = "one_way"
    ROUND_TRIP = "round_trip"


class CabinClass(str, enum.Enum):
    ECONOMY = "economy"
    PREMIUM_ECONOMY = "premium_economy"
    BUSINESS = "business"
    FIRST = "first"


class TrackedFlight(Base):
    """
    A flight the user wants price updates for.

    Never hard-deleted: removing a flight from the dashboard clears is_active,
    so its price history and notifications stay intact.
    """
    __tablename__ = "tracked_flights"

    id = Column(Integer, primary_key=True, index=True)

    # Route (IATA codes, uppercase)
    origin = Column(String(3), nullable=False, index=True)
    destination = Column(String(3), nullable=False, index=True)
    airline = Column(String(100), nullable=False)

    # Dates
    travel_date = Column(Date, nullable=False, index=True)
    return_date = Column(Date, nullable=True)  # Null for one-way
    trip_type = Column(SQLEnum(TripType), default=TripType.ONE_WAY, nullable=False)

    cabin_class = Column(SQLEnum(CabinClass), default=CabinClass.ECONOMY, nullable=False)
    num_passengers = Column(Integer, default=1, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    price_history = relationship(
        "PriceObservation",
        back_populates="flight",
        order_by="[PriceObservation.observed_at.desc(), PriceObservation.id.desc()]",
    )
    notifications = relationship(
        "PriceChangeNotification",
        back_populates="flight",
        order_by="[PriceChangeNotification.created_at.desc(), PriceChangeNotification.id.desc()]",
    )

    @property
    def is_round_trip(self) -> bool:
        return self.trip_type == TripType.ROUND_TRIP

    @property
    def display_name(self) -> str:
        arrow = "⇄" if self.is_round_trip else "→"
        return f"{self.origin} {arrow} {self.destination} ({self.airline}, {self.travel_date})"

    def __repr__(self) -> str:
        return f"<TrackedFlight {self.id}: {self.display_name}>"
