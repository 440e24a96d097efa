from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceObservation(Base):
    """
    One price snapshot for a tracked flight.

    Append-only. The newest row per flight (by observed_at, then id) is the
    flight's current price and the baseline for the next price check.
    """
    __tablename__ = "price_observations"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    flight_id = Column(
        Integer,
        ForeignKey("tracked_flights.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Total for all passengers, as quoted
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    # Breakdown - null when the provider gives nothing meaningful
    base_fare = Column(Numeric(10, 2), nullable=True)
    taxes = Column(Numeric(10, 2), nullable=True)
    fees = Column(Numeric(10, 2), nullable=True)

    booking_link = Column(Text, nullable=True)
    offer_id = Column(String(64), nullable=True)

    observed_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    flight = relationship("TrackedFlight", back_populates="price_history")

    def __repr__(self) -> str:
        return f"<PriceObservation {self.id}: ${self.price} on {self.observed_at}>"
