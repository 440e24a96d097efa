from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Boolean, DateTime, Numeric, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.database import Base


class PriceChangeNotification(Base):
    __tablename__ = "price_change_notifications"

    id = Column(Integer, primary_key=True, index=True)
    flight_id = Column(
        Integer,
        ForeignKey("tracked_flights.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    message = Column(Text, nullable=False)
    old_price = Column(Numeric(10, 2), nullable=False)
    new_price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    is_read = Column(Boolean, default=False, server_default='0', nullable=False)

    flight = relationship("TrackedFlight", back_populates="notifications")

    def __repr__(self) -> str:
        return f"<PriceChangeNotification {self.id}: {self.message}>"
