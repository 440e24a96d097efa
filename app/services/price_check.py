"""
Price check job.

For every active flight that hasn't departed yet: fetch a quote, append it to
the price history and raise a notification when the move against the previous
observation qualifies under the configured policy.

Flights are processed one at a time with a pause between them to stay inside
the Amadeus rate limits. A failure on one flight is logged and recorded in the
summary; it never stops the rest of the batch.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Awaitable, Callable, List, Optional

from sqlalchemy.orm import Session

from app.config import get_settings
from app.models import TrackedFlight, PriceObservation, PriceChangeNotification

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
TENTHS = Decimal("0.1")

# Per-flight outcomes
PRICE_CHECKED = "price_checked"
PRICE_CHANGED = "price_changed"
NO_PRICE_FOUND = "no_price_found"
ERROR = "error"


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class PriceChangePolicy(ABC):
    name: str = "base"

    @abstractmethod
    def evaluate(self, old_price: Decimal, new_price: Decimal) -> Optional[str]:
        """Return the notification message, or None when the change doesn't qualify."""


class ThresholdPolicy(PriceChangePolicy):
    """Notify when the price moves by at least `threshold` in either direction."""
    name = "threshold"

    def __init__(self, threshold: Decimal = Decimal("5.00")):
        self.threshold = Decimal(str(threshold))

    def evaluate(self, old_price: Decimal, new_price: Decimal) -> Optional[str]:
        diff = new_price - old_price
        if abs(diff) < self.threshold:
            return None
        if diff < 0:
            return f"Price dropped by ${_money(-diff)}!"
        return f"Price increased by ${_money(diff)}"


class DropOnlyPolicy(PriceChangePolicy):
    """Notify on any strict decrease, reporting the drop in dollars and percent."""
    name = "drop_only"

    def evaluate(self, old_price: Decimal, new_price: Decimal) -> Optional[str]:
        if new_price >= old_price:
            return None
        drop = old_price - new_price
        if old_price <= 0:
            return f"Price dropped by ${_money(drop)}"
        percent = (drop / old_price * 100).quantize(TENTHS, rounding=ROUND_HALF_UP)
        return f"Price dropped by ${_money(drop)} ({percent}%)"


def get_policy(name: str, threshold: Decimal = Decimal("5.00")) -> PriceChangePolicy:
    if name == DropOnlyPolicy.name:
        return DropOnlyPolicy()
    if name == ThresholdPolicy.name:
        return ThresholdPolicy(threshold)
    raise ValueError(f"Unknown price alert policy: {name}")


@dataclass
class FlightCheckResult:
    flight_id: int
    status: str
    price: Optional[Decimal] = None
    old_price: Optional[Decimal] = None
    new_price: Optional[Decimal] = None
    message: Optional[str] = None
    error: Optional[str] = None


@dataclass
class PriceCheckSummary:
    checked: int = 0
    updated: int = 0
    notifications: int = 0
    skipped: int = 0
    errors: int = 0
    results: List[FlightCheckResult] = field(default_factory=list)

    def add(self, result: FlightCheckResult) -> None:
        self.results.append(result)
        self.checked += 1
        if result.status in (PRICE_CHECKED, PRICE_CHANGED):
            self.updated += 1
        if result.status == PRICE_CHANGED:
            self.notifications += 1
        elif result.status == NO_PRICE_FOUND:
            self.skipped += 1
        elif result.status == ERROR:
            self.errors += 1

    def to_dict(self) -> dict:
        return asdict(self)


class PriceCheckService:
    """
    Runs one price check pass over the tracked flights.

    The pricing client only needs an async `search_offer(...)` returning a
    PriceQuote or None.
    """

    def __init__(
        self,
        db: Session,
        pricing_client,
        notifier=None,
        policy: Optional[PriceChangePolicy] = None,
        delay_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = get_settings()
        self.db = db
        self.pricing_client = pricing_client
        self.notifier = notifier
        self.policy = policy or get_policy(
            settings.price_alert_policy, settings.price_change_threshold
        )
        self.delay_seconds = (
            settings.price_check_delay_seconds if delay_seconds is None else delay_seconds
        )
        self._sleep = sleep

    def flights_to_check(self, today: Optional[date] = None) -> List[TrackedFlight]:
        """Active flights whose travel date is today or later."""
        today = today or date.today()
        return (
            self.db.query(TrackedFlight)
            .filter(
                TrackedFlight.is_active == True,  # noqa: E712
                TrackedFlight.travel_date >= today,
            )
            .order_by(TrackedFlight.travel_date.asc(), TrackedFlight.id.asc())
            .all()
        )

    def latest_observation(self, flight_id: int) -> Optional[PriceObservation]:
        return (
            self.db.query(PriceObservation)
            .filter(PriceObservation.flight_id == flight_id)
            .order_by(PriceObservation.observed_at.desc(), PriceObservation.id.desc())
            .first()
        )

    async def check_flight(self, flight: TrackedFlight) -> FlightCheckResult:
        """
        Price a single flight. Raises on pricing-client or database errors;
        run() turns those into an error outcome.
        """
        logger.info(f"Checking {flight.display_name}")

        previous = self.latest_observation(flight.id)

        quote = await self.pricing_client.search_offer(
            origin=flight.origin,
            destination=flight.destination,
            departure_date=flight.travel_date,
            return_date=flight.return_date if flight.is_round_trip else None,
            adults=flight.num_passengers,
            cabin_class=flight.cabin_class.value,
        )

        if quote is None:
            logger.info(f"  No price data available for flight {flight.id}")
            return FlightCheckResult(flight_id=flight.id, status=NO_PRICE_FOUND)

        logger.info(f"  Current price: ${quote.price} {quote.currency}")

        self.db.add(PriceObservation(
            flight_id=flight.id,
            price=quote.price,
            currency=quote.currency,
            base_fare=quote.base_fare,
            taxes=quote.taxes,
            fees=quote.fees,
            booking_link=quote.booking_link,
            offer_id=quote.offer_id,
        ))

        notification = None
        if previous is not None:
            old_price = Decimal(str(previous.price))
            new_price = Decimal(str(quote.price))
            logger.info(f"  Price change: ${_money(new_price - old_price)}")

            message = self.policy.evaluate(old_price, new_price)
            if message:
                notification = PriceChangeNotification(
                    flight_id=flight.id,
                    message=message,
                    old_price=old_price,
                    new_price=new_price,
                )
                self.db.add(notification)

        self.db.commit()

        if notification is None:
            return FlightCheckResult(flight_id=flight.id, status=PRICE_CHECKED, price=quote.price)

        logger.info(f"  Notification created: {notification.message}")
        if self.notifier is not None:
            # Rows are already committed; a failed push doesn't change the outcome
            try:
                await self.notifier.send_price_change_alert(flight, notification)
            except Exception as e:
                logger.warning(f"  Push failed for flight {flight.id}: {e}")

        return FlightCheckResult(
            flight_id=flight.id,
            status=PRICE_CHANGED,
            price=quote.price,
            old_price=notification.old_price,
            new_price=notification.new_price,
            message=notification.message,
        )

    async def run(self) -> PriceCheckSummary:
        """
        Check every eligible flight once.

        Errors selecting the flights propagate: the whole run has failed and
        the caller must report it.
        """
        flights = self.flights_to_check()
        logger.info(
            f"Starting price check for {len(flights)} active flights "
            f"(policy: {self.policy.name})"
        )

        summary = PriceCheckSummary()

        for flight in flights:
            flight_id = flight.id
            try:
                result = await self.check_flight(flight)
            except Exception as e:
                self.db.rollback()
                logger.error(f"Error checking price for flight {flight_id}: {e}")
                result = FlightCheckResult(flight_id=flight_id, status=ERROR, error=str(e))

            summary.add(result)

            if self.delay_seconds > 0:
                await self._sleep(self.delay_seconds)

        logger.info(
            f"Price check complete: {summary.checked} checked, {summary.updated} updated, "
            f"{summary.notifications} notifications, {summary.skipped} without price, "
            f"{summary.errors} errors"
        )
        return summary
