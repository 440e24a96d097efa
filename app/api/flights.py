from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from app.database import get_db
from app.api.dependencies import get_pricing_client
from app.models import TrackedFlight, PriceObservation, PriceChangeNotification, TripType
from app.schemas import (
    TrackedFlightCreate,
    TrackedFlightResponse,
    TrackedFlightSummary,
    TrackedFlightDetail,
    TrackedFlightCreated,
    PriceObservationResponse,
    NotificationResponse,
)
from app.services.validation import (
    parse_date,
    validate_airport_code,
    validate_airline,
    validate_travel_date,
    validate_return_date,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_flight_or_404(db: Session, flight_id: int) -> TrackedFlight:
    flight = db.query(TrackedFlight).filter(TrackedFlight.id == flight_id).first()
    if not flight:
        raise HTTPException(status_code=404, detail="Flight not found")
    return flight


def _latest_observation(db: Session, flight_id: int):
    return (
        db.query(PriceObservation)
        .filter(PriceObservation.flight_id == flight_id)
        .order_by(PriceObservation.observed_at.desc(), PriceObservation.id.desc())
        .first()
    )


@router.get("", response_model=List[TrackedFlightSummary])
async def list_flights(db: Session = Depends(get_db)):
    flights = (
        db.query(TrackedFlight)
        .filter(TrackedFlight.is_active == True)
        .order_by(TrackedFlight.travel_date.asc())
        .all()
    )

    summaries = []
    for flight in flights:
        latest = _latest_observation(db, flight.id)
        unread = (
            db.query(PriceChangeNotification)
            .filter(
                PriceChangeNotification.flight_id == flight.id,
                PriceChangeNotification.is_read == False,
            )
            .order_by(PriceChangeNotification.created_at.desc())
            .all()
        )
        summaries.append(TrackedFlightSummary(
            **TrackedFlightResponse.model_validate(flight).model_dump(),
            current_price=PriceObservationResponse.model_validate(latest) if latest else None,
            unread_notifications=[NotificationResponse.model_validate(n) for n in unread],
        ))
    return summaries


@router.post("", response_model=TrackedFlightCreated, status_code=201)
async def create_flight(
    payload: TrackedFlightCreate,
    db: Session = Depends(get_db),
    pricing_client=Depends(get_pricing_client),
):
    is_round_trip = payload.trip_type == TripType.ROUND_TRIP
    if is_round_trip and not (payload.return_date or "").strip():
        raise HTTPException(status_code=400, detail="Return date is required for round-trip flights")

    checks = [
        validate_airport_code(payload.origin),
        validate_airport_code(payload.destination),
        validate_airline(payload.airline),
        validate_travel_date(payload.travel_date),
    ]
    if is_round_trip:
        checks.append(validate_return_date(payload.travel_date, payload.return_date))

    for check in checks:
        if not check.valid:
            raise HTTPException(status_code=400, detail=check.message)

    warnings = [c.message for c in checks if c.valid and c.message]

    flight = TrackedFlight(
        origin=payload.origin.strip().upper(),
        destination=payload.destination.strip().upper(),
        airline=payload.airline.strip(),
        travel_date=parse_date(payload.travel_date),
        return_date=parse_date(payload.return_date) if is_round_trip else None,
        trip_type=payload.trip_type,
        cabin_class=payload.cabin_class,
        num_passengers=payload.num_passengers,
    )
    db.add(flight)
    db.commit()
    db.refresh(flight)
    logger.info(f"Tracking new flight {flight.id}: {flight.display_name}")

    # Initial price is best-effort; the flight stays tracked either way
    current_price = None
    try:
        quote = await pricing_client.search_offer(
            origin=flight.origin,
            destination=flight.destination,
            departure_date=flight.travel_date,
            return_date=flight.return_date,
            adults=flight.num_passengers,
            cabin_class=flight.cabin_class.value,
        )
        if quote:
            observation = PriceObservation(
                flight_id=flight.id,
                price=quote.price,
                currency=quote.currency,
                base_fare=quote.base_fare,
                taxes=quote.taxes,
                fees=quote.fees,
                booking_link=quote.booking_link,
                offer_id=quote.offer_id,
            )
            db.add(observation)
            db.commit()
            db.refresh(observation)
            current_price = PriceObservationResponse.model_validate(observation)
    except Exception as e:
        db.rollback()
        logger.error(f"Error fetching initial price for flight {flight.id}: {e}")

    return TrackedFlightCreated(
        **TrackedFlightResponse.model_validate(flight).model_dump(),
        current_price=current_price,
        warnings=warnings,
    )


@router.get("/{flight_id}", response_model=TrackedFlightDetail)
async def get_flight(flight_id: int, db: Session = Depends(get_db)):
    return _get_flight_or_404(db, flight_id)


@router.delete("/{flight_id}")
async def delete_flight(flight_id: int, db: Session = Depends(get_db)):
    flight = _get_flight_or_404(db, flight_id)

    flight.is_active = False
    db.commit()
    logger.info(f"Stopped tracking flight {flight_id}")
    return {"success": True, "id": flight_id}
