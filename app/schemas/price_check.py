from pydantic import BaseModel
from decimal import Decimal
from typing import List, Optional


class FlightCheckResultResponse(BaseModel):
    flight_id: int
    status: str
    price: Optional[Decimal] = None
    old_price: Optional[Decimal] = None
    new_price: Optional[Decimal] = None
    message: Optional[str] = None
    error: Optional[str] = None

    class Config:
        from_attributes = True


class PriceCheckResponse(BaseModel):
    success: bool = True
    policy: str
    checked: int
    updated: int
    notifications: int
    skipped: int
    errors: int
    results: List[FlightCheckResultResponse]
