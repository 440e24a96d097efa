"""
Amadeus Self-Service pricing client.

Maps a tracked-flight search to a single priced offer. Any upstream failure
(auth, transport, unexpected payload) is logged and reported as "no offer" so
a caller looping over many flights never has to guard each call.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from app.config import get_settings
from app.utils.booking_links import build_google_flights_url

logger = logging.getLogger(__name__)

TOKEN_REFRESH_MARGIN = timedelta(seconds=60)

CABIN_CLASS_MAP = {
    "economy": "ECONOMY",
    "premium_economy": "PREMIUM_ECONOMY",
    "business": "BUSINESS",
    "first": "FIRST",
}


class AmadeusAuthError(RuntimeError):
    """Token endpoint refused or returned something unusable."""


@dataclass
class PriceQuote:
    price: Decimal
    currency: str
    offer_id: str
    base_fare: Optional[Decimal] = None
    taxes: Optional[Decimal] = None
    fees: Optional[Decimal] = None
    booking_link: Optional[str] = None


@dataclass
class TokenCache:
    """
    Bearer token plus the moment it stops being usable.

    By default one instance is shared per account and environment. Refreshes
    aren't locked: two callers may both fetch a token, and either result is
    fine to keep.
    """
    token: Optional[str] = None
    expires_at: Optional[datetime] = None

    def get(self, now: Optional[datetime] = None) -> Optional[str]:
        now = now or datetime.now(timezone.utc)
        if self.token and self.expires_at and now < self.expires_at:
            return self.token
        return None

    def store(self, token: str, expires_in: int, now: Optional[datetime] = None) -> None:
        now = now or datetime.now(timezone.utc)
        self.token = token
        self.expires_at = now + timedelta(seconds=expires_in) - TOKEN_REFRESH_MARGIN

    def clear(self) -> None:
        self.token = None
        self.expires_at = None


# One cache per (base_url, client_id): a token belongs to an account in an environment
_shared_token_caches: Dict[Tuple[str, str], TokenCache] = {}


def shared_token_cache(base_url: str, client_id: str) -> TokenCache:
    key = (base_url.rstrip("/"), client_id)
    if key not in _shared_token_caches:
        _shared_token_caches[key] = TokenCache()
    return _shared_token_caches[key]


# ---------------------------------------------------------------------------
# Response models (only the fields we read)
# ---------------------------------------------------------------------------

class AmadeusFee(BaseModel):
    amount: Decimal
    type: Optional[str] = None


class AmadeusPrice(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    currency: str = "USD"
    total: Optional[Decimal] = None
    base: Decimal
    grand_total: Optional[Decimal] = Field(default=None, alias="grandTotal")
    fees: List[AmadeusFee] = Field(default_factory=list)

    @field_validator("total", "grand_total", mode="before")
    @classmethod
    def _blank_total(cls, v):
        if v == "":
            return None
        return v

    @model_validator(mode="after")
    def _has_total(self):
        if self.grand_total is None and self.total is None:
            raise ValueError("offer price has neither grandTotal nor total")
        return self

    @field_validator("fees", mode="before")
    @classmethod
    def _null_fees(cls, v):
        return v or []


class AmadeusOffer(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    price: AmadeusPrice


def build_quote(offer: AmadeusOffer, booking_link: Optional[str] = None) -> PriceQuote:
    """
    Turn a parsed offer into a PriceQuote with a tax/fee breakdown.

    taxes = (total - base) - fees. Taxes and fees are left out when they come
    to zero or less rather than showing a meaningless breakdown line.
    """
    price = offer.price
    total = price.grand_total if price.grand_total is not None else price.total
    base = price.base
    fees = sum((fee.amount for fee in price.fees), Decimal("0"))
    taxes = (total - base) - fees

    return PriceQuote(
        price=total,
        currency=price.currency,
        offer_id=offer.id,
        base_fare=base,
        taxes=taxes if taxes > 0 else None,
        fees=fees if fees > 0 else None,
        booking_link=booking_link,
    )


class AmadeusPricingClient:
    name = "amadeus"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = "https://test.api.amadeus.com",
        token_cache: Optional[TokenCache] = None,
        non_stop: bool = True,
        currency: str = "USD",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip("/")
        self.token_cache = (
            token_cache if token_cache is not None
            else shared_token_cache(self.base_url, client_id)
        )
        self.non_stop = non_stop
        self.currency = currency
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings=None) -> "AmadeusPricingClient":
        settings = settings or get_settings()
        return cls(
            client_id=settings.amadeus_client_id,
            client_secret=settings.amadeus_client_secret,
            base_url=settings.amadeus_base_url,
            non_stop=settings.amadeus_non_stop,
        )

    def is_available(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _get_token(self, client: httpx.AsyncClient) -> str:
        token = self.token_cache.get()
        if token:
            return token

        logger.debug("Requesting new Amadeus access token")
        response = await client.post(
            f"{self.base_url}/v1/security/oauth2/token",
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
        )
        if response.status_code != 200:
            raise AmadeusAuthError(
                f"Token request failed: HTTP {response.status_code} - {response.text[:120]}"
            )

        data = response.json()
        access_token = data.get("access_token")
        if not access_token:
            raise AmadeusAuthError("Token response missing access_token")

        self.token_cache.store(access_token, int(data.get("expires_in", 1799)))
        return access_token

    def _search_params(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        return_date: Optional[date],
        adults: int,
        cabin_class: str,
    ) -> dict:
        params = {
            "originLocationCode": origin,
            "destinationLocationCode": destination,
            "departureDate": departure_date.isoformat(),
            "adults": adults,
            "travelClass": CABIN_CLASS_MAP.get(str(cabin_class).lower(), "ECONOMY"),
            "currencyCode": self.currency,
            "max": 1,
        }
        if return_date:
            params["returnDate"] = return_date.isoformat()
        if self.non_stop:
            params["nonStop"] = "true"
        return params

    async def search_offer(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        return_date: Optional[date] = None,
        adults: int = 1,
        cabin_class: str = "economy",
    ) -> Optional[PriceQuote]:
        """
        Return the cheapest offer for the search, or None.

        None covers both "no flights found" and any failure talking to Amadeus.
        """
        if not self.is_available():
            logger.warning("Amadeus credentials not configured - skipping search")
            return None

        route = f"{origin}-{destination}"
        try:
            async with self._http_client() as client:
                token = await self._get_token(client)
                response = await client.get(
                    f"{self.base_url}/v2/shopping/flight-offers",
                    headers={"Authorization": f"Bearer {token}"},
                    params=self._search_params(
                        origin, destination, departure_date, return_date, adults, cabin_class
                    ),
                )
                response.raise_for_status()
                data = response.json()

            offers = data.get("data") or []
            if not offers:
                logger.info(f"No Amadeus offers for {route} on {departure_date}")
                return None

            offer = AmadeusOffer.model_validate(offers[0])
            booking_link = build_google_flights_url(
                origin, destination, departure_date, return_date, currency=self.currency
            )
            return build_quote(offer, booking_link)

        except httpx.HTTPStatusError as e:
            logger.error(
                f"Amadeus API error for {route}: HTTP {e.response.status_code} - {e.response.text[:200]}"
            )
            return None
        except AmadeusAuthError as e:
            logger.error(f"Amadeus auth failed: {e}")
            return None
        except ValidationError as e:
            logger.error(f"Unexpected Amadeus offer shape for {route}: {e}")
            return None
        except Exception as e:
            logger.error(f"Error searching flights for {route}: {e}")
            return None
