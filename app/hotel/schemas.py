from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

BookingStatus = Literal["CONFIRMED", "CANCELLED"]

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

MAX_ADULTS = 9
MAX_CHILDREN = 6
MAX_ROOMS = 5


class SearchIn(BaseModel):
    destination: str = Field(
        min_length=1,
        max_length=100,
        description="City or country name (case-insensitive).",
        examples=["Lisbon"],
    )
    check_in: date = Field(description="Arrival date (YYYY-MM-DD).", examples=["2030-06-01"])
    check_out: date = Field(description="Departure date (YYYY-MM-DD).", examples=["2030-06-04"])
    adults: int = Field(default=2, ge=1, le=MAX_ADULTS)
    children: int = Field(default=0, ge=0, le=MAX_CHILDREN)
    rooms: int = Field(default=1, ge=1, le=MAX_ROOMS)
    min_stars: int | None = Field(default=None, ge=1, le=5)
    max_price: float | None = Field(
        default=None, gt=0, description="Upper bound for the total stay price of an offer."
    )


class OfferOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    offer_id: str = Field(description="Opaque offer identifier; pass it to /prebook.")
    hotel_id: str
    room_code: str
    room_name: str
    board: str
    check_in: date
    check_out: date
    nights: int
    rooms: int
    adults: int
    children: int
    total_price: float = Field(description="Total price for all rooms and nights.")
    currency: str


class HotelOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    hotel_id: str
    name: str
    city: str
    country: str
    stars: int
    address: str
    amenities: list[str]


class HotelResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    hotel: HotelOut
    offers: list[OfferOut]


class SearchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    search_id: str
    destination: str
    check_in: date
    check_out: date
    nights: int
    total_results: int
    results: list[HotelResultOut]


class PrebookIn(BaseModel):
    offer_id: str = Field(min_length=1, max_length=2048)


class PrebookOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    prebook_id: str
    status: Literal["HELD"] = "HELD"
    offer: OfferOut
    created_at: datetime
    expires_at: datetime = Field(description="The offer price is held until this instant.")


class Holder(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    first_name: str = Field(min_length=1, max_length=100, examples=["Ada"])
    last_name: str = Field(min_length=1, max_length=100, examples=["Lovelace"])
    email: str = Field(pattern=_EMAIL_PATTERN, max_length=255, examples=["ada@example.com"])
    phone: str | None = Field(default=None, max_length=40, examples=["+351 912 345 678"])


class BookIn(BaseModel):
    prebook_id: str = Field(min_length=1, max_length=100)
    holder: Holder
    special_requests: str | None = Field(default=None, max_length=500)


class CancelIn(BaseModel):
    booking_id: str = Field(min_length=1, max_length=100)
    reason: str | None = Field(default=None, max_length=500)


class EditIn(BaseModel):
    booking_id: str = Field(min_length=1, max_length=100)
    holder: Holder | None = None
    special_requests: str | None = Field(default=None, max_length=500)


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_id: str
    reference: str = Field(description="Human-friendly confirmation reference.", examples=["HB-1A2B3C4D"])
    status: BookingStatus
    offer: OfferOut
    holder: Holder
    special_requests: str | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
