from __future__ import annotations

import secrets
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from app.domain.exceptions import (
    BusinessValidationError,
    ConflictError,
    ResourceNotFoundError,
)
from app.hotel import catalog
from app.hotel.catalog import Hotel, RoomType
from app.hotel.offer_ids import OfferKey, decode_offer_id, encode_offer_id
from app.hotel.schemas import MAX_ADULTS, MAX_CHILDREN, MAX_ROOMS, Holder, SearchIn

MAX_NIGHTS = 30


@dataclass(frozen=True)
class Offer:
    offer_id: str
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
    total_price: float
    currency: str


@dataclass(frozen=True)
class HotelResult:
    hotel: Hotel
    offers: list[Offer]


@dataclass(frozen=True)
class SearchResult:
    search_id: str
    destination: str
    check_in: date
    check_out: date
    nights: int
    results: list[HotelResult]

    @property
    def total_results(self) -> int:
        return len(self.results)


@dataclass
class Prebook:
    prebook_id: str
    offer: Offer
    created_at: datetime
    expires_at: datetime
    used: bool = False


@dataclass
class Booking:
    booking_id: str
    reference: str
    status: str
    offer: Offer
    holder: Holder
    created_at: datetime
    updated_at: datetime
    special_requests: str | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None


def _utcnow() -> datetime:
    return datetime.now(UTC)


class BookingStore:
    """
    In-memory prebooks and bookings for one application instance.

    Nothing is persisted; all access happens on the event loop thread.
    """

    def __init__(self, *, prebook_ttl_seconds: int, now: Callable[[], datetime] = _utcnow):
        self.prebook_ttl = timedelta(seconds=prebook_ttl_seconds)
        self.now = now
        self.prebooks: dict[str, Prebook] = {}
        self.bookings: dict[str, Booking] = {}


def _validate_stay(*, check_in: date, check_out: date, today: date) -> int:
    if check_in < today:
        raise BusinessValidationError("check_in must not be in the past")
    if check_out <= check_in:
        raise BusinessValidationError("check_out must be after check_in")
    nights = (check_out - check_in).days
    if nights > MAX_NIGHTS:
        raise BusinessValidationError(f"Stays are limited to {MAX_NIGHTS} nights")
    return nights


def _validate_party(*, adults: int, children: int, rooms: int) -> None:
    if rooms > adults:
        raise BusinessValidationError("Each room needs at least one adult")


def _room_fits(*, room: RoomType, adults: int, children: int, rooms: int) -> bool:
    return room.max_occupancy * rooms >= adults + children


def _price_offer(*, hotel: Hotel, room: RoomType, key: OfferKey) -> Offer:
    nights = (key.check_out - key.check_in).days
    total_cents = room.nightly_rate_cents * nights * key.rooms
    return Offer(
        offer_id=encode_offer_id(key),
        hotel_id=hotel.hotel_id,
        room_code=room.room_code,
        room_name=room.name,
        board=room.board,
        check_in=key.check_in,
        check_out=key.check_out,
        nights=nights,
        rooms=key.rooms,
        adults=key.adults,
        children=key.children,
        total_price=round(total_cents / 100, 2),
        currency=hotel.currency,
    )


def search_hotels(*, query: SearchIn, today: date) -> SearchResult:
    nights = _validate_stay(check_in=query.check_in, check_out=query.check_out, today=today)
    _validate_party(adults=query.adults, children=query.children, rooms=query.rooms)

    results: list[HotelResult] = []
    for hotel in catalog.find_hotels(query.destination):
        if query.min_stars is not None and hotel.stars < query.min_stars:
            continue

        offers: list[Offer] = []
        for room in hotel.rooms:
            if not _room_fits(
                room=room, adults=query.adults, children=query.children, rooms=query.rooms
            ):
                continue
            key = OfferKey(
                hotel_id=hotel.hotel_id,
                room_code=room.room_code,
                check_in=query.check_in,
                check_out=query.check_out,
                rooms=query.rooms,
                adults=query.adults,
                children=query.children,
            )
            offer = _price_offer(hotel=hotel, room=room, key=key)
            if query.max_price is not None and offer.total_price > query.max_price:
                continue
            offers.append(offer)

        if offers:
            offers.sort(key=lambda o: (o.total_price, o.room_code))
            results.append(HotelResult(hotel=hotel, offers=offers))

    # Cheapest hotel first; hotel id keeps the order stable for equal prices.
    results.sort(key=lambda r: (r.offers[0].total_price, r.hotel.hotel_id))
    return SearchResult(
        search_id=f"srch_{uuid.uuid4().hex}",
        destination=query.destination,
        check_in=query.check_in,
        check_out=query.check_out,
        nights=nights,
        results=results,
    )


def _key_in_search_bounds(key: OfferKey) -> bool:
    """Offer ids are client-supplied; accept only what a search could have produced."""

    nights = (key.check_out - key.check_in).days
    return (
        0 < nights <= MAX_NIGHTS
        and 1 <= key.rooms <= MAX_ROOMS
        and 1 <= key.adults <= MAX_ADULTS
        and 0 <= key.children <= MAX_CHILDREN
        and key.rooms <= key.adults
    )


def resolve_offer(*, offer_id: str) -> Offer:
    """Re-derive an offer from its id. Raises ResourceNotFoundError for unknown or malformed ids."""

    try:
        key = decode_offer_id(offer_id)
    except ValueError as exc:
        raise ResourceNotFoundError("Offer not found") from exc

    hotel = catalog.get_hotel(key.hotel_id)
    room = hotel.room(key.room_code) if hotel is not None else None
    if hotel is None or room is None:
        raise ResourceNotFoundError("Offer not found")
    if not _key_in_search_bounds(key):
        raise ResourceNotFoundError("Offer not found")
    if not _room_fits(room=room, adults=key.adults, children=key.children, rooms=key.rooms):
        raise ResourceNotFoundError("Offer not found")

    return _price_offer(hotel=hotel, room=room, key=key)


def create_prebook(*, store: BookingStore, offer_id: str) -> Prebook:
    offer = resolve_offer(offer_id=offer_id)
    now = store.now()
    if offer.check_in < now.date():
        raise BusinessValidationError("Offer check-in date is in the past")

    prebook = Prebook(
        prebook_id=f"pb_{uuid.uuid4().hex}",
        offer=offer,
        created_at=now,
        expires_at=now + store.prebook_ttl,
    )
    store.prebooks[prebook.prebook_id] = prebook
    return prebook


def _new_reference(store: BookingStore) -> str:
    existing = {b.reference for b in store.bookings.values()}
    while True:
        reference = f"HB-{secrets.token_hex(4).upper()}"
        if reference not in existing:
            return reference


def create_booking(
    *,
    store: BookingStore,
    prebook_id: str,
    holder: Holder,
    special_requests: str | None,
) -> Booking:
    prebook = store.prebooks.get(prebook_id)
    if prebook is None:
        raise ResourceNotFoundError("Prebook not found")
    if prebook.used:
        raise ConflictError("Prebook has already been used for a booking")

    now = store.now()
    if prebook.expires_at <= now:
        raise ConflictError("Prebook has expired; prebook the offer again")

    booking = Booking(
        booking_id=f"bk_{uuid.uuid4().hex}",
        reference=_new_reference(store),
        status="CONFIRMED",
        offer=prebook.offer,
        holder=holder,
        special_requests=special_requests,
        created_at=now,
        updated_at=now,
    )
    prebook.used = True
    store.bookings[booking.booking_id] = booking
    return booking


def _get_booking(*, store: BookingStore, booking_id: str) -> Booking:
    booking = store.bookings.get(booking_id)
    if booking is None:
        raise ResourceNotFoundError("Booking not found")
    return booking


def cancel_booking(*, store: BookingStore, booking_id: str, reason: str | None) -> Booking:
    booking = _get_booking(store=store, booking_id=booking_id)
    if booking.status == "CANCELLED":
        raise ConflictError("Booking is already cancelled")

    now = store.now()
    booking.status = "CANCELLED"
    booking.cancelled_at = now
    booking.cancellation_reason = reason
    booking.updated_at = now
    return booking


def edit_booking(
    *,
    store: BookingStore,
    booking_id: str,
    holder: Holder | None,
    special_requests: str | None,
) -> Booking:
    booking = _get_booking(store=store, booking_id=booking_id)
    if booking.status == "CANCELLED":
        raise ConflictError("Cancelled bookings cannot be edited")
    if holder is None and special_requests is None:
        raise BusinessValidationError("Provide holder and/or special_requests to edit")

    if holder is not None:
        booking.holder = holder
    if special_requests is not None:
        booking.special_requests = special_requests
    booking.updated_at = store.now()
    return booking
