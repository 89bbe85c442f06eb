from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status

from app.auth.deps import require_user
from app.core.forms import read_model
from app.core.metrics import record_booking_event, record_search
from app.hotel.schemas import (
    BookIn,
    BookingOut,
    CancelIn,
    EditIn,
    PrebookIn,
    PrebookOut,
    SearchIn,
    SearchOut,
)
from app.hotel.service import (
    BookingStore,
    cancel_booking,
    create_booking,
    create_prebook,
    edit_booking,
    search_hotels,
)

# Every hotel operation needs a token from POST /api/auth/login.
router = APIRouter(tags=["hotel"], dependencies=[Depends(require_user)])
logger = logging.getLogger("app.hotel")


def get_booking_store(request: Request) -> BookingStore:
    return request.app.state.booking_store


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post("/search", response_model=SearchOut)
async def search(
    request: Request,
    store: BookingStore = Depends(get_booking_store),
) -> SearchOut:
    query = await read_model(request, SearchIn)
    result = search_hotels(query=query, today=store.now().date())
    record_search(result.total_results)
    logger.info(
        "Hotel search completed",
        extra={"request_id": _request_id(request), "result_count": result.total_results},
    )
    return SearchOut.model_validate(result)


@router.post("/prebook", status_code=status.HTTP_201_CREATED, response_model=PrebookOut)
async def prebook(
    request: Request,
    store: BookingStore = Depends(get_booking_store),
) -> PrebookOut:
    payload = await read_model(request, PrebookIn)
    held = create_prebook(store=store, offer_id=payload.offer_id)
    record_booking_event("prebooked")
    return PrebookOut.model_validate(held)


@router.post("/book", status_code=status.HTTP_201_CREATED, response_model=BookingOut)
async def book(
    request: Request,
    store: BookingStore = Depends(get_booking_store),
) -> BookingOut:
    payload = await read_model(request, BookIn)
    booking = create_booking(
        store=store,
        prebook_id=payload.prebook_id,
        holder=payload.holder,
        special_requests=payload.special_requests,
    )
    record_booking_event("booked")
    # Holder details are personal data; log identifiers only.
    logger.info(
        "Booking confirmed",
        extra={"request_id": _request_id(request), "booking_id": booking.booking_id},
    )
    return BookingOut.model_validate(booking)


@router.post("/cancel", response_model=BookingOut)
async def cancel(
    request: Request,
    store: BookingStore = Depends(get_booking_store),
) -> BookingOut:
    payload = await read_model(request, CancelIn)
    booking = cancel_booking(store=store, booking_id=payload.booking_id, reason=payload.reason)
    record_booking_event("cancelled")
    logger.info(
        "Booking cancelled",
        extra={"request_id": _request_id(request), "booking_id": booking.booking_id},
    )
    return BookingOut.model_validate(booking)


@router.put("/edit", response_model=BookingOut)
async def edit(
    request: Request,
    store: BookingStore = Depends(get_booking_store),
) -> BookingOut:
    payload = await read_model(request, EditIn)
    booking = edit_booking(
        store=store,
        booking_id=payload.booking_id,
        holder=payload.holder,
        special_requests=payload.special_requests,
    )
    record_booking_event("edited")
    return BookingOut.model_validate(booking)
