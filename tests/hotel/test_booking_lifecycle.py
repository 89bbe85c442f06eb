"""Integration tests: prebook, book, edit and cancel."""

from __future__ import annotations

import base64
import json
from datetime import UTC, datetime, timedelta

import pytest
from starlette.testclient import TestClient

from app.hotel.offer_ids import OfferKey, encode_offer_id
from tests.hotel._helpers import HOLDER, create_booking, prebook_first_offer, search, today


def test_full_booking_lifecycle(client: TestClient, auth_headers: dict[str, str]) -> None:
    offer = search(client=client, headers=auth_headers)["results"][0]["offers"][0]

    prebook_res = client.post(
        "/api/hotel/prebook", json={"offer_id": offer["offer_id"]}, headers=auth_headers
    )
    assert prebook_res.status_code == 201, prebook_res.text
    prebook = prebook_res.json()
    assert prebook["prebook_id"].startswith("pb_")
    assert prebook["status"] == "HELD"
    assert prebook["offer"] == offer
    held_for = datetime.fromisoformat(prebook["expires_at"]) - datetime.fromisoformat(
        prebook["created_at"]
    )
    assert held_for == timedelta(seconds=900)

    book_res = client.post(
        "/api/hotel/book",
        json={
            "prebook_id": prebook["prebook_id"],
            "holder": HOLDER,
            "special_requests": "Late arrival",
        },
        headers=auth_headers,
    )
    assert book_res.status_code == 201, book_res.text
    booking = book_res.json()
    assert booking["booking_id"].startswith("bk_")
    assert booking["reference"].startswith("HB-")
    assert booking["status"] == "CONFIRMED"
    assert booking["offer"]["total_price"] == 285.0
    assert booking["holder"]["email"] == "ada@example.com"
    assert booking["special_requests"] == "Late arrival"
    assert booking["cancelled_at"] is None

    edit_res = client.put(
        "/api/hotel/edit",
        json={
            "booking_id": booking["booking_id"],
            "holder": {**HOLDER, "phone": "+351 912 345 678"},
        },
        headers=auth_headers,
    )
    assert edit_res.status_code == 200, edit_res.text
    edited = edit_res.json()
    assert edited["holder"]["phone"] == "+351 912 345 678"
    assert edited["special_requests"] == "Late arrival"
    assert edited["reference"] == booking["reference"]

    cancel_res = client.post(
        "/api/hotel/cancel",
        json={"booking_id": booking["booking_id"], "reason": "Plans changed"},
        headers=auth_headers,
    )
    assert cancel_res.status_code == 200, cancel_res.text
    cancelled = cancel_res.json()
    assert cancelled["status"] == "CANCELLED"
    assert cancelled["cancellation_reason"] == "Plans changed"
    assert cancelled["cancelled_at"] is not None

    again = client.post(
        "/api/hotel/cancel", json={"booking_id": booking["booking_id"]}, headers=auth_headers
    )
    assert again.status_code == 409
    assert again.json()["error"] == "conflict"
    assert again.json()["detail"] == "Booking is already cancelled"


def test_booking_routes_require_token(client: TestClient) -> None:
    assert client.post("/api/hotel/prebook", json={"offer_id": "off_x"}).status_code == 401
    assert client.post("/api/hotel/book", json={}).status_code == 401
    assert client.post("/api/hotel/cancel", json={}).status_code == 401
    assert client.put("/api/hotel/edit", json={}).status_code == 401


def test_prebook_unknown_offer_is_404(client: TestClient, auth_headers: dict[str, str]) -> None:
    unknown_hotel = encode_offer_id(
        OfferKey(
            hotel_id="HTL-NOPE-001",
            room_code="STD",
            check_in=today() + timedelta(days=5),
            check_out=today() + timedelta(days=7),
            rooms=1,
            adults=2,
            children=0,
        )
    )
    for offer_id in ("off_not-base64!", "nonsense", unknown_hotel):
        res = client.post("/api/hotel/prebook", json={"offer_id": offer_id}, headers=auth_headers)
        assert res.status_code == 404, offer_id
        assert res.json()["detail"] == "Offer not found"


def _forged_offer_id(**raw_fields: str) -> str:
    """Build an offer id from raw JSON text per field, so values like 1e999 survive."""
    check_in = today() + timedelta(days=10)
    fields = {
        "v": "1",
        "h": '"HTL-LIS-001"',
        "r": '"FAM"',
        "ci": json.dumps(check_in.isoformat()),
        "co": json.dumps((check_in + timedelta(days=2)).isoformat()),
        "n": "1",
        "a": "2",
        "c": "0",
        **raw_fields,
    }
    raw = "{" + ",".join(f'"{key}":{value}' for key, value in fields.items()) + "}"
    return "off_" + base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def test_forged_offer_id_within_bounds_is_accepted(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    res = client.post(
        "/api/hotel/prebook", json={"offer_id": _forged_offer_id()}, headers=auth_headers
    )
    assert res.status_code == 201, res.text
    assert res.json()["offer"]["total_price"] == 350.0


@pytest.mark.parametrize(
    "raw_fields",
    [
        {"n": "1e999"},
        {"a": "-1e999"},
        {"n": "1" + "0" * 400},
        {"c": "NaN"},
        {"n": "6", "a": "9"},
        {"a": "10"},
        {"c": "7"},
        {"n": "3", "a": "2"},
        {"co": json.dumps((today() + timedelta(days=60)).isoformat())},
        {"ci": "[]"},
    ],
)
def test_forged_offer_id_outside_search_bounds_is_404(
    client: TestClient, auth_headers: dict[str, str], raw_fields: dict[str, str]
) -> None:
    res = client.post(
        "/api/hotel/prebook",
        json={"offer_id": _forged_offer_id(**raw_fields)},
        headers=auth_headers,
    )
    assert res.status_code == 404, res.text
    assert res.json()["error"] == "not_found"
    assert res.json()["detail"] == "Offer not found"


def test_prebook_past_offer_is_400(client: TestClient, auth_headers: dict[str, str]) -> None:
    offer_id = encode_offer_id(
        OfferKey(
            hotel_id="HTL-LIS-001",
            room_code="STD",
            check_in=today() - timedelta(days=2),
            check_out=today() + timedelta(days=1),
            rooms=1,
            adults=2,
            children=0,
        )
    )
    res = client.post("/api/hotel/prebook", json={"offer_id": offer_id}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["error"] == "business_validation"


def test_book_unknown_prebook_is_404(client: TestClient, auth_headers: dict[str, str]) -> None:
    res = client.post(
        "/api/hotel/book",
        json={"prebook_id": "pb_missing", "holder": HOLDER},
        headers=auth_headers,
    )
    assert res.status_code == 404
    assert res.json()["detail"] == "Prebook not found"


def test_prebook_can_only_be_booked_once(client: TestClient, auth_headers: dict[str, str]) -> None:
    prebook = prebook_first_offer(client=client, headers=auth_headers)
    payload = {"prebook_id": prebook["prebook_id"], "holder": HOLDER}

    first = client.post("/api/hotel/book", json=payload, headers=auth_headers)
    assert first.status_code == 201

    second = client.post("/api/hotel/book", json=payload, headers=auth_headers)
    assert second.status_code == 409
    assert second.json()["detail"] == "Prebook has already been used for a booking"


def test_expired_prebook_is_409(client: TestClient, auth_headers: dict[str, str]) -> None:
    prebook = prebook_first_offer(client=client, headers=auth_headers)

    store = client.app.state.booking_store
    store.now = lambda: datetime.now(UTC) + timedelta(seconds=901)

    res = client.post(
        "/api/hotel/book",
        json={"prebook_id": prebook["prebook_id"], "holder": HOLDER},
        headers=auth_headers,
    )
    assert res.status_code == 409
    assert res.json()["detail"] == "Prebook has expired; prebook the offer again"


def test_book_validates_holder(client: TestClient, auth_headers: dict[str, str]) -> None:
    prebook = prebook_first_offer(client=client, headers=auth_headers)
    res = client.post(
        "/api/hotel/book",
        json={"prebook_id": prebook["prebook_id"], "holder": {**HOLDER, "email": "not-an-email"}},
        headers=auth_headers,
    )
    assert res.status_code == 422
    assert res.json()["detail"][0]["loc"] == ["holder", "email"]


def test_book_accepts_nested_form_holder(client: TestClient, auth_headers: dict[str, str]) -> None:
    prebook = prebook_first_offer(client=client, headers=auth_headers)
    res = client.post(
        "/api/hotel/book",
        data={
            "prebook_id": prebook["prebook_id"],
            "holder[first_name]": "Ada",
            "holder[last_name]": "Lovelace",
            "holder[email]": "ada@example.com",
        },
        headers=auth_headers,
    )
    assert res.status_code == 201, res.text
    assert res.json()["holder"]["last_name"] == "Lovelace"


def test_cancel_and_edit_unknown_booking_is_404(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    cancel = client.post("/api/hotel/cancel", json={"booking_id": "bk_missing"}, headers=auth_headers)
    edit = client.put(
        "/api/hotel/edit",
        json={"booking_id": "bk_missing", "special_requests": "Quiet room"},
        headers=auth_headers,
    )
    for res in (cancel, edit):
        assert res.status_code == 404
        assert res.json()["detail"] == "Booking not found"


def test_edit_without_changes_is_400(client: TestClient, auth_headers: dict[str, str]) -> None:
    booking = create_booking(client=client, headers=auth_headers)
    res = client.put(
        "/api/hotel/edit", json={"booking_id": booking["booking_id"]}, headers=auth_headers
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "Provide holder and/or special_requests to edit"


def test_cancelled_booking_cannot_be_edited(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    booking = create_booking(client=client, headers=auth_headers)
    client.post("/api/hotel/cancel", json={"booking_id": booking["booking_id"]}, headers=auth_headers)

    res = client.put(
        "/api/hotel/edit",
        json={"booking_id": booking["booking_id"], "special_requests": "Sea view"},
        headers=auth_headers,
    )
    assert res.status_code == 409
    assert res.json()["detail"] == "Cancelled bookings cannot be edited"
