from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class OfferKey:
    hotel_id: str
    room_code: str
    check_in: date
    check_out: date
    rooms: int
    adults: int
    children: int


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    # Offer ids are emitted without padding.
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def encode_offer_id(key: OfferKey) -> str:
    """Encode everything needed to re-price an offer, so prebook needs no search state."""

    payload = {
        "v": 1,
        "h": key.hotel_id,
        "r": key.room_code,
        "ci": key.check_in.isoformat(),
        "co": key.check_out.isoformat(),
        "n": key.rooms,
        "a": key.adults,
        "c": key.children,
    }
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return "off_" + _b64url_encode(raw)


def decode_offer_id(offer_id: str) -> OfferKey:
    if not offer_id.startswith("off_"):
        raise ValueError("Invalid offer id")

    try:
        payload = json.loads(_b64url_decode(offer_id[4:]))
    except Exception as exc:  # noqa: BLE001
        raise ValueError("Invalid offer id") from exc

    if not isinstance(payload, dict) or payload.get("v") != 1:
        raise ValueError("Invalid offer id version")

    try:
        return OfferKey(
            hotel_id=str(payload["h"]),
            room_code=str(payload["r"]),
            check_in=date.fromisoformat(payload["ci"]),
            check_out=date.fromisoformat(payload["co"]),
            rooms=int(payload["n"]),
            adults=int(payload["a"]),
            children=int(payload["c"]),
        )
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        raise ValueError("Invalid offer id payload") from exc
