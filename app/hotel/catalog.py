"""Static hotel inventory served by the mock. Rates are per room per night, in cents."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RoomType:
    room_code: str
    name: str
    board: str
    max_occupancy: int
    nightly_rate_cents: int


@dataclass(frozen=True)
class Hotel:
    hotel_id: str
    name: str
    city: str
    country: str
    stars: int
    address: str
    amenities: tuple[str, ...]
    rooms: tuple[RoomType, ...]
    currency: str = "EUR"

    def room(self, room_code: str) -> RoomType | None:
        for room in self.rooms:
            if room.room_code == room_code:
                return room
        return None


_STANDARD = RoomType("STD", "Standard Double", "ROOM_ONLY", 2, 9_500)
_STANDARD_BB = RoomType("STD-BB", "Standard Double", "BED_AND_BREAKFAST", 2, 11_000)
_FAMILY = RoomType("FAM", "Family Room", "BED_AND_BREAKFAST", 4, 17_500)
_SUITE = RoomType("STE", "Junior Suite", "HALF_BOARD", 3, 26_000)

HOTELS: tuple[Hotel, ...] = (
    Hotel(
        hotel_id="HTL-LIS-001",
        name="Alfama Riverside Hotel",
        city="Lisbon",
        country="Portugal",
        stars=4,
        address="Rua dos Remédios 12, 1100-441 Lisboa",
        amenities=("wifi", "breakfast", "rooftop_bar"),
        rooms=(_STANDARD, _STANDARD_BB, _FAMILY),
    ),
    Hotel(
        hotel_id="HTL-LIS-002",
        name="Chiado Boutique Suites",
        city="Lisbon",
        country="Portugal",
        stars=5,
        address="Rua Garrett 45, 1200-203 Lisboa",
        amenities=("wifi", "spa", "restaurant", "airport_shuttle"),
        rooms=(
            RoomType("DLX", "Deluxe King", "BED_AND_BREAKFAST", 2, 21_000),
            _SUITE,
        ),
    ),
    Hotel(
        hotel_id="HTL-PAR-001",
        name="Le Petit Marais",
        city="Paris",
        country="France",
        stars=3,
        address="8 Rue de Turenne, 75004 Paris",
        amenities=("wifi", "breakfast"),
        rooms=(
            RoomType("STD", "Standard Double", "ROOM_ONLY", 2, 12_900),
            RoomType("TRP", "Triple Room", "ROOM_ONLY", 3, 16_400),
        ),
    ),
    Hotel(
        hotel_id="HTL-PAR-002",
        name="Hôtel Saint-Germain Palace",
        city="Paris",
        country="France",
        stars=5,
        address="41 Boulevard Saint-Germain, 75005 Paris",
        amenities=("wifi", "spa", "gym", "restaurant", "concierge"),
        rooms=(
            RoomType("DLX", "Deluxe Double", "BED_AND_BREAKFAST", 2, 34_500),
            RoomType("STE", "Executive Suite", "HALF_BOARD", 4, 58_000),
        ),
    ),
    Hotel(
        hotel_id="HTL-LON-001",
        name="Covent Garden Lodge",
        city="London",
        country="United Kingdom",
        stars=4,
        address="17 Long Acre, London WC2E 9LD",
        amenities=("wifi", "gym", "bar"),
        rooms=(_STANDARD_BB, _FAMILY, _SUITE),
        currency="GBP",
    ),
    Hotel(
        hotel_id="HTL-BCN-001",
        name="Barceloneta Beach Hostal",
        city="Barcelona",
        country="Spain",
        stars=2,
        address="Carrer de Balboa 9, 08003 Barcelona",
        amenities=("wifi",),
        rooms=(
            RoomType("DBL", "Double Room", "ROOM_ONLY", 2, 6_800),
            RoomType("QUAD", "Quadruple Room", "ROOM_ONLY", 4, 11_200),
        ),
    ),
)

_BY_ID = {h.hotel_id: h for h in HOTELS}


def get_hotel(hotel_id: str) -> Hotel | None:
    return _BY_ID.get(hotel_id)


def find_hotels(destination: str) -> list[Hotel]:
    """Case-insensitive match on city or country."""

    needle = destination.strip().casefold()
    if not needle:
        return []
    return [h for h in HOTELS if needle in (h.city.casefold(), h.country.casefold())]
