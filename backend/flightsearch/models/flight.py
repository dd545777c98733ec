"""
Modello di dominio interno — indipendente dal provider.

Flight viene prodotto dal normalizer (services/normalizer.py) ed è immutabile.
Filters è lo stato dei filtri scelto dal client: non modifica mai i Flight.
"""
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum


@dataclass(frozen=True)
class Airport:
    code: str         # codice IATA (es. "JFK")
    name: str
    city: str
    country: str = "Unknown"


@dataclass(frozen=True)
class Flight:
    id: str
    price_total: int
    currency: str
    airline_codes: tuple[str, ...]
    stops: int
    duration_minutes: int
    depart_at: str          # ISO datetime string (es. "2024-03-15T10:00:00Z")
    arrive_at: str
    origin: Airport
    destination: Airport

    def to_dict(self) -> dict:
        data = asdict(self)
        data["airline_codes"] = list(self.airline_codes)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Flight":
        """Ricostruisce un Flight dal dict salvato in cache."""
        return cls(
            id=data["id"],
            price_total=data["price_total"],
            currency=data["currency"],
            airline_codes=tuple(data.get("airline_codes", [])),
            stops=data["stops"],
            duration_minutes=data["duration_minutes"],
            depart_at=data["depart_at"],
            arrive_at=data["arrive_at"],
            origin=Airport(**data["origin"]),
            destination=Airport(**data["destination"]),
        )


@dataclass(frozen=True)
class SearchParams:
    origin: str
    destination: str
    depart_date: date | None
    return_date: date | None = None
    adults: int = 1


class SortBy(str, Enum):
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    DURATION_ASC = "duration-asc"
    DEPARTURE_ASC = "departure-asc"


@dataclass(frozen=True)
class PriceRange:
    min: float = 0
    max: float = 2000


# Valore sentinella: selezionare 2 significa "2 o più scali"
MULTI_STOP = 2


@dataclass(frozen=True)
class Filters:
    # Default = stato iniziale dei filtri lato client
    stops: frozenset[int] = frozenset({0, 1, MULTI_STOP})
    airlines: frozenset[str] = frozenset()
    price: PriceRange = field(default_factory=PriceRange)
    sort_by: SortBy | None = SortBy.PRICE_ASC


@dataclass(frozen=True)
class PriceSeriesPoint:
    hour: int
    min_price: int


@dataclass(frozen=True)
class FlightStats:
    count: int
    min_price: int
    max_price: int
    avg_price: int
    airlines: tuple[str, ...]
