from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from flightsearch.models.flight import (
    Airport,
    Filters,
    Flight,
    PriceRange,
    SearchParams,
    SortBy,
)


# ---------------------------------------------------------------------------
# Flight (output normalizzato, anche input di /search/view)
# ---------------------------------------------------------------------------

class AirportOut(BaseModel):
    code: str
    name: str
    city: str
    country: str = "Unknown"

    # Permette a Pydantic di leggere i dati direttamente dalle dataclass di dominio
    model_config = {"from_attributes": True}


class FlightOut(BaseModel):
    id: str
    price_total: int
    currency: str
    airline_codes: list[str]
    stops: int
    duration_minutes: int
    depart_at: str
    arrive_at: str
    origin: AirportOut
    destination: AirportOut

    model_config = {"from_attributes": True}

    def to_domain(self) -> Flight:
        return Flight(
            id=self.id,
            price_total=self.price_total,
            currency=self.currency,
            airline_codes=tuple(self.airline_codes),
            stops=self.stops,
            duration_minutes=self.duration_minutes,
            depart_at=self.depart_at,
            arrive_at=self.arrive_at,
            origin=Airport(**self.origin.model_dump()),
            destination=Airport(**self.destination.model_dump()),
        )


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

class SearchIn(BaseModel):
    origin: str = ""
    destination: str = ""
    depart_date: date | None = None
    return_date: date | None = None
    adults: int = 1

    def to_params(self) -> SearchParams:
        return SearchParams(
            origin=self.origin,
            destination=self.destination,
            depart_date=self.depart_date,
            return_date=self.return_date,
            adults=self.adults,
        )


# ---------------------------------------------------------------------------
# Provider status — quale provider ha prodotto i risultati
# ---------------------------------------------------------------------------

class ProviderStatus(BaseModel):
    active_provider: str    # "amadeus" | "duffel" | "cache"
    note: str               # messaggio human-readable per il badge frontend


class SearchOut(BaseModel):
    flights: list[FlightOut]
    used_fallback: bool
    cached: bool
    provider_status: ProviderStatus | None = None


# ---------------------------------------------------------------------------
# View: filtri + ordinamento + grafico prezzi + statistiche
# ---------------------------------------------------------------------------

class PriceRangeIn(BaseModel):
    min: float = 0
    max: float = 2000


class FiltersIn(BaseModel):
    stops: list[int] = Field(default_factory=lambda: [0, 1, 2])
    airlines: list[str] = Field(default_factory=list)
    price: PriceRangeIn = Field(default_factory=PriceRangeIn)
    sort_by: SortBy | None = SortBy.PRICE_ASC

    def to_filters(self) -> Filters:
        return Filters(
            stops=frozenset(self.stops),
            airlines=frozenset(self.airlines),
            price=PriceRange(min=self.price.min, max=self.price.max),
            sort_by=self.sort_by,
        )


class ViewIn(BaseModel):
    flights: list[FlightOut]
    filters: FiltersIn = Field(default_factory=FiltersIn)


class PriceSeriesPointOut(BaseModel):
    hour: int
    min_price: int

    model_config = {"from_attributes": True}


class FlightStatsOut(BaseModel):
    count: int
    min_price: int
    max_price: int
    avg_price: int
    airlines: list[str]

    model_config = {"from_attributes": True}


class ViewOut(BaseModel):
    flights: list[FlightOut]
    price_series: list[PriceSeriesPointOut]
    stats: FlightStatsOut
    active_filters: int


# ---------------------------------------------------------------------------
# Duffel proxy — body compatibile con il client esistente (camelCase)
# ---------------------------------------------------------------------------

class DuffelSearchIn(BaseModel):
    # tipi larghi: i valori sbagliati li rifiuta la route con 400, non FastAPI con 422
    origin: Any = None
    destination: Any = None
    depart_date: Any = Field(default=None, alias="departDate")
    adults: Any = None

    model_config = {"populate_by_name": True}
