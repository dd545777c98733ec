"""
Flight Provider Layer — interfaccia astratta (Strategy Pattern).

Ogni provider restituisce offerte "grezze" etichettate con il provider che le
ha emesse (AmadeusOffer / DuffelOffer). Il normalizer sceglie la conversione
in base all'etichetta, mai ispezionando la forma del JSON.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Union

from flightsearch.models.flight import SearchParams


@dataclass(frozen=True)
class AmadeusOffer:
    """Un elemento di `data` della risposta flight-offers + i dictionaries della risposta."""
    provider: ClassVar[str] = "amadeus"
    data: dict
    dictionaries: dict | None = None


@dataclass(frozen=True)
class DuffelOffer:
    """Un elemento di `data` della lista offers Duffel."""
    provider: ClassVar[str] = "duffel"
    data: dict


RawOffer = Union[AmadeusOffer, DuffelOffer]


class FlightProvider(ABC):

    name: str

    @abstractmethod
    async def search(self, params: SearchParams) -> list[RawOffer]:
        """
        Cerca offerte per i parametri dati.
        Solleva ProviderError in caso di errore HTTP o di configurazione.
        """
        ...
