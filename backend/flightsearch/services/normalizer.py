"""
Offer Normalizer — offerte Amadeus / Duffel → Flight.

Le due varianti hanno una politica di errore diversa, intenzionalmente:
  - Amadeus: non restituisce mai None e non solleva; i campi mancanti o
    malformati diventano default (0, "", "Unknown").
  - Duffel: restituisce None se mancano i campi necessari a posizionare
    l'offerta (origine, destinazione, orari, prezzo/valuta) e converte in None
    qualsiasi eccezione durante l'estrazione.

Anche la semantica degli scali è diversa: Amadeus somma numberOfStops dei
segmenti, Duffel usa numero segmenti - 1.
"""
import logging
import re
from typing import Iterable

from flightsearch.models.flight import Airport, Flight
from flightsearch.services.providers.base import AmadeusOffer, DuffelOffer, RawOffer
from flightsearch.utils.parsing import parse_amount, parse_datetime, round_half_up

logger = logging.getLogger(__name__)

UNKNOWN_COUNTRY = "Unknown"

# Soglie usate solo per il log diagnostico del batch Amadeus
_SUSPICIOUS_PRICE_HIGH = 10000
_SUSPICIOUS_PRICE_LOW = 0

_ISO_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?")


def _parse_iso_duration(duration) -> int:
    """Converte durata ISO 8601 'PT2H30M' in minuti totali. Non parsabile → 0."""
    if not isinstance(duration, str):
        return 0
    match = _ISO_DURATION.search(duration)
    if not match:
        return 0
    hours = int(match.group(1) or 0)
    mins = int(match.group(2) or 0)
    return hours * 60 + mins


def _unique(codes: Iterable[str]) -> tuple[str, ...]:
    """De-duplica mantenendo l'ordine di prima apparizione."""
    return tuple(dict.fromkeys(codes))


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def _as_str(value) -> str:
    return value if isinstance(value, str) else ""


# ---------------------------------------------------------------------------
# Amadeus
# ---------------------------------------------------------------------------

def _amadeus_airport(code: str, dictionaries: dict | None) -> Airport:
    location = _as_dict(_as_dict(_as_dict(dictionaries).get("locations")).get(code))
    loc_name = _as_str(location.get("name"))
    loc_city = _as_str(location.get("cityName"))
    name = loc_name or loc_city or code
    city = loc_city or loc_name or code
    return Airport(
        code=code,
        name=name,
        city=city,
        country=_as_str(location.get("countryCode")) or UNKNOWN_COUNTRY,
    )


def _segment_stops(segment: dict) -> int:
    stops = segment.get("numberOfStops", 0)
    if isinstance(stops, bool) or not isinstance(stops, int):
        return 0
    return stops


def normalize_amadeus_offer(offer: dict, dictionaries: dict | None = None) -> Flight:
    """Normalizza un'offerta Amadeus. Best-effort: restituisce sempre un Flight."""
    offer = _as_dict(offer)
    itineraries = _as_list(offer.get("itineraries"))
    itinerary = _as_dict(itineraries[0]) if itineraries else {}
    segments = [_as_dict(s) for s in _as_list(itinerary.get("segments"))]
    first_seg = segments[0] if segments else {}
    last_seg = segments[-1] if segments else {}

    departure = _as_dict(first_seg.get("departure"))
    arrival = _as_dict(last_seg.get("arrival"))
    price = _as_dict(offer.get("price"))

    # codici non stringa (liste, dict) da payload malformati diventano ""
    origin_code = _as_str(departure.get("iataCode"))
    destination_code = _as_str(arrival.get("iataCode"))

    return Flight(
        id=str(offer.get("id", "")),
        price_total=round_half_up(parse_amount(price.get("grandTotal"))),
        currency=_as_str(price.get("currency")),
        airline_codes=_unique(c for c in (_as_str(s.get("carrierCode")) for s in segments) if c),
        stops=sum(_segment_stops(s) for s in segments),
        duration_minutes=_parse_iso_duration(itinerary.get("duration")),
        depart_at=_as_str(departure.get("at")),
        arrive_at=_as_str(arrival.get("at")),
        origin=_amadeus_airport(origin_code, dictionaries),
        destination=_amadeus_airport(destination_code, dictionaries),
    )


def normalize_amadeus_response(response: dict) -> list[Flight]:
    """Normalizza l'intera risposta flight-offers (data + dictionaries)."""
    response = _as_dict(response)
    dictionaries = response.get("dictionaries")
    flights = [normalize_amadeus_offer(o, dictionaries) for o in _as_list(response.get("data"))]
    _log_price_range(flights)
    return flights


def _log_price_range(flights: list[Flight]) -> None:
    if not flights:
        return
    prices = [f.price_total for f in flights]
    logger.debug("Normalized %d Amadeus flights, price range %d - %d", len(flights), min(prices), max(prices))

    suspicious = [
        (f.id, f.price_total)
        for f in flights
        if f.price_total > _SUSPICIOUS_PRICE_HIGH or f.price_total < _SUSPICIOUS_PRICE_LOW
    ]
    if suspicious:
        logger.warning("Amadeus: %d offers with suspicious prices: %s", len(suspicious), suspicious)


# ---------------------------------------------------------------------------
# Duffel
# ---------------------------------------------------------------------------

def _duffel_airport(place: dict) -> Airport:
    code = place["iata_code"]
    name = place.get("name") or code
    return Airport(
        code=code,
        name=name,
        city=place.get("city_name") or name,
        country=place.get("iata_country_code") or UNKNOWN_COUNTRY,
    )


def _duffel_carrier(segment: dict) -> str | None:
    for key in ("marketing_carrier", "operating_carrier"):
        carrier = segment.get(key) or {}
        if carrier.get("iata_code"):
            return carrier["iata_code"]
    return None


def _extract_duffel(offer: dict) -> Flight | None:
    slices = offer.get("slices") or []
    if not slices:
        return None
    segments = slices[0].get("segments") or []
    if not segments:
        return None

    first_seg = segments[0]
    last_seg = segments[-1]
    origin = first_seg.get("origin") or {}
    destination = last_seg.get("destination") or {}
    departing_at = first_seg.get("departing_at")
    arriving_at = last_seg.get("arriving_at")
    total_amount = offer.get("total_amount")
    total_currency = offer.get("total_currency")

    if not (origin.get("iata_code") and destination.get("iata_code")):
        return None
    if not (departing_at and arriving_at):
        return None
    if total_amount is None or total_amount == "" or not total_currency:
        return None

    elapsed = parse_datetime(arriving_at) - parse_datetime(departing_at)

    return Flight(
        id=str(offer.get("id", "")),
        price_total=round_half_up(parse_amount(total_amount)),
        currency=total_currency,
        airline_codes=_unique(c for c in (_duffel_carrier(s) for s in segments) if c),
        stops=max(len(segments) - 1, 0),
        duration_minutes=max(int(elapsed.total_seconds() // 60), 0),
        depart_at=departing_at,
        arrive_at=arriving_at,
        origin=_duffel_airport(origin),
        destination=_duffel_airport(destination),
    )


def normalize_duffel_offer(offer: dict) -> Flight | None:
    """Normalizza un'offerta Duffel. None se incompleta o malformata."""
    try:
        return _extract_duffel(offer)
    except Exception as exc:
        logger.debug("Duffel: offerta %r scartata: %s: %s", _offer_id(offer), type(exc).__name__, exc)
        return None


def normalize_duffel_offers(offers: Iterable[dict]) -> list[Flight]:
    flights = [normalize_duffel_offer(o) for o in offers]
    return [f for f in flights if f is not None]


def _offer_id(offer) -> str:
    return offer.get("id", "?") if isinstance(offer, dict) else "?"


# ---------------------------------------------------------------------------
# Dispatch sull'etichetta del provider
# ---------------------------------------------------------------------------

def normalize(offer: RawOffer) -> Flight | None:
    if isinstance(offer, AmadeusOffer):
        return normalize_amadeus_offer(offer.data, offer.dictionaries)
    if isinstance(offer, DuffelOffer):
        return normalize_duffel_offer(offer.data)
    raise TypeError(f"Unsupported raw offer type: {type(offer).__name__}")


def normalize_all(offers: Iterable[RawOffer]) -> list[Flight]:
    """Normalizza un batch; le offerte rifiutate vengono scartate, l'ordine è preservato."""
    flights: list[Flight] = []
    amadeus_flights: list[Flight] = []
    dropped = 0
    for offer in offers:
        flight = normalize(offer)
        if flight is None:
            dropped += 1
            continue
        flights.append(flight)
        if isinstance(offer, AmadeusOffer):
            amadeus_flights.append(flight)
    _log_price_range(amadeus_flights)
    if dropped:
        logger.info("Normalizer: %d offers dropped, %d kept", dropped, len(flights))
    return flights
