"""
Filter/Sort Engine — unica fonte di verità per filtri e ordinamento.

Funzioni pure: non modificano né i Flight né la lista in input.
"""
from flightsearch.models.flight import MULTI_STOP, Filters, Flight, FlightStats, SortBy
from flightsearch.utils.parsing import round_half_up, timestamp_or_none


def _matches_stops(flight: Flight, stops: frozenset[int]) -> bool:
    if not stops:
        return True
    for selected in stops:
        if selected == MULTI_STOP:
            # "2+" = 2 o più scali
            if flight.stops >= MULTI_STOP:
                return True
        elif flight.stops == selected:
            return True
    return False


def _matches_airlines(flight: Flight, airlines: frozenset[str]) -> bool:
    if not airlines:
        return True
    return any(code in airlines for code in flight.airline_codes)


def _matches_price(flight: Flight, filters: Filters) -> bool:
    return filters.price.min <= flight.price_total <= filters.price.max


def _departure_key(flight: Flight) -> tuple[int, float]:
    # timestamp non parsabili in fondo
    ts = timestamp_or_none(flight.depart_at)
    return (1, 0.0) if ts is None else (0, ts)


_SORT_KEYS = {
    SortBy.PRICE_ASC: (lambda f: f.price_total, False),
    SortBy.PRICE_DESC: (lambda f: f.price_total, True),
    SortBy.DURATION_ASC: (lambda f: f.duration_minutes, False),
    SortBy.DEPARTURE_ASC: (_departure_key, False),
}


def apply_filters(flights: list[Flight], filters: Filters) -> list[Flight]:
    """
    Applica stops, airlines e prezzo (sempre, estremi inclusi), poi ordina.

    L'ordinamento è stabile: a parità di chiave resta l'ordine di input.
    Con sort_by None l'ordine di input è preservato.
    """
    filtered = [
        f for f in flights
        if _matches_stops(f, filters.stops)
        and _matches_airlines(f, filters.airlines)
        and _matches_price(f, filters)
    ]

    if filters.sort_by is None:
        return filtered
    key, reverse = _SORT_KEYS[SortBy(filters.sort_by)]
    # sorted() con reverse=True resta stabile in Python
    return sorted(filtered, key=key, reverse=reverse)


def flight_stats(flights: list[Flight]) -> FlightStats:
    """Statistiche sul set (già filtrato) di voli."""
    if not flights:
        return FlightStats(count=0, min_price=0, max_price=0, avg_price=0, airlines=())

    prices = [f.price_total for f in flights]
    airlines = tuple(dict.fromkeys(code for f in flights for code in f.airline_codes))
    return FlightStats(
        count=len(flights),
        min_price=min(prices),
        max_price=max(prices),
        avg_price=round_half_up(sum(prices) / len(prices)),
        airlines=airlines,
    )


def count_active_filters(filters: Filters, flights: list[Flight]) -> int:
    """
    Numero di filtri attivi (badge lato client).

    Il filtro prezzo conta solo se restringe il range reale dei voli caricati.
    """
    count = 0
    if filters.stops:
        count += 1
    if filters.airlines:
        count += 1
    if flights:
        prices = [f.price_total for f in flights]
        if filters.price.min > min(prices) or filters.price.max < max(prices):
            count += 1
    return count
