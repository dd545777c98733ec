"""
Price Series Builder — prezzo minimo per ora di partenza, per il grafico.

Va chiamato sul set GIA' filtrato (apply_filters prima, poi build_price_series).
"""
import logging
import math

from flightsearch.models.flight import Flight, PriceSeriesPoint
from flightsearch.utils.parsing import parse_datetime, round_half_up

logger = logging.getLogger(__name__)

# Guardia contro dati corrotti del provider, non una regola di business
MAX_SANE_PRICE = 50000


def _is_sane_price(price) -> bool:
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        return False
    if math.isnan(price):
        return False
    return 0 < price < MAX_SANE_PRICE


def build_price_series(flights: list[Flight]) -> list[PriceSeriesPoint]:
    cheapest_by_hour: dict[int, float] = {}

    for flight in flights:
        if not _is_sane_price(flight.price_total):
            continue
        try:
            # ora "di orologio" del timestamp così come scritto dal provider
            hour = parse_datetime(flight.depart_at).hour
        except (TypeError, ValueError):
            logger.debug("Price series: depart_at non valido per %s: %r", flight.id, flight.depart_at)
            continue

        current = cheapest_by_hour.get(hour)
        if current is None or flight.price_total < current:
            cheapest_by_hour[hour] = flight.price_total

    return [
        PriceSeriesPoint(hour=hour, min_price=round_half_up(price))
        for hour, price in sorted(cheapest_by_hour.items())
    ]
