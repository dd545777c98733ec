"""
Parsing tollerante di importi e timestamp ricevuti dai provider.

I provider restituiscono prezzi come stringhe ("299.99") e timestamp ISO 8601
con o senza offset. Queste funzioni non conoscono la struttura delle offerte:
sono usate dal normalizer, dal filter engine e dal price series builder.
"""
import math
from datetime import datetime


def parse_amount(value) -> float:
    """Converte un importo in float. Valori non numerici, NaN o infiniti → 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount


def round_half_up(value: float) -> int:
    """Arrotonda all'intero più vicino, .5 verso +infinito (non banker's rounding)."""
    return math.floor(value + 0.5)


def parse_datetime(value: str) -> datetime:
    """ISO 8601 → datetime. Accetta il suffisso "Z". Solleva ValueError/TypeError."""
    return datetime.fromisoformat(value)


def timestamp_or_none(value) -> float | None:
    """Epoch seconds di un timestamp ISO, None se non parsabile."""
    try:
        return parse_datetime(value).timestamp()
    except (TypeError, ValueError):
        return None
