"""
Validazione dei parametri di ricerca, prima di qualsiasi chiamata di rete.

Restituisce un dict campo → messaggio (vuoto se valido): gli errori vengono
mostrati per campo, non sollevati come eccezioni.
"""
import re
from datetime import date

from flightsearch.models.flight import SearchParams

MAX_PASSENGERS = 9

_IATA_CODE = re.compile(r"^[A-Za-z]{3}$")


def _airport_error(value: str, label: str) -> str | None:
    if not value or not value.strip():
        return f"{label} airport is required"
    if not _IATA_CODE.match(value.strip()):
        return "Please enter a valid airport code"
    return None


def validate_search_params(params: SearchParams, today: date | None = None) -> dict[str, str]:
    today = today or date.today()
    errors: dict[str, str] = {}

    origin_error = _airport_error(params.origin, "Origin")
    if origin_error:
        errors["origin"] = origin_error

    destination_error = _airport_error(params.destination, "Destination")
    if destination_error:
        errors["destination"] = destination_error
    elif not origin_error and params.destination.strip().upper() == params.origin.strip().upper():
        errors["destination"] = "Destination must be different from origin"

    if params.depart_date is None:
        errors["depart_date"] = "Departure date is required"
    elif params.depart_date < today:
        errors["depart_date"] = "Departure date cannot be in the past"

    if (
        params.return_date is not None
        and params.depart_date is not None
        and params.return_date < params.depart_date
    ):
        errors["return_date"] = "Return date must be after departure date"

    if params.adults < 1:
        errors["adults"] = "At least 1 passenger is required"
    elif params.adults > MAX_PASSENGERS:
        errors["adults"] = f"Maximum {MAX_PASSENGERS} passengers allowed"

    return errors
