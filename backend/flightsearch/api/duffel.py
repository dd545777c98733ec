"""
Proxy Duffel — compatibile con il client esistente.

POST /api/duffel/search
  {"origin": "JFK", "destination": "LAX", "departDate": "2026-11-20", "adults": 1}

Risposte:
  200 {"data": [...]}   anche vuota se il polling si esaurisce
  400 parametri mancanti o di tipo sbagliato (mai il 422 di FastAPI)
  405 metodo diverso da POST (gestito da FastAPI)
  500 token Duffel non configurato
  502 errore upstream
"""
import logging
from datetime import date

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from flightsearch.api.deps import DuffelProviderDep
from flightsearch.exceptions import ProviderConfigurationError, ProviderError
from flightsearch.models.flight import SearchParams
from flightsearch.models.schemas import DuffelSearchIn

logger = logging.getLogger(__name__)

router = APIRouter()


MISSING_PARAMS = "Missing required parameters: origin, destination, departDate, adults"


def _search_params(payload) -> SearchParams:
    """Body JSON → SearchParams. ValueError con il messaggio per il client se non valido."""
    if not isinstance(payload, dict):
        raise ValueError(MISSING_PARAMS)
    body = DuffelSearchIn.model_validate(payload)
    if not (body.origin and body.destination and body.depart_date and body.adults):
        raise ValueError(MISSING_PARAMS)

    if not (isinstance(body.origin, str) and isinstance(body.destination, str)):
        raise ValueError("origin and destination must be airport codes")

    try:
        depart_date = date.fromisoformat(body.depart_date)
    except (TypeError, ValueError):
        raise ValueError("departDate must be an ISO date (YYYY-MM-DD)") from None

    adults = body.adults
    if isinstance(adults, str) and adults.strip().isdigit():
        adults = int(adults)
    if isinstance(adults, bool) or not isinstance(adults, int) or adults < 1:
        raise ValueError("adults must be a positive integer")

    return SearchParams(
        origin=body.origin.strip().upper(),
        destination=body.destination.strip().upper(),
        depart_date=depart_date,
        adults=adults,
    )


@router.post("/search")
async def duffel_search(request: Request, duffel: DuffelProviderDep) -> JSONResponse:
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    try:
        params = _search_params(payload)
    except ValueError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    try:
        offers = await duffel.fetch_offers(params)
    except ProviderConfigurationError:
        return JSONResponse(status_code=500, content={"error": "Duffel API token not configured"})
    except ProviderError as exc:
        logger.error("Duffel proxy: %s", exc)
        return JSONResponse(status_code=502, content={"error": "Failed to fetch offers", "details": str(exc)})

    return JSONResponse(status_code=200, content={"data": offers})
