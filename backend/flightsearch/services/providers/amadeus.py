"""
AmadeusProvider — provider primario (Self-Service API, ambiente test).

Ottimizzazione token: il token OAuth2 è cachato a livello di modulo con
scadenza anticipata di 5 minuti rispetto a expires_in, per evitare una
POST /oauth2/token extra ad ogni ricerca.

Refresh concorrenti: di default NON sono deduplicati (due ricerche parallele
con token scaduto fanno due POST). Con AMADEUS_TOKEN_SINGLE_FLIGHT=true il
lock asincrono (_TOKEN_LOCK) serializza le richieste di token.

Ricerca offerte: una sola richiesta, nessun retry. Gli errori vengono
sollevati come ProviderError con status HTTP e codice errore Amadeus, così il
chiamante può decidere se passare al fallback.

Documentazione: https://developers.amadeus.com/self-service/category/flights
"""
import asyncio
import logging
import time

import httpx

from flightsearch.exceptions import ProviderConfigurationError, ProviderError
from flightsearch.models.flight import SearchParams
from flightsearch.services.providers.base import AmadeusOffer, FlightProvider

logger = logging.getLogger(__name__)

_AUTH_PATH = "/v1/security/oauth2/token"
_SEARCH_PATH = "/v2/shopping/flight-offers"

# Margine di sicurezza prima della scadenza del token
_TOKEN_EXPIRY_MARGIN_S = 300

# Cache token a livello di modulo: client_id → (token, expires_at_monotonic)
_TOKEN_CACHE: dict[str, tuple[str, float]] = {}

# Lock per il refresh single-flight (lazy init, usato solo se abilitato)
_TOKEN_LOCK: asyncio.Lock | None = None


def _error_details(resp: httpx.Response) -> tuple[int | None, str]:
    """Estrae (codice, titolo) dal primo elemento di `errors` del body Amadeus."""
    try:
        errors = resp.json().get("errors") or []
        first = errors[0]
        code = first.get("code")
        title = first.get("detail") or first.get("title") or resp.text[:300]
        return (int(code) if code is not None else None), title
    except (ValueError, AttributeError, IndexError, TypeError):
        return None, resp.text[:300]


class AmadeusProvider(FlightProvider):

    name = "amadeus"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = "https://test.api.amadeus.com",
        currency: str = "USD",
        max_results: int = 50,
        single_flight_token: bool = False,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip("/")
        self.currency = currency
        self.max_results = max_results
        self.single_flight_token = single_flight_token
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _get_token(self, client: httpx.AsyncClient) -> str:
        """Restituisce un token OAuth2 valido, usando la cache se disponibile."""
        if not self.single_flight_token:
            return await self._cached_or_fetch_token(client)

        global _TOKEN_LOCK
        if _TOKEN_LOCK is None:
            _TOKEN_LOCK = asyncio.Lock()
        async with _TOKEN_LOCK:
            return await self._cached_or_fetch_token(client)

    async def _cached_or_fetch_token(self, client: httpx.AsyncClient) -> str:
        cached = _TOKEN_CACHE.get(self.client_id)
        if cached and time.monotonic() < cached[1]:
            return cached[0]

        resp = await client.post(
            _AUTH_PATH,
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if resp.status_code != 200:
            code, detail = _error_details(resp)
            raise ProviderError(
                self.name,
                f"authentication failed: HTTP {resp.status_code} {detail}",
                status_code=resp.status_code,
                code=code,
            )

        data = resp.json()
        token: str = data["access_token"]
        expires_in = int(data.get("expires_in", 1799))
        expires_at = time.monotonic() + expires_in - _TOKEN_EXPIRY_MARGIN_S
        _TOKEN_CACHE[self.client_id] = (token, expires_at)
        logger.info("Amadeus token ottenuto, valido per %ds", expires_in - _TOKEN_EXPIRY_MARGIN_S)
        return token

    def _search_params(self, params: SearchParams) -> dict:
        query: dict = {
            "originLocationCode": params.origin,
            "destinationLocationCode": params.destination,
            "departureDate": params.depart_date.isoformat(),
            "adults": params.adults or 1,
            "max": self.max_results,
            "currencyCode": self.currency,
        }
        if params.return_date:
            query["returnDate"] = params.return_date.isoformat()
        return query

    async def fetch_offers(self, params: SearchParams) -> dict:
        """Chiama flight-offers e restituisce il body JSON (data + dictionaries)."""
        if not self.client_id or not self.client_secret:
            raise ProviderConfigurationError(
                self.name, "credentials not configured (AMADEUS_CLIENT_ID / AMADEUS_CLIENT_SECRET)"
            )

        try:
            async with self._client() as client:
                token = await self._get_token(client)
                resp = await client.get(
                    _SEARCH_PATH,
                    params=self._search_params(params),
                    headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"{type(exc).__name__}: {exc}") from exc

        if resp.status_code != 200:
            code, detail = _error_details(resp)
            logger.warning(
                "Amadeus %s→%s %s: HTTP %d (code %s) — %s",
                params.origin, params.destination, params.depart_date,
                resp.status_code, code, detail,
            )
            raise ProviderError(
                self.name,
                f"API error: HTTP {resp.status_code} {detail}",
                status_code=resp.status_code,
                code=code,
            )

        body = resp.json()
        logger.debug(
            "Amadeus %s→%s %s: %d offers",
            params.origin, params.destination, params.depart_date, len(body.get("data") or []),
        )
        return body

    async def search(self, params: SearchParams) -> list[AmadeusOffer]:
        body = await self.fetch_offers(params)
        dictionaries = body.get("dictionaries")
        return [AmadeusOffer(data=item, dictionaries=dictionaries) for item in body.get("data") or []]
