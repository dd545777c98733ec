"""
DuffelProvider — provider di fallback.

Flusso:
  1. POST /air/offer_requests  → crea la richiesta (offerte generate in asincrono)
  2. GET  /air/offers?offer_request_id=...  ripetuta secondo la RetryPolicy
     (default 10 tentativi a 1s) finché la lista non è vuota

Se i tentativi finiscono senza offerte restituisce una lista vuota: non è un
errore. Il loop non è cancellabile una volta partito.

Documentazione: https://duffel.com/docs/api/overview/welcome
"""
import logging

import httpx

from flightsearch.exceptions import ProviderConfigurationError, ProviderError
from flightsearch.models.flight import SearchParams
from flightsearch.services.providers.base import DuffelOffer, FlightProvider
from flightsearch.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

_OFFER_REQUESTS_PATH = "/air/offer_requests"
_OFFERS_PATH = "/air/offers"


class DuffelProvider(FlightProvider):

    name = "duffel"

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.duffel.com",
        version: str = "v2",
        poll_policy: RetryPolicy | None = None,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.version = version
        self.poll_policy = poll_policy or RetryPolicy()
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Duffel-Version": self.version,
                "Accept": "application/json",
            },
        )

    def _raise_for_status(self, resp: httpx.Response, action: str) -> None:
        if resp.is_success:
            return
        logger.warning("Duffel %s failed: HTTP %d — %s", action, resp.status_code, resp.text[:300])
        raise ProviderError(
            self.name,
            f"failed to {action}: HTTP {resp.status_code} {resp.text[:300]}",
            status_code=resp.status_code,
        )

    @staticmethod
    def _offer_request_body(params: SearchParams) -> dict:
        slices = [{
            "origin": params.origin,
            "destination": params.destination,
            "departure_date": params.depart_date.isoformat(),
        }]
        if params.return_date:
            slices.append({
                "origin": params.destination,
                "destination": params.origin,
                "departure_date": params.return_date.isoformat(),
            })
        return {
            "data": {
                "slices": slices,
                "passengers": [{"type": "adult"} for _ in range(params.adults or 1)],
                "cabin_class": "economy",
            }
        }

    async def fetch_offers(self, params: SearchParams) -> list[dict]:
        """Offerte Duffel grezze (lista vuota se il polling si esaurisce)."""
        if not self.access_token:
            raise ProviderConfigurationError(self.name, "access token not configured (DUFFEL_ACCESS_TOKEN)")

        try:
            async with self._client() as client:
                resp = await client.post(
                    _OFFER_REQUESTS_PATH,
                    params={"return_offers": "false"},
                    json=self._offer_request_body(params),
                )
                self._raise_for_status(resp, "create offer request")
                offer_request_id = resp.json()["data"]["id"]

                async def _list_offers() -> list[dict]:
                    offers_resp = await client.get(_OFFERS_PATH, params={"offer_request_id": offer_request_id})
                    self._raise_for_status(offers_resp, "fetch offers")
                    return offers_resp.json().get("data") or []

                offers = await self.poll_policy.run(_list_offers)
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"{type(exc).__name__}: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(self.name, f"unexpected response: {exc}") from exc

        if offers:
            logger.info("Duffel %s→%s %s: %d offers", params.origin, params.destination, params.depart_date, len(offers))
        else:
            logger.warning(
                "Duffel %s→%s %s: nessuna offerta dopo %d tentativi",
                params.origin, params.destination, params.depart_date, self.poll_policy.max_attempts,
            )
        return offers

    async def search(self, params: SearchParams) -> list[DuffelOffer]:
        return [DuffelOffer(data=item) for item in await self.fetch_offers(params)]
