#flightsearch/exceptions.py


class FlightSearchError(Exception):
    pass




class InvalidSearchError(FlightSearchError):
    """Parametri di ricerca non validi: nessuna chiamata di rete è stata fatta."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = errors
        super().__init__("Invalid search parameters: " + ", ".join(f"{k}: {v}" for k, v in errors.items()))




class RateLimitExceededError(FlightSearchError):

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"Too many searches, retry in {retry_after}s")




class ProviderError(FlightSearchError):
    """Errore restituito da un provider (HTTP o payload di errore)."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        code: int | None = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        self.code = code
        super().__init__(f"{provider}: {message}")

    def is_fallback_eligible(self, fallback_codes: set[int] | frozenset[int] = frozenset()) -> bool:
        """5xx oppure uno dei codici errore del provider che giustificano il fallback."""
        if self.status_code is not None and 500 <= self.status_code < 600:
            return True
        return self.code is not None and self.code in fallback_codes




class ProviderConfigurationError(ProviderError):
    """Credenziali mancanti: errore terminale, mai idoneo al fallback."""

    def is_fallback_eligible(self, fallback_codes=frozenset()) -> bool:
        return False




class SearchFailedError(FlightSearchError):
    pass




class AllProvidersFailedError(SearchFailedError):
    pass
