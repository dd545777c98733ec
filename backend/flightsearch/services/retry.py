"""
Politica di polling a intervallo fisso (nessun backoff).

Usata per le offerte Duffel, che vengono generate in modo asincrono: si
riprova finché il risultato non è "successo" o i tentativi finiscono.
La sleep è iniettabile così i test non attendono tempo reale.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_non_empty(result) -> bool:
    return bool(result)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 10
    interval_seconds: float = 1.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        is_success: Callable[[T], bool] = is_non_empty,
    ) -> T:
        """
        Esegue operation fino al primo risultato di successo.

        Restituisce l'ultimo risultato anche se nessun tentativo ha avuto
        successo. Le eccezioni di operation vengono propagate subito.
        """
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        result = await operation()
        for attempt in range(2, self.max_attempts + 1):
            if is_success(result):
                return result
            logger.debug("Poll %d/%d: nessun risultato, retry in %.1fs", attempt, self.max_attempts, self.interval_seconds)
            await self.sleep(self.interval_seconds)
            result = await operation()
        return result
