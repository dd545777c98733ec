import logging
import sys

_LOGGING_CONFIGURED = False


def configure_logging(level: str = "INFO") -> None:
    """
    Configura il logging una volta per processo.
    Chiamarla più volte non ha effetti.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stdout,
    )
    # httpx logga ogni richiesta a INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _LOGGING_CONFIGURED = True
