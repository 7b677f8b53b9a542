#!/usr/bin/env python3
"""
# @file purpose: Tassonomia errori del bridge Playwright

- ConfigurationError: configurazione di avvio non valida (fatale)
- InvalidRequest: campo obbligatorio mancante nella richiesta
- Qualsiasi altra eccezione è un fallimento di esecuzione (HTTP 500)
"""


class BridgeError(Exception):
    """Errore base del bridge"""


class ConfigurationError(BridgeError):
    """Configurazione da environment mancante o non valida"""


class InvalidRequest(BridgeError):
    """Campo obbligatorio assente nel body della richiesta"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def error_message(exc: BaseException) -> str:
    """Messaggio esposto al chiamante, senza sanitizzazione"""
    # Gli errori Playwright espongono .message come gli Error JS
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__
