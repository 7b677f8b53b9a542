#!/usr/bin/env python3
"""
# @file purpose: Risoluzione e gestione della connessione al browser remoto

Ogni richiesta apre una connessione nuova verso il server Playwright
indicato da wsEndpoint, crea un contesto isolato e una pagina, e chiude
la connessione all'uscita in ogni caso (successo o errore).
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Tuple

from playwright_bridge.errors import InvalidRequest

logger = logging.getLogger(__name__)

CHROMIUM = "chromium"
FIREFOX = "firefox"
WEBKIT = "webkit"

ENGINES = (CHROMIUM, FIREFOX, WEBKIT)

# Chiave sotto cui il chiamante passa le opzioni del contesto
CONTEXT_KEY = "playwright"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def select_engine(ws_endpoint: str) -> str:
    """Sceglie il motore dal testo dell'endpoint (match case-sensitive)"""
    if FIREFOX in ws_endpoint:
        return FIREFOX
    if WEBKIT in ws_endpoint:
        return WEBKIT
    return CHROMIUM


def to_snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def normalize_options(options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Converte le chiavi camelCase di primo livello (stile client JS) nei
    keyword argument snake_case del client Python. I valori annidati
    vengono inoltrati così come sono.
    """
    if not options:
        return {}
    return {to_snake_case(key): value for key, value in options.items()}


# Opzioni JS annidate che il client Python espone come keyword piatte
# (recordVideo.dir -> record_video_dir, recordHar.path -> record_har_path)
NESTED_CONTEXT_OPTIONS = ("recordVideo", "recordHar")


def flatten_context_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    """Normalizza le opzioni del contesto appiattendo recordVideo e recordHar"""
    flat: Dict[str, Any] = {}
    for key, value in options.items():
        if key in NESTED_CONTEXT_OPTIONS and isinstance(value, Mapping):
            prefix = to_snake_case(key)
            for sub_key, sub_value in value.items():
                flat[f"{prefix}_{to_snake_case(sub_key)}"] = sub_value
        else:
            flat[to_snake_case(key)] = value
    return flat


def context_options(user_context: Any) -> Dict[str, Any]:
    """Estrae context.playwright.contextOptions, se presente"""
    if not isinstance(user_context, Mapping):
        return {}
    engine_context = user_context.get(CONTEXT_KEY)
    if not isinstance(engine_context, Mapping):
        return {}
    options = engine_context.get("contextOptions")
    if not isinstance(options, Mapping):
        return {}
    return flatten_context_options(options)


class BrowserConnector:
    """Apre connessioni verso browser Playwright remoti"""

    def __init__(self, browser_types: Mapping[str, Any]):
        missing = [engine for engine in ENGINES if engine not in browser_types]
        if missing:
            raise ValueError(f"Browser types mancanti: {', '.join(missing)}")
        self.browser_types = dict(browser_types)

    @classmethod
    def from_playwright(cls, playwright) -> "BrowserConnector":
        """Costruisce il connector da un'istanza async_playwright avviata"""
        return cls({
            CHROMIUM: playwright.chromium,
            FIREFOX: playwright.firefox,
            WEBKIT: playwright.webkit,
        })

    async def connect(self, ws_endpoint: Optional[str]):
        """Connette al server remoto scegliendo il motore dall'endpoint"""
        if not ws_endpoint:
            raise InvalidRequest('The "wsEndpoint" field is required in the request body.')

        engine = select_engine(ws_endpoint)
        logger.info(f"🔌 Connessione a browser remoto ({engine})")
        return await self.browser_types[engine].connect(ws_endpoint)

    @asynccontextmanager
    async def open_page(
        self,
        ws_endpoint: Optional[str],
        user_context: Any = None,
    ) -> AsyncIterator[Tuple[Any, Any, Any]]:
        """
        Connette, crea contesto e pagina e garantisce la chiusura del
        browser una sola volta su ogni percorso di uscita.

        Yields:
            (browser, context, page)
        """
        browser = await self.connect(ws_endpoint)
        try:
            context = await browser.new_context(**context_options(user_context))
            page = await context.new_page()
            yield browser, context, page
        finally:
            # La chiusura non deve cambiare l'esito dell'azione
            try:
                await browser.close()
                logger.info("🧹 Connessione browser chiusa")
            except Exception as e:
                logger.warning(f"⚠️ Errore chiusura connessione browser: {e}")
