#!/usr/bin/env python3
"""
# @file purpose: Server HTTP FastAPI del bridge Playwright

Gateway REST autenticato verso browser Playwright remoti:
- POST /function: esegue codice arbitrario contro una pagina
- POST /screenshot: naviga su un URL e ritorna l'immagine
- GET /health: stato del servizio

Ogni richiesta apre una connessione dedicata al wsEndpoint indicato e la
chiude prima di rispondere. Nessuno stato condiviso tra richieste oltre
alla configurazione di processo.
"""

import argparse
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from playwright_bridge.config import BridgeSettings, load_settings
from playwright_bridge.connection import BrowserConnector, normalize_options
from playwright_bridge.errors import ConfigurationError, error_message
from playwright_bridge.scripting import ScriptHandles, build_callable, run_script

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


# Modelli Pydantic per API
class FunctionRequest(BaseModel):
    """Richiesta di esecuzione codice contro una pagina"""
    model_config = ConfigDict(populate_by_name=True)

    code: Optional[str] = None
    context: Optional[Dict[str, Any]] = None
    ws_endpoint: Optional[str] = Field(None, alias="wsEndpoint")


class ScreenshotRequest(BaseModel):
    """Richiesta di screenshot di un URL"""
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    options: Optional[Dict[str, Any]] = None
    context: Optional[Dict[str, Any]] = None
    ws_endpoint: Optional[str] = Field(None, alias="wsEndpoint")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def configure_logging(level: str = "info"):
    """Configura il logging di processo"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def get_connector(request: Request) -> BrowserConnector:
    """Dependency: connector creato all'avvio dell'app"""
    return request.app.state.connector


def create_app(
    settings: BridgeSettings,
    connector: Optional[BrowserConnector] = None,
) -> FastAPI:
    """Crea l'app FastAPI per la configurazione data"""

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        if connector is not None:
            application.state.connector = connector
            yield
            return

        # Il driver Playwright non tiene connessioni: quelle sono per richiesta
        from playwright.async_api import async_playwright

        async with async_playwright() as playwright:
            application.state.connector = BrowserConnector.from_playwright(playwright)
            logger.info(f"✅ Professional Bridge API for Playwright running on port {settings.port}")
            yield
        logger.info("🛑 Driver Playwright fermato")

    app = FastAPI(
        title="Playwright Bridge API",
        description="API REST autenticata per automazione browser Playwright remota",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    if connector is not None:
        app.state.connector = connector

    # Middleware di autenticazione: applicato a tutte le route
    @app.middleware("http")
    async def api_key_middleware(request: Request, call_next):
        provided_api_key = request.headers.get(API_KEY_HEADER)
        if not provided_api_key or provided_api_key != settings.api_key:
            logger.warning(f"🔒 Accesso non autorizzato: {request.method} {request.url.path}")
            return error_response(401, "Unauthorized access.")

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            too_large = int(content_length) > settings.body_limit
        else:
            # Richieste chunked: misuriamo il body effettivo
            too_large = len(await request.body()) > settings.body_limit
        if too_large:
            return error_response(413, "Request entity too large.")

        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        else:
            message = "Invalid request body."
        logger.warning(f"⚠️ Body non valido su {request.url.path}: {message}")
        return error_response(400, message)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "ok",
            "message": "Playwright bridge attivo",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.post("/function")
    async def run_function(
        body: FunctionRequest,
        connector: BrowserConnector = Depends(get_connector),
    ):
        """Esegue il codice del chiamante con accesso a page e context"""
        if not body.code:
            return error_response(400, 'The "code" field is required.')

        try:
            async with connector.open_page(body.ws_endpoint, body.context) as (_, context, page):
                user_function = build_callable(body.code)
                result = await run_script(user_function, ScriptHandles(page, context))
            data = jsonable_encoder(result)
        except Exception as e:
            logger.error(f"❌ Errore esecuzione function: {e}")
            return error_response(500, error_message(e))

        return JSONResponse(status_code=200, content={"success": True, "data": data})

    @app.post("/screenshot")
    async def take_screenshot(
        body: ScreenshotRequest,
        connector: BrowserConnector = Depends(get_connector),
    ):
        """Naviga sull'URL, attende network idle e ritorna l'immagine"""
        if not body.url:
            return error_response(400, 'The "url" field is required.')

        options = body.options or {}
        try:
            async with connector.open_page(body.ws_endpoint, body.context) as (_, _context, page):
                await page.goto(body.url, wait_until="networkidle")
                image_buffer = await page.screenshot(**normalize_options(options))
        except Exception as e:
            logger.error(f"❌ Errore screenshot {body.url}: {e}")
            return PlainTextResponse(error_message(e), status_code=500)

        logger.info(f"📸 Screenshot catturato: {body.url} ({len(image_buffer)} bytes)")
        return Response(content=image_buffer, media_type=f"image/{options.get('type') or 'png'}")

    return app


def app_factory() -> FastAPI:
    """Factory per `uvicorn --factory playwright_bridge.server:app_factory`"""
    settings = load_settings()
    configure_logging(settings.log_level)
    return create_app(settings)


# Funzione per avvio server
def run_server(argv=None):
    """Avvia il server FastAPI"""
    parser = argparse.ArgumentParser(description="Playwright Bridge API Server")
    parser.add_argument("--host", default=None, help="Host address (default: BRIDGE_HOST o 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port number (default: PORT o 3000)")
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.critical(str(e))
        sys.exit(1)

    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level)
    logger.info(f"🚀 Avvio Playwright bridge su {settings.host}:{settings.port}")

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    run_server()
