# @file purpose: Definisce il pacchetto del bridge HTTP per Playwright
#
# Questo pacchetto fornisce:
# - Server HTTP FastAPI autenticato con API key
# - Connessione per richiesta a browser Playwright remoti (wsEndpoint)
# - Esecuzione di codice arbitrario e screenshot di pagine

"""
Playwright bridge: authenticated REST gateway for remote browser automation.

Provides HTTP REST API endpoints for:
- Running caller-supplied code against a fresh page
- Navigate-and-screenshot capture
"""

from playwright_bridge.config import BridgeSettings, load_settings
from playwright_bridge.server import create_app, run_server

__all__ = ["BridgeSettings", "create_app", "load_settings", "run_server"]
