#!/usr/bin/env python3
"""
# @file purpose: Configurazione del bridge letta da environment

La configurazione viene letta una sola volta all'avvio e non è più
modificabile: porta, host di ascolto e API key condivisa. Senza
BRIDGE_API_KEY il server non può partire.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

from playwright_bridge.errors import ConfigurationError

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_BODY_LIMIT = 10 * 1024 * 1024  # 10mb come express.json()


class BridgeSettings(BaseModel):
    """Configurazione immutabile di processo"""

    model_config = ConfigDict(frozen=True)

    api_key: str
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    body_limit: int = DEFAULT_BODY_LIMIT
    log_level: str = "info"


def _int_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"The environment variable {name} must be an integer, got {raw!r}."
        ) from None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> BridgeSettings:
    """Costruisce la configurazione dalle variabili d'ambiente"""
    env = os.environ if environ is None else environ

    api_key = env.get("BRIDGE_API_KEY")
    if not api_key:
        raise ConfigurationError(
            "FATAL ERROR: The environment variable BRIDGE_API_KEY is not defined."
        )

    return BridgeSettings(
        api_key=api_key,
        port=_int_from_env(env, "PORT", DEFAULT_PORT),
        host=env.get("BRIDGE_HOST") or DEFAULT_HOST,
        body_limit=_int_from_env(env, "BRIDGE_BODY_LIMIT", DEFAULT_BODY_LIMIT),
        log_level=(env.get("BRIDGE_LOG_LEVEL") or "info").lower(),
    )
