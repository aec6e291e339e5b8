"""Service configuration, read from environment variables once at startup."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from .market.batching import DEFAULT_BATCH_DELAY, DEFAULT_BATCH_SIZE
from .market.scheduler import (
    DEFAULT_ON_DEMAND_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_STALE_AFTER,
    ExecutionMode,
)

logger = logging.getLogger(__name__)

# Set by hosting platforms that run each request in a short-lived process
SERVERLESS_ENV_VARS = ("VERCEL", "AWS_LAMBDA_FUNCTION_NAME", "NETLIFY", "FUNCTIONS_WORKER_RUNTIME")

PROVIDERS = ("yahoo", "simulator")


@dataclass(frozen=True, slots=True)
class QuoteServiceConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    universe_path: str = "resource/stockcode.csv"
    symbol_suffix: str = ".JK"
    provider: str = "yahoo"
    mode: ExecutionMode = ExecutionMode.PERSISTENT
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay: float = DEFAULT_BATCH_DELAY
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    stale_after: float = DEFAULT_STALE_AFTER
    read_timeout: float = DEFAULT_READ_TIMEOUT
    on_demand_timeout: float = DEFAULT_ON_DEMAND_TIMEOUT
    environment: str = "production"
    log_level: str = "INFO"

    @property
    def debug(self) -> bool:
        return self.environment == "development"


def detect_execution_mode(environ: Mapping[str, str]) -> ExecutionMode:
    """On-demand if any serverless platform marker is set, else persistent."""
    for name in SERVERLESS_ENV_VARS:
        if environ.get(name, "").strip():
            return ExecutionMode.ON_DEMAND
    return ExecutionMode.PERSISTENT


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_config(environ: Mapping[str, str] | None = None) -> QuoteServiceConfig:
    """Build the config from the environment.

    QUOTES_EXECUTION_MODE may be ``persistent``, ``on_demand`` or ``auto``
    (default). ``auto`` looks for serverless platform markers exactly here,
    so the mode never changes for the lifetime of the process.
    """
    env = os.environ if environ is None else environ

    mode_raw = env.get("QUOTES_EXECUTION_MODE", "auto").strip().lower().replace("-", "_") or "auto"
    if mode_raw == "auto":
        mode = detect_execution_mode(env)
    else:
        try:
            mode = ExecutionMode(mode_raw)
        except ValueError:
            raise ValueError(f"QUOTES_EXECUTION_MODE must be auto, persistent or on_demand, got {mode_raw!r}") from None

    provider = env.get("QUOTES_PROVIDER", "yahoo").strip().lower() or "yahoo"
    if provider not in PROVIDERS:
        raise ValueError(f"QUOTES_PROVIDER must be one of {', '.join(PROVIDERS)}, got {provider!r}")

    batch_size = _int(env, "QUOTES_BATCH_SIZE", DEFAULT_BATCH_SIZE)
    if batch_size < 1:
        raise ValueError(f"QUOTES_BATCH_SIZE must be >= 1, got {batch_size}")

    config = QuoteServiceConfig(
        host=env.get("HOST", "0.0.0.0").strip() or "0.0.0.0",
        port=_int(env, "PORT", 3000),
        universe_path=env.get("QUOTES_UNIVERSE_PATH", "resource/stockcode.csv").strip() or "resource/stockcode.csv",
        symbol_suffix=env.get("QUOTES_SYMBOL_SUFFIX", ".JK").strip(),
        provider=provider,
        mode=mode,
        batch_size=batch_size,
        batch_delay=_float(env, "QUOTES_BATCH_DELAY", DEFAULT_BATCH_DELAY),
        refresh_interval=_float(env, "QUOTES_REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL),
        stale_after=_float(env, "QUOTES_STALE_AFTER", DEFAULT_STALE_AFTER),
        read_timeout=_float(env, "QUOTES_READ_TIMEOUT", DEFAULT_READ_TIMEOUT),
        on_demand_timeout=_float(env, "QUOTES_ON_DEMAND_TIMEOUT", DEFAULT_ON_DEMAND_TIMEOUT),
        environment=env.get("APP_ENV", "production").strip().lower() or "production",
        log_level=env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
    logger.debug("Loaded config: %s", config)
    return config
