# admin_agent/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: development)
"""

import os
import logging
import time
from typing import Tuple

from prometheus_client import (
    Counter, Histogram,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)

# Optional imports, degrade gracefully if not installed
try:
    from pythonjsonlogger import jsonlogger
    _HAS_JSON_LOGGER = True
except ImportError:
    _HAS_JSON_LOGGER = False

try:
    import sentry_sdk
    _HAS_SENTRY = True
except ImportError:
    _HAS_SENTRY = False

# --- ENV flags
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "true").lower() in ("1", "true", "yes")
SENTRY_DSN = os.getenv("SENTRY_DSN", None)
LOG_AS_JSON = os.getenv("LOG_AS_JSON", "true").lower() in ("1", "true", "yes")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


# --- Logger setup
def setup_logger(name: str = "admin-agent", level: int = None) -> logging.Logger:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if LOG_AS_JSON and _HAS_JSON_LOGGER:
            fmt = jsonlogger.JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s"
            )
            handler.setFormatter(fmt)
        logger.addHandler(handler)
    return logger


logger = setup_logger()

# --- Sentry (optional)
if SENTRY_DSN and _HAS_SENTRY:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=ENVIRONMENT)
    logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "agent_chat_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

COMPLETION_CALLS = Counter(
    "agent_completion_calls_total",
    "Completion service calls",
    ["stage", "outcome"],
)

FUNCTION_CALLS = Counter(
    "agent_function_calls_total",
    "Function calls requested by the model",
    ["function", "outcome"],
)

SELF_HEALING_ROWS = Counter(
    "agent_self_healing_rows_total",
    "Rows repaired by the self-healing sweep",
    ["table"],
)

REQUEST_LATENCY = Histogram(
    "agent_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

HANDLER_LATENCY = Histogram(
    "agent_handler_latency_seconds",
    "Handler latency in seconds",
    ["function"],
)


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        pass


def inc_completion_call(stage: str, outcome: str):
    try:
        COMPLETION_CALLS.labels(stage=stage, outcome=outcome).inc()
    except Exception:
        pass


def observe_function_call(start_ts: float, function: str, outcome: str):
    try:
        HANDLER_LATENCY.labels(function=function).observe(time.time() - start_ts)
        FUNCTION_CALLS.labels(function=function, outcome=outcome).inc()
    except Exception:
        pass


def inc_function_call(function: str, outcome: str):
    try:
        FUNCTION_CALLS.labels(function=function, outcome=outcome).inc()
    except Exception:
        pass


def inc_self_healing_rows(table: str, n: int):
    try:
        SELF_HEALING_ROWS.labels(table=table).inc(n)
    except Exception:
        pass


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    try:
        return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
    except Exception:
        return b"", CONTENT_TYPE_LATEST
