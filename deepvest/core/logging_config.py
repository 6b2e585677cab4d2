"""Logging setup.

Two output formats, picked by LOG_FORMAT:

    json   one JSON object per line (default; what the log shipper expects)
    text   ``time level [request client] logger: message`` for local work

The request context middleware fills three context variables for the duration
of a request: the request id, the client key (``user:<id>`` or
``ip:<addr>``) and the client address. ``_ContextFilter`` copies the id and
the key onto every record, so a single grep on a request id shows who made
the request and everything it logged. The address goes to the audit log.

Tokens never reach the output: bearer headers, JWT-shaped strings (session
tokens and wallet id tokens alike) and provider API keys are masked by
``_RedactingFilter`` before formatting.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Optional

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
client_var: contextvars.ContextVar[str] = contextvars.ContextVar("client", default="")
client_ip_var: contextvars.ContextVar[str] = contextvars.ContextVar("client_ip", default="")

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s %(client)s] %(name)s: %(message)s"

_MASK = "[redacted]"

_REDACTIONS = (
    # Authorization headers and "Bearer <token>" fragments.
    re.compile(r"(?i)(bearer\s+)\S{12,}"),
    # Compact JWS: session tokens and wallet id tokens.
    re.compile(r"()\beyJ[\w-]{8,}\.[\w-]{8,}\.[\w-]{8,}"),
    # Provider API keys (OpenAI-style, Google/Gemini).
    re.compile(r"()\b(?:sk-[A-Za-z0-9_-]{20,}|AIza[0-9A-Za-z_-]{30,})"),
    # key=value / key: value pairs with secret-looking names.
    re.compile(r"(?i)((?:api_key|secret|password|id_token|token)\s*[=:]\s*)[^\s,'\"]{6,}"),
)


def redact(text: str) -> str:
    """Mask anything in *text* that looks like a credential."""
    for pattern in _REDACTIONS:
        text = pattern.sub(lambda m: m.group(1) + _MASK, text)
    return text


class _ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.client = client_var.get() or "-"
        return True


class _RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.msg = record.getMessage()
            record.args = None
        record.msg = redact(str(record.msg))
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        return True


class _JsonFormatter(logging.Formatter):
    """One JSON object per record, ``extra`` fields merged at top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.request_id != "-":
            entry["request_id"] = record.request_id
        if record.client != "-":
            entry["client"] = record.client

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key in ("request_id", "client") or key in entry:
                continue
            entry[key] = value

        if record.exc_text:
            entry["exc"] = record.exc_text
        return json.dumps(entry, default=str)


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install the root handler. Safe to call more than once."""
    level = (log_level or "INFO").upper()
    fmt = (log_format or "json").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_ContextFilter())
    handler.addFilter(_RedactingFilter())
    if fmt == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "LiteLLM", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured", extra={"level": level, "format": fmt})
