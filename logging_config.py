"""Logging setup for the relay, with optional shipping to Supabase.

Every handler installed by setup_logging() carries a RedactingFilter, so the
client secret and other configured secrets are masked before formatting.
Remote shipping happens on a background thread only: log calls made from
request handlers run on the event loop and must never wait on Supabase.
"""

import atexit
import logging
import os
import re
import sys
import threading
from queue import Queue, Empty
from typing import Iterable, Optional

from supabase import create_client

REDACTED = "***"

TAG_RE = re.compile(r'\[([A-Z_]+)\]\s*(.*)', re.S)


class RedactingFilter(logging.Filter):
    """Replace secret values in log messages with a mask."""

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self.secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def redact(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """Turns a record into the row shape stored in the remote log table."""

    def __init__(self, service_name: str = None):
        super().__init__()
        self.service_name = service_name or "unknown"

    def format(self, record: logging.LogRecord) -> dict:
        tag = None
        message = record.getMessage()
        tag_match = TAG_RE.match(message)
        if tag_match:
            tag, message = tag_match.group(1), tag_match.group(2)

        row = {
            "service_name": self.service_name,
            "level": record.levelname,
            "tag": tag,
            "message": message,
            "module": record.module,
            "extra": {
                "function": record.funcName,
                "line": record.lineno,
            }
        }
        if record.exc_info:
            row["extra"]["exception"] = self.formatException(record.exc_info)
        return row


class PlainFormatter(logging.Formatter):
    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


class SupabaseHandler(logging.Handler):
    """Queue log rows and insert them into a Supabase table in batches.

    emit() only enqueues and, once batch_size rows are waiting, wakes the
    sender thread. All inserts run on that thread, every flush_interval
    seconds or on wake-up; close() drains what is left.
    """

    def __init__(
        self,
        supabase_client,
        service_name: str,
        batch_size: int = 20,
        flush_interval: float = 10.0,
        table: str = "logs",
    ):
        super().__init__()
        self.supabase = supabase_client
        self.service_name = service_name
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.table = table

        self._queue: Queue = Queue()
        self._wake = threading.Event()
        self._shutdown = threading.Event()
        self._sender = threading.Thread(target=self._send_loop, name="supabase-log-sender", daemon=True)
        self._sender.start()

        atexit.register(self.close)

    def emit(self, record: logging.LogRecord):
        try:
            if isinstance(self.formatter, JSONFormatter):
                row = self.formatter.format(record)
            else:
                row = {
                    "service_name": self.service_name,
                    "level": record.levelname,
                    "tag": None,
                    "message": record.getMessage(),
                    "module": record.module,
                    "extra": {}
                }
            self._queue.put(row)

            if self._queue.qsize() >= self.batch_size:
                self._wake.set()
        except Exception:
            self.handleError(record)

    def _send_loop(self):
        while not self._shutdown.is_set():
            self._wake.wait(self.flush_interval)
            self._wake.clear()
            if not self._queue.empty():
                self._send_batch()

    def _send_batch(self):
        rows = []
        try:
            while len(rows) < self.batch_size * 2:
                try:
                    rows.append(self._queue.get_nowait())
                except Empty:
                    break

            if rows and self.supabase:
                self.supabase.table(self.table).insert(rows).execute()
        except Exception as e:
            # stderr, not logging: a failing insert must not feed back into this handler
            print(f"[WARNING] Failed to send logs to Supabase: {type(e).__name__}", file=sys.stderr)

    def close(self):
        if not self._shutdown.is_set():
            self._shutdown.set()
            self._wake.set()
            self._sender.join(timeout=self.flush_interval)
            while not self._queue.empty():
                self._send_batch()
        super().close()


_supabase_handler: Optional[SupabaseHandler] = None


def create_supabase_client(url: Optional[str], key: Optional[str]):
    """Create a Supabase client when both URL and key are configured."""
    if not url or not key:
        return None
    return create_client(url, key)


def setup_logging(
    service_name: str = None,
    supabase_client=None,
    level: str = "INFO",
    redact: Iterable[str] = (),
) -> logging.Logger:
    """Configure the root logger.

    Args:
        service_name: Name used to identify this deployment in remote logs.
        supabase_client: Supabase client for remote logging, or None.
        level: Root log level name; unknown names fall back to INFO.
        redact: Secret values masked out of every record.

    Returns:
        The configured root logger.
    """
    global _supabase_handler

    service_name = service_name or os.getenv("SERVICE_NAME", "github-oauth-relay")
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    redacting_filter = RedactingFilter(redact)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(log_level)
    stderr_handler.setFormatter(PlainFormatter())
    stderr_handler.addFilter(redacting_filter)
    root_logger.addHandler(stderr_handler)

    supabase_enabled = False
    if supabase_client:
        try:
            _supabase_handler = SupabaseHandler(
                supabase_client=supabase_client,
                service_name=service_name,
                batch_size=20,
                flush_interval=10.0,
            )
            _supabase_handler.setLevel(log_level)
            _supabase_handler.setFormatter(JSONFormatter(service_name))
            _supabase_handler.addFilter(redacting_filter)
            root_logger.addHandler(_supabase_handler)
            supabase_enabled = True
        except Exception as e:
            print(f"[WARNING] Supabase logging setup failed: {type(e).__name__}", file=sys.stderr)

    # Outbound request logs from httpx include the token URL and its query string
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    if supabase_enabled:
        logger.info(f"[STARTUP] Supabase logging enabled for service: {service_name}")
    else:
        logger.info("[STARTUP] Supabase logging disabled (no client)")

    return root_logger
