"""
Diagnostics log sink and the global error boundary.

Front-ends post crash reports and notable events to
``/api/diagnostics/log``; server-side uncaught exceptions land in the same
ring buffer. The buffer is bounded, so only the most recent
``VERDARA_DIAGNOSTICS_LIMIT`` entries are kept.
"""

from __future__ import annotations

import datetime as dt
import itertools
import logging
import threading
import traceback
from collections import deque
from typing import Deque, List, Optional

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from . import config
from .models import DiagnosticEntry, DiagnosticLog


logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_entries: Deque[DiagnosticEntry] = deque(maxlen=config.DIAGNOSTICS_LIMIT)
_ids = itertools.count(1)
_lock = threading.Lock()


def record(log: DiagnosticLog) -> DiagnosticEntry:
    with _lock:
        entry = DiagnosticEntry(
            id=next(_ids),
            received_at=dt.datetime.now(dt.timezone.utc).isoformat(),
            **log.model_dump(),
        )
        _entries.append(entry)
    logger.log(
        _LEVELS.get(log.level, logging.INFO),
        "[%s] %s (session=%s)",
        log.source,
        log.message,
        log.session_id or "-",
    )
    return entry


def list_entries(level: Optional[str] = None) -> List[DiagnosticEntry]:
    with _lock:
        entries = list(_entries)
    if level:
        entries = [e for e in entries if e.level == level]
    return entries


def clear() -> None:
    with _lock:
        _entries.clear()


router = APIRouter(prefix="/api/diagnostics", tags=["diagnostics"])


@router.post("/log", response_model=DiagnosticEntry)
def post_log(log: DiagnosticLog):
    return record(log)


@router.get("/logs", response_model=List[DiagnosticEntry])
def get_logs(level: Optional[str] = Query(default=None)):
    return list_entries(level)


async def _unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    record(
        DiagnosticLog(
            level="error",
            message=f"Server crash: {exc}",
            stack=stack,
            source="server",
            metadata={"type": "unhandled_exception", "path": request.url.path},
            url=str(request.url),
            user_agent=request.headers.get("user-agent"),
        )
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Something went wrong. The error has been logged; please reload.",
        },
    )


def install_error_boundary(app: FastAPI) -> None:
    app.add_exception_handler(Exception, _unhandled_exception)
