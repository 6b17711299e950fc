from __future__ import annotations
import logging
import sys
import uuid
from pythonjsonlogger.json import JsonFormatter
from fastapi import Request
from ..config import get_settings

S = get_settings()

# fields every JSON line carries, even for records logged outside a request
CONTEXT_FIELDS = ("request_id", "extra")


class _ContextDefaults(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "")
        return True


def setup_logging() -> None:
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_ContextDefaults())
    handler.setFormatter(JsonFormatter(
        "%(levelname)s %(name)s %(message)s %(asctime)s %(request_id)s %(extra)s",
        rename_fields={"levelname": "level", "name": "logger"},
    ))
    root.addHandler(handler)
    root.setLevel(S.LOG_LEVEL)

    logging.getLogger("uvicorn.access").setLevel("WARNING")
    if not S.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel("WARNING")


def get_request_id(req: Request) -> str:
    rid = req.headers.get(S.REQUEST_ID_HEADER)
    return rid if rid else uuid.uuid4().hex


def bind_record(record: logging.LogRecord, **extra):
    # attach request-scoped fields to a record built by hand
    for k, v in extra.items():
        setattr(record, k, v or "")
    return record
