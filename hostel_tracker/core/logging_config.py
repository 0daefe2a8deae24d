"""
Logging setup. Plain text to stdout, one line per record, tagged with the
request id of the request being served.
"""

import logging
import sys
import uuid
from contextvars import ContextVar

from hostel_tracker.core.config import LOG_LEVEL


request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


def generate_request_id() -> str:
    return str(uuid.uuid4())[:8]


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging(level: str = LOG_LEVEL) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s")
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())

    # SQL echo is too noisy outside of debugging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
