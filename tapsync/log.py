from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"


class FieldsFormatter(logging.Formatter):
    """Standard formatter plus the ``fields`` dict passed through ``extra``.

    ``logger.info("msg", extra={"fields": {"set": 3, "overall": 10}})``
    renders as ``... msg overall=10 set=3``.
    """

    def format(self, record: logging.LogRecord) -> str:
        s = super().format(record)
        fields = getattr(record, "fields", None)
        if fields:
            s += " " + " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        return s


def setup_logging(debug: bool = False, stream=None) -> logging.Handler:
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(FieldsFormatter(LOG_FORMAT))
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    return handler
