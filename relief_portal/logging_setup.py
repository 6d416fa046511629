from __future__ import annotations

import json
import logging
from typing import Any, Dict

from .config import settings


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging() -> None:
    level = (settings.log_level or "INFO").upper().strip() or "INFO"
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s | %(message)s")

    if settings.log_json:
        root = logging.getLogger()
        for h in root.handlers:
            h.setFormatter(JsonFormatter())
