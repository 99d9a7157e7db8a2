from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any

logger = logging.getLogger("lectio-diei")


def new_run_id() -> str:
    return str(uuid.uuid4())


def log_event(event: str, **payload: Any) -> None:
    logger.info(
        "SCRAPER_%s %s", event, json.dumps(payload, default=str, sort_keys=True)
    )


class StepTimer:
    def __init__(self) -> None:
        self.started = time.perf_counter()

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)
