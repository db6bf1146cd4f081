"""I/O utilities."""

import json
import time
from typing import Any


def now() -> float:
    """Get a monotonic timestamp for measuring durations."""
    return time.monotonic()


def to_json(obj: Any) -> str:
    """Render an object as indented JSON."""
    return json.dumps(obj, indent=2, ensure_ascii=False)
