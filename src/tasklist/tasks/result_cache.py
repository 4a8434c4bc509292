# src/tasklist/tasks/result_cache.py

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def cache_key(operation: str, *args: Any) -> str:
    """Key = operation name + JSON-serialized arguments."""
    return f"{operation}:{json.dumps(list(args), default=str, sort_keys=True)}"


class ResultCache:
    """
    Memoized read results keyed by cache_key(...).

    No TTL: entries live until the next clear(), which the store calls after
    every successful write.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def clear(self) -> None:
        if self._entries:
            logger.debug("ResultCache cleared (%d entries)", len(self._entries))
        self._entries.clear()
