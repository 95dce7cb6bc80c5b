"""Shared API dependency providers."""

from __future__ import annotations

from functools import lru_cache

from codevault.config import get_settings
from codevault.core.history_manager import HistoryManager


@lru_cache(maxsize=1)
def get_history_manager() -> HistoryManager:
    return HistoryManager.from_settings(get_settings())
