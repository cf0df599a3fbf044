"""Core sugar functionality."""

from __future__ import annotations

from sugar.core.interfaces import IdentityCache, IntegerPrompt, InventoryProvider, KeyProbe
from sugar.core.matcher import is_match, match
from sugar.core.pipeline import ConnectPipeline, PreparedConnection

__all__ = [
    "ConnectPipeline",
    "IdentityCache",
    "IntegerPrompt",
    "InventoryProvider",
    "KeyProbe",
    "PreparedConnection",
    "is_match",
    "match",
]
